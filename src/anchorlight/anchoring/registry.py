"""Pending-anchor registry: bounded retries and mutation-driven re-resolution.

Anchors that could not be located on first attempt are handed here. Each
one gets a retry task with linear backoff (1s, 2s, 3s by default) and
expires after the retry ceiling. While anything is pending, one mutation
listener watches the page; bursts of mutations are debounced into a single
batch pass over every pending anchor.

Lifecycle is explicit: ``init()`` attaches the listener, ``teardown()``
detaches it, ``reset()`` drops everything pending after navigation, and
``halt()`` stops everything when the host goes away.
Everything runs on one event loop, so the pending set needs no locking;
submissions made during a batch pass are queued until it finishes.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING

from anchorlight.anchoring.models import (
    AnchorRecord,
    AnchorState,
    ObserverState,
    PendingAnchor,
)
from anchorlight.notifications import Notice, NoticeKind

if TYPE_CHECKING:
    from collections.abc import Callable

    from anchorlight.config import AnchorConfig
    from anchorlight.notifications import Notifier
    from anchorlight.page import Page

logger = logging.getLogger(__name__)


def _cancel(task: asyncio.Task[None] | None) -> None:
    """Cancel *task* unless it is the one currently running."""
    if task is None or task.done():
        return
    if task is asyncio.current_task():
        return
    task.cancel()


class AnchorRegistry:
    """Owns pending anchors, their retry timers and the mutation listener.

    Args:
        page: Host page providing the mutation feed.
        attempt: ``attempt(anchor_id, record) -> bool`` resolves the anchor
            and installs its marker, returning True on success.
        config: Retry, debounce and observer-cap timings.
        notifier: Receives an ``EXPIRED`` notice when an anchor gives up.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        page: Page,
        attempt: Callable[[str, AnchorRecord], bool],
        config: AnchorConfig,
        notifier: Notifier,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._page = page
        self._attempt = attempt
        self._config = config
        self._notifier = notifier
        self._clock = clock

        self._pending: dict[str, PendingAnchor] = {}
        self._states: dict[str, AnchorState] = {}
        self._retry_tasks: dict[str, asyncio.Task[None]] = {}
        self._deferred: list[AnchorRecord] = []

        self._observer_state = ObserverState.IDLE
        self._debounce_task: asyncio.Task[None] | None = None
        self._cap_task: asyncio.Task[None] | None = None
        self._watch_started: float | None = None

        self._in_batch = False
        self._halted = False
        self._idle = asyncio.Event()
        self._idle.set()

        self.batch_passes = 0

    # --- inspection ---

    @property
    def observer_state(self) -> ObserverState:
        return self._observer_state

    @property
    def is_halted(self) -> bool:
        return self._halted

    def pending_ids(self) -> list[str]:
        """Pending anchor ids in submission order."""
        return list(self._pending)

    def pending(self, anchor_id: str) -> PendingAnchor | None:
        return self._pending.get(anchor_id)

    def state_of(self, anchor_id: str) -> AnchorState | None:
        return self._states.get(anchor_id)

    async def wait_idle(self) -> None:
        """Wait until no anchor is pending."""
        await self._idle.wait()

    # --- submission ---

    def submit(self, record: AnchorRecord) -> bool:
        """Start retrying *record*. Returns False when nothing was scheduled.

        Already-pending ids and submissions after ``halt()`` are ignored.
        During a batch pass the record is queued and scheduled afterwards.
        """
        if self._halted:
            return False

        anchor_id = record.anchor_id
        if self._in_batch:
            self._deferred.append(record)
            self._states.setdefault(anchor_id, AnchorState.UNRESOLVED)
            return True

        if anchor_id in self._pending:
            return False

        self._pending[anchor_id] = PendingAnchor(
            anchor_id=anchor_id, record=record, created_at=self._clock()
        )
        self._states[anchor_id] = AnchorState.SCHEDULED
        self._retry_tasks[anchor_id] = asyncio.create_task(
            self._retry_loop(anchor_id)
        )
        self._idle.clear()
        logger.debug("Anchor %s scheduled for retry", anchor_id)

        self.init()
        return True

    # --- observer lifecycle ---

    def init(self) -> None:
        """Attach the mutation listener and arm the observer cap.

        A no-op while already watching; only one listener exists at a time.
        """
        if self._halted or self._observer_state is ObserverState.WATCHING:
            return
        self._page.add_mutation_listener(self._on_mutation)
        self._observer_state = ObserverState.WATCHING
        self._watch_started = self._clock()
        self._cap_task = asyncio.create_task(self._observer_cap())
        logger.debug("Mutation observer attached")

    def teardown(self) -> None:
        """Detach the mutation listener and cancel its timers."""
        if self._observer_state is ObserverState.WATCHING:
            self._page.remove_mutation_listener(self._on_mutation)
            logger.debug("Mutation observer detached")
        self._observer_state = ObserverState.IDLE
        self._watch_started = None

        _cancel(self._debounce_task)
        self._debounce_task = None
        _cancel(self._cap_task)
        self._cap_task = None

        if not self._pending:
            self._idle.set()

    def reset(self) -> list[str]:
        """Drop every pending anchor without halting. Returns the dropped ids.

        Used when the page changes underneath the registry: anchors queued
        for the previous URL must not resolve against the new content.
        """
        dropped = [*self._pending, *(r.anchor_id for r in self._deferred)]
        for task in self._retry_tasks.values():
            _cancel(task)
        self._retry_tasks.clear()
        self._pending.clear()
        self._deferred.clear()
        for anchor_id in dropped:
            self._states.pop(anchor_id, None)
        self.teardown()
        if dropped:
            logger.debug("Dropped %d pending anchor(s)", len(dropped))
        return dropped

    def halt(self) -> None:
        """Stop all scheduled work for good (the host context is gone)."""
        if self._halted:
            return
        self._halted = True
        self.reset()
        logger.info("Anchor registry halted; no further retries")

    # --- mutation path ---

    def _on_mutation(self) -> None:
        if self._observer_state is not ObserverState.WATCHING:
            return
        # Cancel-and-reschedule: one batch pass per quiet window
        _cancel(self._debounce_task)
        self._debounce_task = asyncio.create_task(self._debounced_batch())

    async def _debounced_batch(self) -> None:
        try:
            await asyncio.sleep(self._config.debounce_seconds)
        except asyncio.CancelledError:
            return  # superseded by a newer mutation
        self._debounce_task = None
        self.run_batch_pass()

    def run_batch_pass(self) -> int:
        """Attempt every pending anchor once, in submission order.

        Resolved anchors leave the pending set immediately, so none is
        attempted twice in one pass. Returns the number resolved.
        """
        if not self._pending:
            self.teardown()
            self._drain_deferred()
            return 0

        resolved = 0
        self._in_batch = True
        try:
            for anchor_id in list(self._pending):
                pending = self._pending.get(anchor_id)
                if pending is None:
                    continue
                if self._attempt(anchor_id, pending.record):
                    self._mark_resolved(anchor_id)
                    resolved += 1
        finally:
            self._in_batch = False

        self.batch_passes += 1
        logger.debug(
            "Batch pass resolved %d anchor(s), %d still pending",
            resolved,
            len(self._pending),
        )
        if not self._pending:
            self.teardown()
        self._drain_deferred()
        return resolved

    def _drain_deferred(self) -> None:
        deferred, self._deferred = self._deferred, []
        for record in deferred:
            self.submit(record)

    async def _observer_cap(self) -> None:
        started = self._watch_started
        window = self._config.observer_cap_seconds
        await asyncio.sleep(window)
        self._cap_task = None
        # Anchors pending since attachment have used up their window
        overdue = [
            anchor_id
            for anchor_id, pending in self._pending.items()
            if started is None or pending.created_at <= started
        ]
        logger.info(
            "Mutation observer reached its %.1fs cap; expiring %d anchor(s)",
            window,
            len(overdue),
        )
        for anchor_id in overdue:
            self._expire(anchor_id)
        self.teardown()

    # --- timer path ---

    async def _retry_loop(self, anchor_id: str) -> None:
        while True:
            pending = self._pending.get(anchor_id)
            if pending is None:
                return
            delay = self._config.retry_base_seconds * (pending.retry_count + 1)
            await asyncio.sleep(delay)

            pending = self._pending.get(anchor_id)
            if pending is None:
                return
            if self._attempt(anchor_id, pending.record):
                self._mark_resolved(anchor_id)
                return

            pending.retry_count += 1
            logger.debug(
                "Anchor %s retry %d/%d did not resolve",
                anchor_id,
                pending.retry_count,
                self._config.retry_ceiling,
            )
            if pending.retry_count >= self._config.retry_ceiling:
                self._expire(anchor_id)
                return

    # --- transitions ---

    def _mark_resolved(self, anchor_id: str) -> None:
        self._states[anchor_id] = AnchorState.RESOLVED
        self._forget(anchor_id)
        logger.debug("Anchor %s resolved on retry", anchor_id)

    def _expire(self, anchor_id: str) -> None:
        self._states[anchor_id] = AnchorState.EXPIRED
        self._forget(anchor_id)
        logger.info("Anchor %s expired without resolving", anchor_id)
        self._notifier.notify(Notice.of(NoticeKind.EXPIRED, anchor_id))

    def _forget(self, anchor_id: str) -> None:
        self._pending.pop(anchor_id, None)
        _cancel(self._retry_tasks.pop(anchor_id, None))
        if not self._pending and not self._in_batch:
            self.teardown()
