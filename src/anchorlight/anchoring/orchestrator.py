"""Restoration orchestrator: the entry points hosts call into.

Owns one page's codec, locator, marker applier, resolver and pending-anchor
registry, and sequences them:

- ``capture()`` turns the user's selection into an ``Anchor``;
- ``load_page_anchors()`` restores every stored anchor for the page and
  hands the ones not yet locatable to the registry;
- ``restore()`` is the "go to this note" path: scroll near the saved
  offset, wait for the page to settle, resolve, mark, centre and pulse.
  It never schedules retries.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from anchorlight.anchoring.locator import TextLocator
from anchorlight.anchoring.markers import MarkerApplier
from anchorlight.anchoring.models import Anchor, ApplyOutcome, ApplyResult
from anchorlight.anchoring.paths import StructuralPathCodec
from anchorlight.anchoring.registry import AnchorRegistry
from anchorlight.anchoring.resolver import AnchorResolver
from anchorlight.anchoring.text_nodes import common_ancestor, text_content
from anchorlight.config import get_settings
from anchorlight.errors import TransportUnavailableError
from anchorlight.notifications import LoggingNotifier, Notice, NoticeKind

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

    from lxml.html import HtmlElement

    from anchorlight.anchoring.models import AnchorRecord
    from anchorlight.config import AnchorConfig
    from anchorlight.notifications import Notifier
    from anchorlight.page import Page
    from anchorlight.store import AnchorStore

logger = logging.getLogger(__name__)

# Browser-internal pages where content scripts never run
RESTRICTED_URL_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "edge://",
    "about:",
)


def is_restricted_url(url: str) -> bool:
    return url.startswith(RESTRICTED_URL_PREFIXES)


class RestorationOrchestrator:
    """Captures, restores and removes highlights on one page.

    Args:
        page: The host page.
        store: Persistence collaborator for anchor records.
        notifier: Presentation collaborator; defaults to logging notices.
        config: Timings and limits; defaults to ``get_settings().anchor``.
    """

    def __init__(
        self,
        page: Page,
        store: AnchorStore,
        notifier: Notifier | None = None,
        config: AnchorConfig | None = None,
    ) -> None:
        if config is None:
            config = get_settings().anchor

        self.page = page
        self._store = store
        self._notifier: Notifier = notifier or LoggingNotifier()
        self._config = config

        self.codec = StructuralPathCodec(page.document)
        self.locator = TextLocator(config.min_text_length)
        self.markers = MarkerApplier(page.document, config.default_color)
        self.resolver = AnchorResolver(
            self.codec, self.locator, self.markers, lambda: self.page.content_root
        )
        self.registry = AnchorRegistry(page, self._attempt, config, self._notifier)
        self._background_tasks: set[asyncio.Task[Any]] = set()

    @property
    def is_halted(self) -> bool:
        return self.registry.is_halted

    # --- capture ---

    def capture(self) -> Anchor | None:
        """Describe the current selection as an Anchor.

        Returns None when there is nothing usable to capture.
        """
        if is_restricted_url(self.page.url):
            logger.info("Capture refused on restricted page %s", self.page.url)
            self._notifier.notify(Notice.of(NoticeKind.UNSUPPORTED_PAGE))
            return None

        selection = self.page.selection
        if selection is None:
            return None
        text = selection.text.strip()
        if not text:
            return None

        container = common_ancestor(selection)
        if container is None:
            return None

        return Anchor(
            text=text,
            structural_path=self.codec.encode(container),
            text_offset_in_container=max(text_content(container).find(text), 0),
            container_tag_name=str(container.tag).lower(),
            start_offset=selection.start_offset,
            end_offset=selection.end_offset,
            viewport=self.page.viewport,
            url=self.page.url,
            title=self.page.title,
        )

    def highlight_selection(
        self, anchor_id: str, color: str | None = None
    ) -> ApplyResult:
        """Mark the current selection for a freshly saved anchor."""
        selection = self.page.selection
        if selection is None:
            return ApplyResult.rejected("no selection")
        result = self.markers.apply(selection, anchor_id, color)
        self.page.clear_selection()
        return result

    def confirm_saved(self, record: AnchorRecord) -> ApplyResult:
        """Tell the user *record* was saved and mark the selection for it."""
        self._notifier.notify(Notice.of(NoticeKind.SAVED, record.anchor_id))
        return self.highlight_selection(record.anchor_id, record.color)

    # --- resolution ---

    def _attempt(self, anchor_id: str, record: AnchorRecord) -> bool:
        """Resolve *record* and make sure its marker is in the tree."""
        resolution = self.resolver.resolve(anchor_id, record.anchor)
        if resolution.marker is not None:
            return True
        if resolution.text_range is None:
            return False
        return self.markers.apply(
            resolution.text_range, anchor_id, record.color
        ).applied

    async def load_page_anchors(self) -> int:
        """Restore every stored highlight for the current page.

        Anchors that cannot be located yet are submitted to the registry.
        Returns the number restored immediately.
        """
        if self.registry.is_halted:
            return 0

        url = self.page.url
        try:
            records = await self._store.list_for_url(url)
        except TransportUnavailableError:
            # Host context is gone; stop quietly
            logger.debug("Anchor store unreachable, halting restoration")
            self.registry.halt()
            return 0

        restored = 0
        for record in records:
            if self._attempt(record.anchor_id, record):
                restored += 1
            else:
                self.registry.submit(record)

        logger.info(
            "Restored %d of %d highlight(s) for %s", restored, len(records), url
        )
        return restored

    async def handle_navigation(self, url: str) -> bool:
        """Reload highlights after an in-page (SPA) URL change."""
        if url == self.page.url:
            return False
        logger.debug("Navigation %s -> %s", self.page.url, url)
        # Anchors still pending belong to the old URL
        self.registry.reset()
        self.page.url = url
        await asyncio.sleep(self._config.navigation_delay_seconds)
        await self.load_page_anchors()
        return True

    async def restore(self, record: AnchorRecord) -> HtmlElement | None:
        """Bring the highlight for *record* into view.

        On failure the user is told the text could not be located; no
        retry is scheduled from here.
        """
        anchor = record.anchor
        self.page.scroll_to(anchor.viewport.scroll_y)
        await asyncio.sleep(self._config.settle_seconds)

        resolution = self.resolver.resolve(record.anchor_id, anchor)
        marker = resolution.marker
        reason = resolution.reason

        if marker is None and resolution.text_range is not None:
            result = self.markers.apply(
                resolution.text_range, record.anchor_id, record.color
            )
            if result.outcome is ApplyOutcome.SKIPPED:
                # Text is there, just not wrappable: show it unmarked
                container = resolution.text_range.start_leaf.parent_element
                if container is not None:
                    self.page.scroll_into_view(container)
                return None
            marker = result.marker
            reason = result.reason

        if marker is None:
            logger.info("Could not restore anchor %s: %s", record.anchor_id, reason)
            self._notifier.notify(Notice.of(NoticeKind.NOT_LOCATED, record.anchor_id))
            return None

        self.page.scroll_into_view(marker)
        self.run_in_background(self.markers.pulse(marker, self._config.pulse_seconds))
        return marker

    def remove_highlight(self, anchor_id: str) -> bool:
        removed = self.markers.remove(anchor_id)
        if removed:
            logger.debug("Removed highlight %s", anchor_id)
        return removed

    # --- background work ---

    def run_in_background(
        self, coro: Coroutine[Any, Any, Any]
    ) -> asyncio.Task[Any]:
        """Fire-and-forget *coro*, tracked until it finishes."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def wait_background(self) -> None:
        """Wait for pulses and fire-and-forget restores to finish."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks))
