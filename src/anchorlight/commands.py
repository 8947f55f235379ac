"""Named-command entry points for cross-context messaging.

A transport delivers messages of the form ``{"action": ..., ...}``; each
action maps to one orchestrator entry point and gets a small
acknowledgment back. Once the host context is gone (registry halted) no
response is produced at all, so callers can tell "not ready" from "gone".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from anchorlight.anchoring.models import AnchorRecord
from anchorlight.errors import MalformedAnchorError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from anchorlight.anchoring.orchestrator import RestorationOrchestrator

logger = logging.getLogger(__name__)

Response = dict[str, Any]


class CommandDispatcher:
    """Routes action messages to a RestorationOrchestrator."""

    def __init__(self, orchestrator: RestorationOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._handlers: dict[str, Callable[[dict[str, Any]], Awaitable[Response]]] = {
            "captureNote": self._capture_note,
            "highlightSaved": self._highlight_saved,
            "showSaveConfirmation": self._show_save_confirmation,
            "restoreNote": self._restore_note,
            "removeHighlight": self._remove_highlight,
            "ping": self._ping,
        }

    @property
    def actions(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, message: dict[str, Any]) -> Response | None:
        """Handle one message and return its acknowledgment payload."""
        if self._orchestrator.is_halted:
            return None

        action = message.get("action")
        handler = self._handlers.get(str(action))
        if handler is None:
            logger.debug("Unknown action %r", action)
            return {"error": "Unknown action"}

        try:
            return await handler(message)
        except MalformedAnchorError as exc:
            logger.warning("Rejected %s message: %s", action, exc)
            return {"error": str(exc)}

    async def _capture_note(self, message: dict[str, Any]) -> Response:
        anchor = self._orchestrator.capture()
        return {"noteData": anchor.to_dict() if anchor is not None else None}

    async def _highlight_saved(self, message: dict[str, Any]) -> Response:
        note_id = str(message.get("noteId") or "")
        result = self._orchestrator.highlight_selection(
            note_id, message.get("highlightColor")
        )
        return {"success": result.applied}

    async def _show_save_confirmation(self, message: dict[str, Any]) -> Response:
        record = AnchorRecord.from_dict(message.get("noteData") or {})
        self._orchestrator.confirm_saved(record)
        return {"success": True}

    async def _restore_note(self, message: dict[str, Any]) -> Response:
        record = AnchorRecord.from_dict(message.get("noteData") or {})
        # Acknowledge now; scrolling and settling happen in the background
        self._orchestrator.run_in_background(self._orchestrator.restore(record))
        return {"success": True}

    async def _remove_highlight(self, message: dict[str, Any]) -> Response:
        self._orchestrator.remove_highlight(str(message.get("noteId") or ""))
        return {"success": True}

    async def _ping(self, message: dict[str, Any]) -> Response:
        return {"status": "ok"}
