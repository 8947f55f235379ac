"""User-facing notices raised by the anchoring core.

The core only decides that a notice is due and what it says. Rendering
(toast, side panel, console line) belongs to whoever implements
``Notifier``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

logger = logging.getLogger(__name__)


class NoticeKind(Enum):
    SAVED = "saved"
    NOT_LOCATED = "not_located"
    EXPIRED = "expired"
    UNSUPPORTED_PAGE = "unsupported_page"


# Default wording; presentation layers are free to ignore it
NOTICE_MESSAGES: dict[NoticeKind, str] = {
    NoticeKind.SAVED: "Saved",
    NoticeKind.NOT_LOCATED: (
        "Could not locate the exact text. It may have been modified."
    ),
    NoticeKind.EXPIRED: "Highlight could not be restored on this page.",
    NoticeKind.UNSUPPORTED_PAGE: "Note taking is not supported on this type of page.",
}


@dataclass(frozen=True)
class Notice:
    kind: NoticeKind
    message: str
    anchor_id: str | None = None

    @classmethod
    def of(cls, kind: NoticeKind, anchor_id: str | None = None) -> Notice:
        return cls(kind=kind, message=NOTICE_MESSAGES[kind], anchor_id=anchor_id)


class Notifier(Protocol):
    """Presentation collaborator for notices."""

    def notify(self, notice: Notice) -> None: ...


class LoggingNotifier:
    """Notifier that writes notices to the log. Used when no UI is attached."""

    def notify(self, notice: Notice) -> None:
        logger.info(
            "[NOTICE] %s: %s (anchor=%s)",
            notice.kind.value,
            notice.message,
            notice.anchor_id,
        )
