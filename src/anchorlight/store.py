"""Anchor storage collaborator.

The anchoring core hands captured anchors to a store and later asks it for
every anchor recorded against the current page. ``AnchorStore`` is the
contract; ``InMemoryAnchorStore`` backs the CLI and the tests.
"""

from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import urlsplit, urlunsplit
from uuid import uuid4

from anchorlight.anchoring.models import Anchor, AnchorRecord
from anchorlight.config import DEFAULT_HIGHLIGHT_COLOR

logger = logging.getLogger(__name__)


def normalize_url(url: str) -> str:
    """Scheme + host + path + query; the fragment never identifies a page."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    return urlunsplit((parts.scheme, parts.netloc, parts.path, parts.query, ""))


class AnchorStore(Protocol):
    """Persistence contract consumed by the orchestrator.

    Implementations raise ``TransportUnavailableError`` when the channel to
    the backing store is gone for good.
    """

    async def save(
        self, anchor: Anchor, color: str = DEFAULT_HIGHLIGHT_COLOR
    ) -> AnchorRecord: ...

    async def list_for_url(self, url: str) -> list[AnchorRecord]: ...

    async def get(self, anchor_id: str) -> AnchorRecord | None: ...


class InMemoryAnchorStore:
    """Dict-backed store keyed by generated UUID note identifiers."""

    def __init__(self, records: list[AnchorRecord] | None = None) -> None:
        self._records: dict[str, AnchorRecord] = {}
        for record in records or []:
            self._records[record.anchor_id] = record

    async def save(
        self, anchor: Anchor, color: str = DEFAULT_HIGHLIGHT_COLOR
    ) -> AnchorRecord:
        record = AnchorRecord(anchor_id=str(uuid4()), anchor=anchor, color=color)
        self._records[record.anchor_id] = record
        logger.debug("Stored anchor %s for %s", record.anchor_id, anchor.url)
        return record

    async def list_for_url(self, url: str) -> list[AnchorRecord]:
        target = normalize_url(url)
        return [
            record
            for record in self._records.values()
            if normalize_url(record.anchor.url) == target
        ]

    async def get(self, anchor_id: str) -> AnchorRecord | None:
        return self._records.get(anchor_id)

    def __len__(self) -> int:
        return len(self._records)
