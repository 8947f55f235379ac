"""Data models for text anchors, pending retries and resolution outcomes.

These are plain dataclasses for in-memory use. The wire form used by the
messaging collaborators (``to_dict``/``from_dict``) keeps the camelCase
keys the capture side has always sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from anchorlight.config import DEFAULT_HIGHLIGHT_COLOR
from anchorlight.errors import MalformedAnchorError

if TYPE_CHECKING:
    from lxml.html import HtmlElement

    from anchorlight.anchoring.text_nodes import TextRange


def _require_mapping(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        msg = f"Anchor data must be an object, got {type(data).__name__}"
        raise MalformedAnchorError(msg)
    return data


def _int_field(data: dict[str, Any], key: str) -> int:
    """Read an optional integer wire field; missing or null means 0."""
    value = data.get(key)
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        msg = f"'{key}' must be an integer, got {value!r}"
        raise MalformedAnchorError(msg)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        msg = f"'{key}' must be an integer, got {value!r}"
        raise MalformedAnchorError(msg) from exc


@dataclass(frozen=True)
class Viewport:
    """Scroll and viewport metadata recorded at capture time.

    Advisory only: used for the approximate scroll before resolution, never
    for resolution correctness.
    """

    scroll_x: int = 0
    scroll_y: int = 0
    width: int = 0
    height: int = 0
    document_height: int = 0


@dataclass(frozen=True)
class Anchor:
    """Immutable description of where a piece of text lives in a document.

    Attributes:
        text: Normalised (trimmed) non-empty text that was selected.
        structural_path: Root-to-node path of the container element.
        text_offset_in_container: Index of ``text`` in the container's full
            text at capture time. Advisory, not authoritative.
        container_tag_name: Lower-case tag name of the container.
        start_offset: Selection start within its first text node. Advisory.
        end_offset: Selection end within its last text node. Advisory.
        viewport: Scroll/viewport metadata.
        url: Page URL at capture time.
        title: Page title at capture time.
    """

    text: str
    structural_path: str = ""
    text_offset_in_container: int = 0
    container_tag_name: str = "unknown"
    start_offset: int = 0
    end_offset: int = 0
    viewport: Viewport = field(default_factory=Viewport)
    url: str = ""
    title: str = ""

    def __post_init__(self) -> None:
        trimmed = (self.text or "").strip()
        if not trimmed:
            msg = "Anchor text must be non-empty"
            raise MalformedAnchorError(msg)
        object.__setattr__(self, "text", trimmed)
        object.__setattr__(
            self, "text_offset_in_container", max(self.text_offset_in_container, 0)
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "url": self.url,
            "title": self.title,
            "scrollX": self.viewport.scroll_x,
            "scrollY": self.viewport.scroll_y,
            "elementPath": self.structural_path,
            "startOffset": self.start_offset,
            "endOffset": self.end_offset,
            "textInParentOffset": self.text_offset_in_container,
            "viewportWidth": self.viewport.width,
            "viewportHeight": self.viewport.height,
            "documentHeight": self.viewport.document_height,
            "parentTagName": self.container_tag_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Anchor:
        """Build an Anchor from its wire form.

        Raises:
            MalformedAnchorError: If ``data`` is not a mapping, ``text`` is
                missing or blank, or a numeric field is not an integer.
        """
        data = _require_mapping(data)
        return cls(
            text=str(data.get("text") or ""),
            structural_path=str(data.get("elementPath") or ""),
            text_offset_in_container=_int_field(data, "textInParentOffset"),
            container_tag_name=str(data.get("parentTagName") or "unknown"),
            start_offset=_int_field(data, "startOffset"),
            end_offset=_int_field(data, "endOffset"),
            viewport=Viewport(
                scroll_x=_int_field(data, "scrollX"),
                scroll_y=_int_field(data, "scrollY"),
                width=_int_field(data, "viewportWidth"),
                height=_int_field(data, "viewportHeight"),
                document_height=_int_field(data, "documentHeight"),
            ),
            url=str(data.get("url") or ""),
            title=str(data.get("title") or ""),
        )


@dataclass(frozen=True)
class AnchorRecord:
    """An Anchor as stored by the persistence collaborator, keyed by note id."""

    anchor_id: str
    anchor: Anchor
    color: str = DEFAULT_HIGHLIGHT_COLOR

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.anchor_id,
            **self.anchor.to_dict(),
            "highlightColor": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnchorRecord:
        data = _require_mapping(data)
        anchor_id = str(data.get("id") or "")
        if not anchor_id:
            msg = "Anchor record requires an 'id'"
            raise MalformedAnchorError(msg)
        return cls(
            anchor_id=anchor_id,
            anchor=Anchor.from_dict(data),
            color=str(data.get("highlightColor") or DEFAULT_HIGHLIGHT_COLOR),
        )


class AnchorState(Enum):
    """Retry lifecycle of one anchor identifier."""

    UNRESOLVED = "unresolved"
    SCHEDULED = "scheduled"
    RESOLVED = "resolved"
    EXPIRED = "expired"


class ObserverState(Enum):
    """Whether the registry is listening for tree mutations."""

    IDLE = "idle"
    WATCHING = "watching"


@dataclass
class PendingAnchor:
    """An anchor awaiting retry. Owned exclusively by the AnchorRegistry."""

    anchor_id: str
    record: AnchorRecord
    created_at: float
    retry_count: int = 0

    @property
    def anchor(self) -> Anchor:
        return self.record.anchor


class ResolvedVia(Enum):
    """Which lookup produced a resolution."""

    EXISTING_MARKER = "existing_marker"
    STRUCTURAL_PATH = "structural_path"
    TEXT_SEARCH = "text_search"


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving an anchor against the current tree.

    Not finding the text is a normal outcome, reported through ``reason``.
    """

    via: ResolvedVia | None = None
    marker: HtmlElement | None = None
    text_range: TextRange | None = None
    reason: str = ""

    @property
    def found(self) -> bool:
        return self.marker is not None or self.text_range is not None

    @classmethod
    def failed(cls, reason: str) -> Resolution:
        return cls(reason=reason)


class ApplyOutcome(Enum):
    APPLIED = "applied"
    SKIPPED = "skipped"
    REJECTED = "rejected"


@dataclass(frozen=True)
class ApplyResult:
    """Tri-state result of wrapping a range with a marker.

    ``SKIPPED`` means the range was valid but could not be wrapped without
    splitting element structure; ``REJECTED`` means the input itself was
    unusable.
    """

    outcome: ApplyOutcome
    marker: HtmlElement | None = None
    reason: str = ""

    @property
    def applied(self) -> bool:
        return self.outcome is ApplyOutcome.APPLIED

    @classmethod
    def applied_with(cls, marker: HtmlElement) -> ApplyResult:
        return cls(ApplyOutcome.APPLIED, marker=marker)

    @classmethod
    def skipped(cls, reason: str) -> ApplyResult:
        return cls(ApplyOutcome.SKIPPED, reason=reason)

    @classmethod
    def rejected(cls, reason: str) -> ApplyResult:
        return cls(ApplyOutcome.REJECTED, reason=reason)
