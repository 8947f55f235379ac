"""Shared pytest fixtures for anchorlight tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from anchorlight.anchoring.models import Anchor, AnchorRecord, Viewport
from anchorlight.config import DEFAULT_HIGHLIGHT_COLOR, AnchorConfig
from anchorlight.page import Page

if TYPE_CHECKING:
    from collections.abc import Callable

    from anchorlight.notifications import Notice, NoticeKind

SAMPLE_URL = "https://example.com/articles/anchors"


class RecordingNotifier:
    """Notifier that keeps every notice for later assertions."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def kinds(self) -> list[NoticeKind]:
        return [notice.kind for notice in self.notices]


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def fast_config() -> AnchorConfig:
    """Millisecond timings so retry and debounce tests finish quickly."""
    return AnchorConfig(
        retry_base_seconds=0.01,
        debounce_seconds=0.02,
        observer_cap_seconds=5.0,
        settle_seconds=0.0,
        pulse_seconds=0.01,
        navigation_delay_seconds=0.0,
    )


@pytest.fixture
def make_page() -> Callable[..., Page]:
    """Build a Page from body markup."""

    def _make(body: str, url: str = SAMPLE_URL, title: str = "Anchors") -> Page:
        html = (
            f"<html><head><title>{title}</title></head>"
            f"<body>{body}</body></html>"
        )
        return Page.from_html(html, url=url)

    return _make


@pytest.fixture
def make_record() -> Callable[..., AnchorRecord]:
    """Build an AnchorRecord with sensible defaults."""

    def _make(
        text: str,
        structural_path: str = "",
        anchor_id: str = "note-1",
        url: str = SAMPLE_URL,
        color: str = DEFAULT_HIGHLIGHT_COLOR,
        scroll_y: int = 0,
    ) -> AnchorRecord:
        anchor = Anchor(
            text=text,
            structural_path=structural_path,
            url=url,
            viewport=Viewport(scroll_y=scroll_y),
        )
        return AnchorRecord(anchor_id=anchor_id, anchor=anchor, color=color)

    return _make
