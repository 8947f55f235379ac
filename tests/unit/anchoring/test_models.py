"""Tests for anchor data models and their wire form."""

from __future__ import annotations

import pytest

from anchorlight.anchoring.models import (
    Anchor,
    AnchorRecord,
    ApplyOutcome,
    ApplyResult,
    PendingAnchor,
    Resolution,
    ResolvedVia,
    Viewport,
)
from anchorlight.config import DEFAULT_HIGHLIGHT_COLOR
from anchorlight.errors import AnchorlightError, MalformedAnchorError


class TestAnchor:
    """Tests for Anchor construction invariants."""

    def test_text_is_trimmed(self) -> None:
        assert Anchor(text="  hello world \n").text == "hello world"

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_text_rejected(self, text: str) -> None:
        with pytest.raises(MalformedAnchorError):
            Anchor(text=text)

    def test_malformed_is_value_error(self) -> None:
        """Callers validating input can catch a plain ValueError."""
        assert issubclass(MalformedAnchorError, ValueError)
        assert issubclass(MalformedAnchorError, AnchorlightError)

    def test_negative_offset_clamped(self) -> None:
        assert Anchor(text="abc", text_offset_in_container=-1).text_offset_in_container == 0

    def test_frozen(self) -> None:
        anchor = Anchor(text="abc")
        with pytest.raises(AttributeError):
            anchor.text = "other"  # type: ignore[misc]


class TestWireForm:
    """Tests for to_dict()/from_dict() using the capture wire keys."""

    def test_anchor_keys(self) -> None:
        anchor = Anchor(
            text="hello world",
            structural_path="/html/body/p[1]",
            text_offset_in_container=4,
            container_tag_name="p",
            viewport=Viewport(
                scroll_x=0, scroll_y=320, width=1280, height=720, document_height=4000
            ),
            url="https://example.com/a",
            title="A",
        )

        assert anchor.to_dict() == {
            "text": "hello world",
            "url": "https://example.com/a",
            "title": "A",
            "scrollX": 0,
            "scrollY": 320,
            "elementPath": "/html/body/p[1]",
            "startOffset": 0,
            "endOffset": 0,
            "textInParentOffset": 4,
            "viewportWidth": 1280,
            "viewportHeight": 720,
            "documentHeight": 4000,
            "parentTagName": "p",
        }

    def test_record_round_trip(self) -> None:
        record = AnchorRecord(
            anchor_id="note-1",
            anchor=Anchor(text="hello world", structural_path="/html/body/p[1]"),
            color="#90CAF9",
        )

        data = record.to_dict()

        assert data["id"] == "note-1"
        assert data["highlightColor"] == "#90CAF9"
        assert AnchorRecord.from_dict(data) == record

    def test_from_dict_defaults(self) -> None:
        """Missing optional keys fall back to neutral values."""
        record = AnchorRecord.from_dict({"id": "n", "text": "abc"})

        assert record.color == DEFAULT_HIGHLIGHT_COLOR
        assert record.anchor.structural_path == ""
        assert record.anchor.container_tag_name == "unknown"
        assert record.anchor.viewport == Viewport()

    def test_from_dict_requires_id(self) -> None:
        with pytest.raises(MalformedAnchorError):
            AnchorRecord.from_dict({"text": "abc"})

    def test_from_dict_requires_text(self) -> None:
        with pytest.raises(MalformedAnchorError):
            AnchorRecord.from_dict({"id": "n", "text": ""})

    def test_from_dict_requires_mapping(self) -> None:
        with pytest.raises(MalformedAnchorError, match="must be an object"):
            AnchorRecord.from_dict("note-1")  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["12.5", "abc", [1], True])
    def test_from_dict_rejects_non_integer_fields(self, value: object) -> None:
        with pytest.raises(MalformedAnchorError, match="scrollY"):
            AnchorRecord.from_dict({"id": "n", "text": "abc", "scrollY": value})

    def test_from_dict_accepts_numeric_strings(self) -> None:
        record = AnchorRecord.from_dict(
            {"id": "n", "text": "abc", "scrollY": "320", "startOffset": 2}
        )
        assert record.anchor.viewport.scroll_y == 320
        assert record.anchor.start_offset == 2


class TestResults:
    """Tests for Resolution, ApplyResult and PendingAnchor helpers."""

    def test_failed_resolution(self) -> None:
        resolution = Resolution.failed("container not found")
        assert not resolution.found
        assert resolution.via is None
        assert resolution.reason == "container not found"

    def test_found_with_marker(self) -> None:
        resolution = Resolution(via=ResolvedVia.EXISTING_MARKER, marker=object())  # type: ignore[arg-type]
        assert resolution.found

    def test_apply_result_variants(self) -> None:
        assert ApplyResult.skipped("x").outcome is ApplyOutcome.SKIPPED
        assert ApplyResult.rejected("y").outcome is ApplyOutcome.REJECTED
        assert not ApplyResult.skipped("x").applied
        assert ApplyResult.rejected("y").marker is None

    def test_pending_anchor_exposes_anchor(self) -> None:
        record = AnchorRecord(anchor_id="n", anchor=Anchor(text="abc"))
        pending = PendingAnchor(anchor_id="n", record=record, created_at=0.0)
        assert pending.anchor is record.anchor
        assert pending.retry_count == 0
