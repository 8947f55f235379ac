"""Highlight marker insertion and removal.

Wraps a resolved ``TextRange`` in a ``<span>`` marker tagged with the
owning anchor's identifier. Two shapes are supported:

- single leaf: the leaf is split into before / marked / after;
- sibling leaves: both endpoints are direct text of the same parent, so the
  content between them (whole child elements included) moves into the
  marker.

Anything else would need to split elements that are only partly covered.
Those ranges are skipped rather than risk corrupting the tree.
"""

from __future__ import annotations

import asyncio
import logging

from lxml import html as lxml_html
from lxml.html import HtmlElement

from anchorlight.anchoring.marker_constants import (
    ANCHOR_ID_ATTR,
    COLOR_ATTR,
    COLOR_STYLE_TEMPLATE,
    MARKER_CLASS,
    MARKER_TAG,
    MARKER_XPATH,
    PULSE_CLASS,
)
from anchorlight.anchoring.models import ApplyResult
from anchorlight.anchoring.text_nodes import TextLeaf, TextRange
from anchorlight.config import DEFAULT_HIGHLIGHT_COLOR

logger = logging.getLogger(__name__)


def _create_marker(anchor_id: str, color: str) -> HtmlElement:
    marker = lxml_html.Element(MARKER_TAG)
    marker.set("class", MARKER_CLASS)
    marker.set(ANCHOR_ID_ATTR, anchor_id)
    marker.set(COLOR_ATTR, color)
    marker.set("style", COLOR_STYLE_TEMPLATE.format(color))
    return marker


def _child_slot(parent: HtmlElement, leaf: TextLeaf) -> int | None:
    """Insertion index in *parent* just after *leaf*, if it is direct text.

    ``parent.text`` sits before child 0; a child's tail sits after it.
    """
    if leaf.slot == "text":
        return 0 if leaf.owner is parent else None
    if leaf.owner.getparent() is parent:
        return parent.index(leaf.owner) + 1
    return None


class MarkerApplier:
    """Installs and removes highlight markers within one document.

    Args:
        document_root: Top element of the document markers live in.
        default_color: Color used when none is given.
    """

    def __init__(
        self,
        document_root: HtmlElement,
        default_color: str = DEFAULT_HIGHLIGHT_COLOR,
    ) -> None:
        self._root = document_root
        self.default_color = default_color

    def find(self, anchor_id: str) -> HtmlElement | None:
        """Return the marker for *anchor_id*, if one is in the tree."""
        if not anchor_id:
            return None
        matches = self._root.getroottree().xpath(MARKER_XPATH, anchor_id=anchor_id)
        return matches[0] if matches else None

    def apply(
        self,
        text_range: TextRange,
        anchor_id: str,
        color: str | None = None,
    ) -> ApplyResult:
        """Wrap *text_range* in a marker for *anchor_id*.

        Returns the existing marker when one is already present for the
        identifier, so at most one marker per anchor ever exists.
        """
        if not anchor_id:
            return ApplyResult.rejected("anchor id is empty")

        existing = self.find(anchor_id)
        if existing is not None:
            return ApplyResult.applied_with(existing)

        color = color or self.default_color
        start, end = text_range.start_leaf, text_range.end_leaf

        if not start.is_attached() or not end.is_attached():
            return ApplyResult.rejected("range leaf is detached from the tree")
        if not 0 <= text_range.start_offset <= len(start.value):
            return ApplyResult.rejected("start offset outside its text leaf")
        if not 0 <= text_range.end_offset <= len(end.value):
            return ApplyResult.rejected("end offset outside its text leaf")

        if text_range.is_single_leaf:
            if text_range.is_collapsed:
                return ApplyResult.rejected("range is collapsed")
            marker = self._wrap_single_leaf(text_range, anchor_id, color)
            return ApplyResult.applied_with(marker)

        return self._wrap_sibling_leaves(text_range, anchor_id, color)

    def _wrap_single_leaf(
        self, text_range: TextRange, anchor_id: str, color: str
    ) -> HtmlElement:
        leaf = text_range.start_leaf
        value = leaf.value
        before = value[: text_range.start_offset]
        marked = value[text_range.start_offset : text_range.end_offset]
        after = value[text_range.end_offset :]

        marker = _create_marker(anchor_id, color)
        marker.text = marked
        marker.tail = after or None

        parent = leaf.parent_element
        assert parent is not None  # checked by apply()
        index = _child_slot(parent, leaf)
        assert index is not None
        leaf.set_value(before)
        parent.insert(index, marker)
        return marker

    def _wrap_sibling_leaves(
        self, text_range: TextRange, anchor_id: str, color: str
    ) -> ApplyResult:
        start, end = text_range.start_leaf, text_range.end_leaf
        parent = start.parent_element
        if parent is None or end.parent_element is not parent:
            logger.warning(
                "Complex highlight structure for %s, skipping marker", anchor_id
            )
            return ApplyResult.skipped("range crosses element boundaries")

        first_index = _child_slot(parent, start)
        end_index = _child_slot(parent, end)
        if first_index is None or end_index is None:
            logger.warning(
                "Complex highlight structure for %s, skipping marker", anchor_id
            )
            return ApplyResult.skipped("range crosses element boundaries")
        if end_index <= first_index:
            return ApplyResult.rejected("range end precedes its start")

        start_value = start.value
        end_value = end.value
        children = list(parent)
        moved = children[first_index:end_index]
        last = moved[-1]  # end leaf is last.tail

        marker = _create_marker(anchor_id, color)
        marker.text = start_value[text_range.start_offset :] or None
        for child in moved:
            marker.append(child)  # moves child (with its tail) out of parent
        last.tail = end_value[: text_range.end_offset] or None
        marker.tail = end_value[text_range.end_offset :] or None

        start.set_value(start_value[: text_range.start_offset])
        parent.insert(first_index, marker)
        return ApplyResult.applied_with(marker)

    def remove(self, anchor_id: str) -> bool:
        """Unwrap the marker for *anchor_id*, keeping its content in place.

        Returns False (not an error) when no marker exists.
        """
        marker = self.find(anchor_id)
        if marker is None:
            return False
        # drop_tag re-parents children and merges text with neighbours
        marker.drop_tag()
        return True

    async def pulse(self, marker: HtmlElement, duration: float) -> None:
        """Flash *marker* once: add the pulse class, remove it after *duration*."""
        marker.classes.add(PULSE_CLASS)
        try:
            await asyncio.sleep(duration)
        finally:
            marker.classes.discard(PULSE_CLASS)

