"""Text search over the tree: containers and exact in-leaf ranges.

Matching is an exact, case-sensitive substring test against one text leaf
at a time. Text that only appears when two or more leaves are concatenated
(for example split by an inline element) is deliberately not matched.
"""

from __future__ import annotations

from lxml.html import HtmlElement

from anchorlight.anchoring.text_nodes import (
    TextRange,
    iter_text_leaves,
    skip_invisible,
)

MIN_SEARCH_LENGTH = 3


class TextLocator:
    """Finds text-bearing leaves containing a target string.

    Args:
        min_text_length: Shortest text ``find_container_with_text`` will
            search for. Shorter text must resolve through its structural
            path.
    """

    def __init__(self, min_text_length: int = MIN_SEARCH_LENGTH) -> None:
        self.min_text_length = min_text_length

    def find_container_with_text(
        self, root: HtmlElement, text: str
    ) -> HtmlElement | None:
        """Return the element holding the first visible leaf containing *text*.

        Hidden subtrees and script/style/noscript/template content are
        skipped.
        """
        if not text or len(text) < self.min_text_length:
            return None

        for leaf in iter_text_leaves(root, skip=skip_invisible):
            if text in leaf.value:
                return leaf.parent_element
        return None

    def find_range_in_container(
        self, container: HtmlElement, text: str
    ) -> TextRange | None:
        """Return the first single-leaf range in *container* equal to *text*."""
        if not text:
            return None

        for leaf in iter_text_leaves(container):
            index = leaf.value.find(text)
            if index != -1:
                return TextRange.within(leaf, index, index + len(text))
        return None
