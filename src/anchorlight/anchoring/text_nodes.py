"""Text-bearing leaves and ranges over an lxml tree.

lxml has no text-node objects: character data lives on elements as
``.text`` (before the first child) and ``.tail`` (after the element,
inside its parent). A ``TextLeaf`` names one of those slots so the rest of
the package can walk, slice and wrap text the way a DOM tree walker would.

Walk order matches the browser's ``SHOW_TEXT`` tree walker: an element's
``.text``, then each child's subtree followed by that child's ``.tail``.
"""

# Pattern: Functional Core (pure traversal helpers, no logging, no I/O)

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Literal

from lxml.html import HtmlElement

LeafSlot = Literal["text", "tail"]

# Subtrees that never carry readable content
NON_CONTENT_TAGS = frozenset(("script", "style", "noscript", "template"))


@dataclass(frozen=True)
class TextLeaf:
    """One text-bearing slot of an element.

    Attributes:
        owner: Element holding the string.
        slot: ``"text"`` for ``owner.text``, ``"tail"`` for ``owner.tail``.
    """

    owner: HtmlElement
    slot: LeafSlot

    @property
    def value(self) -> str:
        return getattr(self.owner, self.slot) or ""

    def set_value(self, new_value: str) -> None:
        setattr(self.owner, self.slot, new_value or None)

    @property
    def parent_element(self) -> HtmlElement | None:
        """Element whose content this leaf belongs to."""
        if self.slot == "text":
            return self.owner
        return self.owner.getparent()

    def is_attached(self) -> bool:
        return self.parent_element is not None


@dataclass(frozen=True)
class TextRange:
    """A span of characters between two leaf positions.

    Offsets are local to their leaf. ``end_offset`` is exclusive.
    """

    start_leaf: TextLeaf
    start_offset: int
    end_leaf: TextLeaf
    end_offset: int

    @classmethod
    def within(cls, leaf: TextLeaf, start: int, end: int) -> TextRange:
        """Range covering ``leaf.value[start:end]``."""
        return cls(leaf, start, leaf, end)

    @property
    def is_single_leaf(self) -> bool:
        return self.start_leaf == self.end_leaf

    @property
    def is_collapsed(self) -> bool:
        return self.is_single_leaf and self.start_offset >= self.end_offset

    @property
    def text(self) -> str:
        """Characters covered by the range, across leaves in document order."""
        if self.is_single_leaf:
            return self.start_leaf.value[self.start_offset : self.end_offset]

        parts: list[str] = []
        inside = False
        for leaf in iter_text_leaves(document_root(self.start_leaf.owner)):
            if leaf == self.start_leaf:
                inside = True
                parts.append(leaf.value[self.start_offset :])
            elif leaf == self.end_leaf:
                if inside:
                    parts.append(leaf.value[: self.end_offset])
                break
            elif inside:
                parts.append(leaf.value)
        return "".join(parts) if inside else ""


def document_root(element: HtmlElement) -> HtmlElement:
    """Topmost element of the tree *element* currently belongs to."""
    return element.getroottree().getroot()


def _is_element(node: object) -> bool:
    # Comments and processing instructions use a callable as their tag
    return isinstance(getattr(node, "tag", None), str)


def iter_text_leaves(
    root: HtmlElement,
    skip: Callable[[HtmlElement], bool] | None = None,
) -> Iterator[TextLeaf]:
    """Yield non-empty text leaves under *root* in document order.

    ``root.tail`` is outside the subtree and never yielded. When *skip*
    returns True for a child element its whole subtree is pruned, but the
    child's tail is still yielded since it belongs to the parent.
    """
    if root.text:
        yield TextLeaf(root, "text")
    for child in root:
        if _is_element(child) and not (skip is not None and skip(child)):
            yield from iter_text_leaves(child, skip)
        if child.tail:
            yield TextLeaf(child, "tail")


def text_content(element: HtmlElement) -> str:
    """Concatenated text of every leaf under *element* (comments excluded)."""
    return "".join(leaf.value for leaf in iter_text_leaves(element))


def _style_declarations(style: str) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for chunk in style.split(";"):
        name, sep, value = chunk.partition(":")
        if not sep:
            continue
        value = value.replace("!important", "")
        declarations[name.strip().lower()] = value.strip().lower()
    return declarations


def is_hidden(element: HtmlElement) -> bool:
    """Whether *element* is hidden by attribute or inline style."""
    if "hidden" in element.attrib:
        return True
    if (element.get("aria-hidden") or "").strip().lower() == "true":
        return True
    style = element.get("style")
    if not style:
        return False
    declarations = _style_declarations(style)
    return (
        declarations.get("display") == "none"
        or declarations.get("visibility") == "hidden"
    )


def is_non_content(element: HtmlElement) -> bool:
    """Script, style and other containers that never render text."""
    return str(element.tag).lower() in NON_CONTENT_TAGS


def skip_invisible(element: HtmlElement) -> bool:
    """Subtree filter used by text search: hidden or non-content."""
    return is_non_content(element) or is_hidden(element)


def common_ancestor(text_range: TextRange) -> HtmlElement | None:
    """Nearest element containing both endpoints of *text_range*."""
    start_parent = text_range.start_leaf.parent_element
    end_parent = text_range.end_leaf.parent_element
    if start_parent is None or end_parent is None:
        return None
    if start_parent is end_parent:
        return start_parent

    start_chain = [start_parent, *start_parent.iterancestors()]
    for candidate in [end_parent, *end_parent.iterancestors()]:
        for ancestor in start_chain:
            if ancestor is candidate:
                return candidate
    return None

