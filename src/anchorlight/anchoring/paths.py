"""Structural paths: stable root-to-node routes for element lookup.

A path is an XPath expression. Elements with an ``id`` get a short
``//*[@id="..."]`` form; everything else is built from the top element
down as ``tag[k]`` steps, where ``k`` counts only preceding siblings with
the same tag (conventional XPath position semantics).
"""

from __future__ import annotations

import logging

from lxml import etree
from lxml.html import HtmlElement

logger = logging.getLogger(__name__)


def _id_shortcut(element_id: str) -> str | None:
    """XPath keyed by *element_id*, or None when it cannot be quoted."""
    if '"' not in element_id:
        return f'//*[@id="{element_id}"]'
    if "'" not in element_id:
        return f"//*[@id='{element_id}']"
    return None


class StructuralPathCodec:
    """Encodes elements to structural paths and back, for one document.

    Args:
        document_root: Top element of the document (``<html>`` for HTML).
    """

    def __init__(self, document_root: HtmlElement) -> None:
        self._root = document_root

    def encode(self, node: HtmlElement) -> str:
        """Return the structural path of *node*.

        Returns an empty string for detached nodes and non-elements; callers
        must treat that as unresolved.
        """
        if not isinstance(getattr(node, "tag", None), str):
            return ""

        element_id = node.get("id")
        if element_id:
            shortcut = _id_shortcut(element_id)
            if shortcut is not None:
                return shortcut

        if node is self._root:
            return f"/{node.tag}"

        parent = node.getparent()
        if parent is None:
            return ""

        if parent is self._root and node.tag == "body":
            return f"/{parent.tag}/body"

        parent_path = self.encode(parent)
        if not parent_path:
            return ""

        index = 1
        for sibling in node.itersiblings(preceding=True):
            if sibling.tag == node.tag:
                index += 1
        return f"{parent_path}/{node.tag}[{index}]"

    def decode(self, path: str) -> HtmlElement | None:
        """Evaluate *path* against the live document.

        Never raises: malformed paths and paths matching nothing (or
        matching something other than an element) return None.
        """
        if not path:
            return None
        try:
            result = self._root.getroottree().xpath(path)
        except etree.XPathError as exc:
            logger.debug("Structural path %r did not evaluate: %s", path, exc)
            return None

        if not isinstance(result, list) or not result:
            return None
        first = result[0]
        # Text, attribute and comment results are not containers
        if isinstance(first, HtmlElement):
            return first
        return None
