"""Anchor resolution: structural path first, text search as fallback.

Precedence (first success wins):

1. an existing marker for the anchor identifier;
2. the container named by the anchor's structural path;
3. the first visible container holding the text anywhere under the
   content root.

Given a container, the exact text must sit inside one of its text leaves.
Failing any of these is a normal "not yet locatable" outcome, not an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from anchorlight.anchoring.models import Resolution, ResolvedVia
from anchorlight.errors import MalformedAnchorError

if TYPE_CHECKING:
    from collections.abc import Callable

    from lxml.html import HtmlElement

    from anchorlight.anchoring.locator import TextLocator
    from anchorlight.anchoring.markers import MarkerApplier
    from anchorlight.anchoring.models import Anchor
    from anchorlight.anchoring.paths import StructuralPathCodec

logger = logging.getLogger(__name__)

CONTAINER_NOT_FOUND = "container not found"
TEXT_NOT_IN_CONTAINER = "text not found in container"


class AnchorResolver:
    """Resolves anchors against the current tree.

    Args:
        codec: Structural path codec for the document.
        locator: Text search helper.
        markers: Marker applier, used to detect existing markers.
        content_root: Callable returning the element text search starts
            from. A callable because hosts may swap ``<body>`` on
            navigation.
    """

    def __init__(
        self,
        codec: StructuralPathCodec,
        locator: TextLocator,
        markers: MarkerApplier,
        content_root: Callable[[], HtmlElement],
    ) -> None:
        self._codec = codec
        self._locator = locator
        self._markers = markers
        self._content_root = content_root

    def resolve(self, anchor_id: str, anchor: Anchor) -> Resolution:
        """Locate *anchor* in the tree.

        Raises:
            MalformedAnchorError: If the anchor text is empty.
        """
        if not anchor.text or not anchor.text.strip():
            msg = f"Anchor {anchor_id!r} has empty text"
            raise MalformedAnchorError(msg)

        existing = self._markers.find(anchor_id)
        if existing is not None:
            return Resolution(via=ResolvedVia.EXISTING_MARKER, marker=existing)

        via = ResolvedVia.STRUCTURAL_PATH
        container = self._codec.decode(anchor.structural_path)
        if container is None:
            via = ResolvedVia.TEXT_SEARCH
            container = self._locator.find_container_with_text(
                self._content_root(), anchor.text
            )

        if container is None:
            logger.debug("Anchor %s: %s", anchor_id, CONTAINER_NOT_FOUND)
            return Resolution.failed(CONTAINER_NOT_FOUND)

        text_range = self._locator.find_range_in_container(container, anchor.text)
        if text_range is None:
            logger.debug(
                "Anchor %s: %s (<%s> via %s)",
                anchor_id,
                TEXT_NOT_IN_CONTAINER,
                container.tag,
                via.value,
            )
            return Resolution.failed(TEXT_NOT_IN_CONTAINER)

        return Resolution(via=via, text_range=text_range)
