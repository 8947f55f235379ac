"""In-process host page: an lxml document plus the state a browser owns.

The anchoring core never renders or scrolls anything itself. It asks the
page to scroll, reads the user's selection from it, and subscribes to its
mutation feed. Code that changes the tree calls ``notify_mutation()``,
standing in for a browser's MutationObserver records.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from lxml import html as lxml_html
from lxml.html import HtmlElement

from anchorlight.anchoring.models import Viewport
from anchorlight.anchoring.text_nodes import TextRange

logger = logging.getLogger(__name__)

MutationListener = Callable[[], None]


@dataclass
class Page:
    """A loaded document and its viewport.

    Attributes:
        document: Top element of the parsed document.
        url: Current page URL.
        title: Document title.
        scroll_x: Horizontal scroll offset.
        scroll_y: Vertical scroll offset.
        viewport_width: Viewport width in CSS pixels.
        viewport_height: Viewport height in CSS pixels.
        document_height: Full scrollable height, as reported by the host.
        selection: The user's current selection, if any.
        scrolled_into_view: Element most recently centred in the viewport.
    """

    document: HtmlElement
    url: str = ""
    title: str = ""
    scroll_x: int = 0
    scroll_y: int = 0
    viewport_width: int = 0
    viewport_height: int = 0
    document_height: int = 0
    selection: TextRange | None = None
    scrolled_into_view: HtmlElement | None = None
    _listeners: list[MutationListener] = field(default_factory=list, repr=False)

    @classmethod
    def from_html(cls, html: str, url: str = "", title: str | None = None) -> Page:
        """Parse *html* into a page. The title defaults to ``<title>``."""
        document = lxml_html.document_fromstring(html)
        if title is None:
            title_el = document.find(".//title")
            title = (title_el.text_content().strip() if title_el is not None else "")
        return cls(document=document, url=url, title=title)

    @property
    def content_root(self) -> HtmlElement:
        """``<body>``, or the document itself when there is none."""
        body = self.document.find("body")
        return body if body is not None else self.document

    @property
    def viewport(self) -> Viewport:
        return Viewport(
            scroll_x=self.scroll_x,
            scroll_y=self.scroll_y,
            width=self.viewport_width,
            height=self.viewport_height,
            document_height=self.document_height,
        )

    def scroll_to(self, y: int) -> None:
        self.scroll_y = max(int(y), 0)

    def scroll_into_view(self, element: HtmlElement) -> None:
        self.scrolled_into_view = element

    def clear_selection(self) -> None:
        self.selection = None

    # --- mutation feed ---

    def add_mutation_listener(self, listener: MutationListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_mutation_listener(self, listener: MutationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def has_mutation_listeners(self) -> bool:
        return bool(self._listeners)

    def notify_mutation(self) -> None:
        """Deliver one mutation record to every listener."""
        # list() snapshot: listeners may detach themselves while running
        for listener in list(self._listeners):
            listener()

    def serialize(self) -> str:
        return lxml_html.tostring(self.document, encoding="unicode")
