"""Tests for StructuralPathCodec."""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree
from lxml import html as lxml_html

from anchorlight.anchoring.paths import StructuralPathCodec

if TYPE_CHECKING:
    from collections.abc import Callable

    from anchorlight.page import Page


BODY = (
    "<div><p>first</p><ul><li>one</li><li>two <b>bold</b></li></ul></div>"
    "<p>second</p><section><p>third</p><div><p>deep</p></div></section>"
)


class TestEncode:
    """Tests for StructuralPathCodec.encode()."""

    def test_document_root(self, make_page: Callable[..., Page]) -> None:
        """The top element encodes to the fixed root token."""
        page = make_page("<p>x</p>")
        codec = StructuralPathCodec(page.document)
        assert codec.encode(page.document) == "/html"

    def test_body(self, make_page: Callable[..., Page]) -> None:
        """<body> under the top element encodes to the fixed top token."""
        page = make_page("<p>x</p>")
        codec = StructuralPathCodec(page.document)
        assert codec.encode(page.content_root) == "/html/body"

    def test_same_tag_sibling_index(self, make_page: Callable[..., Page]) -> None:
        """Only preceding siblings with the same tag count toward the index."""
        page = make_page("<div>a</div><p>b</p><div>c</div><p>d</p>")
        codec = StructuralPathCodec(page.document)
        second_p = page.content_root[3]
        assert second_p.text == "d"
        assert codec.encode(second_p) == "/html/body/p[2]"

    def test_nested_path(self, make_page: Callable[..., Page]) -> None:
        page = make_page(BODY)
        codec = StructuralPathCodec(page.document)
        bold = page.content_root.find(".//b")
        assert codec.encode(bold) == "/html/body/div[1]/ul[1]/li[2]/b[1]"

    def test_id_shortcut(self, make_page: Callable[..., Page]) -> None:
        """Elements with an id get a short id-keyed path."""
        page = make_page('<div><p id="intro">x</p></div>')
        codec = StructuralPathCodec(page.document)
        p = page.content_root.find(".//p")
        assert codec.encode(p) == '//*[@id="intro"]'

    def test_id_with_double_quote(self, make_page: Callable[..., Page]) -> None:
        """Single quotes are used when the id holds a double quote."""
        page = make_page("<p id='say\"hi'>x</p>")
        codec = StructuralPathCodec(page.document)
        p = page.content_root.find("p")
        path = codec.encode(p)
        assert path == "//*[@id='say\"hi']"
        assert codec.decode(path) is p

    def test_id_with_both_quotes_falls_back(
        self, make_page: Callable[..., Page]
    ) -> None:
        """Ids that cannot be quoted use the positional path."""
        page = make_page("<p>x</p>")
        p = page.content_root.find("p")
        p.set("id", "it's \"odd\"")
        codec = StructuralPathCodec(page.document)
        assert codec.encode(p) == "/html/body/p[1]"

    def test_ancestor_id_shortens_path(self, make_page: Callable[..., Page]) -> None:
        """Descendants of an element with an id build on its shortcut."""
        page = make_page('<div id="main"><p>a</p><p>b</p></div>')
        codec = StructuralPathCodec(page.document)
        second = page.content_root.find(".//p[2]")
        assert codec.encode(second) == '//*[@id="main"]/p[2]'

    def test_detached_node(self, make_page: Callable[..., Page]) -> None:
        """A node with no parent chain encodes to an empty path."""
        page = make_page("<p>x</p>")
        codec = StructuralPathCodec(page.document)
        assert codec.encode(lxml_html.Element("p")) == ""

    def test_node_removed_from_tree(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<div><p>x</p></div>")
        codec = StructuralPathCodec(page.document)
        div = page.content_root.find("div")
        p = div.find("p")
        page.content_root.remove(div)
        assert codec.encode(p) == ""

    def test_comment_is_not_encodable(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>x</p><!-- note -->")
        codec = StructuralPathCodec(page.document)
        comment = page.content_root[-1]
        assert isinstance(comment, etree._Comment)
        assert codec.encode(comment) == ""


class TestDecode:
    """Tests for StructuralPathCodec.decode()."""

    def test_round_trip_every_element(self, make_page: Callable[..., Page]) -> None:
        """encode then decode recovers the same element for every element."""
        page = make_page(BODY)
        codec = StructuralPathCodec(page.document)
        elements = [el for el in page.document.iter() if isinstance(el.tag, str)]
        assert len(elements) > 10
        for element in elements:
            path = codec.encode(element)
            assert path, element.tag
            assert codec.decode(path) is element, path

    def test_empty_path(self, make_page: Callable[..., Page]) -> None:
        codec = StructuralPathCodec(make_page("<p>x</p>").document)
        assert codec.decode("") is None

    def test_no_match(self, make_page: Callable[..., Page]) -> None:
        codec = StructuralPathCodec(make_page("<p>x</p>").document)
        assert codec.decode("/html/body/table[3]") is None

    def test_malformed_path_never_raises(self, make_page: Callable[..., Page]) -> None:
        codec = StructuralPathCodec(make_page("<p>x</p>").document)
        assert codec.decode("/html/body/p[") is None
        assert codec.decode("///") is None

    def test_non_node_results(self, make_page: Callable[..., Page]) -> None:
        """Numbers, strings and text results are not containers."""
        codec = StructuralPathCodec(make_page("<p>x</p>").document)
        assert codec.decode("count(//p)") is None
        assert codec.decode("string(//p)") is None
        assert codec.decode("//p/text()") is None

    def test_decode_uses_live_tree(self, make_page: Callable[..., Page]) -> None:
        """A path captured earlier finds whatever now sits at that position."""
        page = make_page("<p>old</p>")
        codec = StructuralPathCodec(page.document)
        path = codec.encode(page.content_root.find("p"))
        page.content_root.remove(page.content_root.find("p"))
        replacement = lxml_html.fragment_fromstring("<p>new</p>")
        page.content_root.append(replacement)
        assert codec.decode(path) is replacement
