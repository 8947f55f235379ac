"""Tests for TextLocator."""

from __future__ import annotations

from typing import TYPE_CHECKING

from anchorlight.anchoring.locator import MIN_SEARCH_LENGTH, TextLocator

if TYPE_CHECKING:
    from collections.abc import Callable

    from anchorlight.page import Page


class TestFindContainerWithText:
    """Tests for TextLocator.find_container_with_text()."""

    def test_finds_innermost_holder(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>first</p><div><span>hello world</span></div>")
        container = TextLocator().find_container_with_text(
            page.content_root, "hello world"
        )
        assert container is not None
        assert container.tag == "span"

    def test_first_match_in_document_order(
        self, make_page: Callable[..., Page]
    ) -> None:
        page = make_page('<p id="a">hello world</p><p id="b">hello world</p>')
        container = TextLocator().find_container_with_text(
            page.content_root, "hello world"
        )
        assert container is not None
        assert container.get("id") == "a"

    def test_tail_text_belongs_to_parent(self, make_page: Callable[..., Page]) -> None:
        """Text after an inline element is found in the enclosing element."""
        page = make_page("<p><b>note:</b> hello world</p>")
        container = TextLocator().find_container_with_text(
            page.content_root, "hello world"
        )
        assert container is not None
        assert container.tag == "p"

    def test_skips_hidden_subtrees(self, make_page: Callable[..., Page]) -> None:
        page = make_page(
            '<div style="display:none"><p>hello world</p></div>'
            '<p aria-hidden="true">hello world</p>'
            '<p id="shown">hello world</p>'
        )
        container = TextLocator().find_container_with_text(
            page.content_root, "hello world"
        )
        assert container is not None
        assert container.get("id") == "shown"

    def test_skips_script_and_style(self, make_page: Callable[..., Page]) -> None:
        page = make_page(
            "<script>var s = 'hello world';</script>"
            "<style>/* hello world */</style>"
        )
        assert (
            TextLocator().find_container_with_text(page.content_root, "hello world")
            is None
        )

    def test_case_sensitive(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>Hello World</p>")
        assert (
            TextLocator().find_container_with_text(page.content_root, "hello world")
            is None
        )

    def test_short_text_never_searched(self, make_page: Callable[..., Page]) -> None:
        """Text under the minimum length must resolve by path instead."""
        page = make_page("<p>hi there</p>")
        assert MIN_SEARCH_LENGTH == 3
        assert TextLocator().find_container_with_text(page.content_root, "hi") is None

    def test_minimum_is_configurable(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>hi there</p>")
        container = TextLocator(min_text_length=2).find_container_with_text(
            page.content_root, "hi"
        )
        assert container is not None
        assert container.tag == "p"

    def test_split_text_not_matched(self, make_page: Callable[..., Page]) -> None:
        """Text only found by joining two leaves is not a match."""
        page = make_page("<p>say hello <b>wor</b>ld now</p>")
        assert (
            TextLocator().find_container_with_text(page.content_root, "hello world")
            is None
        )


class TestFindRangeInContainer:
    """Tests for TextLocator.find_range_in_container()."""

    def test_offsets_local_to_leaf(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>say hello world now</p>")
        p = page.content_root.find("p")
        text_range = TextLocator().find_range_in_container(p, "hello world")
        assert text_range is not None
        assert text_range.start_leaf.owner is p
        assert (text_range.start_offset, text_range.end_offset) == (4, 15)
        assert text_range.text == "hello world"

    def test_match_in_later_leaf(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>intro <em>aside</em> then hello world</p>")
        p = page.content_root.find("p")
        text_range = TextLocator().find_range_in_container(p, "hello world")
        assert text_range is not None
        assert text_range.start_leaf.slot == "tail"
        assert text_range.start_leaf.owner.tag == "em"
        assert text_range.start_offset == len(" then ")

    def test_split_leaves_not_matched(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>say hello <span></span>world now</p>")
        p = page.content_root.find("p")
        assert TextLocator().find_range_in_container(p, "hello world") is None

    def test_empty_text(self, make_page: Callable[..., Page]) -> None:
        page = make_page("<p>abc</p>")
        assert TextLocator().find_range_in_container(page.content_root, "") is None

    def test_container_then_range_recovers_exact_span(
        self, make_page: Callable[..., Page]
    ) -> None:
        """The two lookups together recover the exact characters."""
        page = make_page("<div><p>alpha</p><p>beta gamma delta</p></div>")
        locator = TextLocator()
        container = locator.find_container_with_text(page.content_root, "gamma")
        assert container is not None
        text_range = locator.find_range_in_container(container, "gamma")
        assert text_range is not None
        assert text_range.start_leaf.value[
            text_range.start_offset : text_range.end_offset
        ] == "gamma"
        assert text_range.start_offset == len("beta ")
