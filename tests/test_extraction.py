"""
Tests for extraction module.
"""

import pytest

from lector.exceptions import (
    NoActiveSelectionError,
    StructuralMismatchError,
    UnsupportedContextError,
)
from lector.extraction import (
    ContextTag,
    DocumentContext,
    Region,
    RegionExtractor,
    extract_after_banner,
    extract_article_body,
    extract_current_page,
    extract_region,
)

ARTICLE = (
    "From: Ada <ada@example.com>\n"
    "Subject: Engines\n"
    "\n"
    "The analytical engine weaves algebraic patterns.\n"
    "Second line of the body.\n"
    "URL: https://example.com/engines\n"
    "Archived-At: somewhere\n"
)


class TestRegion:
    """Tests for Region bounds."""

    def test_bounds_ordered(self):
        assert Region(3, 9).bounds() == (3, 9)

    def test_bounds_reversed(self):
        assert Region(9, 3).bounds() == (3, 9)


class TestExtractRegion:
    """Tests for the plain region strategy."""

    def test_single_region(self):
        context = DocumentContext(text="Hello, brave new world", regions=[Region(7, 12)])
        assert extract_region(context) == "brave"

    def test_reversed_region(self):
        context = DocumentContext(text="Hello, brave new world", regions=[Region(12, 7)])
        assert extract_region(context) == "brave"

    def test_rectangular_selection_joins_lines(self):
        text = "abcdef\nghijkl\nmnopqr"
        context = DocumentContext(
            text=text, regions=[Region(1, 4), Region(8, 11), Region(15, 18)]
        )
        assert extract_region(context) == "bcd\nhij\nnop"

    def test_region_clamped_to_text(self):
        context = DocumentContext(text="short", regions=[Region(-5, 100)])
        assert extract_region(context) == "short"

    def test_no_region_raises(self):
        with pytest.raises(NoActiveSelectionError):
            extract_region(DocumentContext(text="anything"))


class TestExtractArticleBody:
    """Tests for the article strategy."""

    def test_skips_headers_and_trailer(self):
        result = extract_article_body(DocumentContext(text=ARTICLE))
        assert result == (
            "The analytical engine weaves algebraic patterns.\nSecond line of the body.\n"
        )

    def test_without_trailer_runs_to_end(self):
        text = "Subject: x\n\nBody only.\n"
        assert extract_article_body(DocumentContext(text=text)) == "Body only.\n"

    def test_url_marker_in_headers_is_ignored(self):
        text = "URL: https://example.com\nSubject: x\n\nBody.\n"
        assert extract_article_body(DocumentContext(text=text)) == "Body.\n"

    def test_last_trailer_marker_wins(self):
        text = "H: 1\n\nIntro\nURL: first\nMore body\nURL: second\n"
        assert extract_article_body(DocumentContext(text=text)) == (
            "Intro\nURL: first\nMore body\n"
        )

    def test_whitespace_only_line_counts_as_blank(self):
        text = "H: 1\n   \nBody\n"
        assert extract_article_body(DocumentContext(text=text)) == "Body\n"

    def test_no_blank_line_raises(self):
        with pytest.raises(StructuralMismatchError) as exc_info:
            extract_article_body(DocumentContext(text="Subject: x\nNo separator here"))
        assert exc_info.value.tag == "article"

    @pytest.mark.parametrize("text", ["a\nb\n", "From: a\nSubject: b\nBody\n"])
    def test_trailing_newline_is_not_a_blank_line(self, text):
        with pytest.raises(StructuralMismatchError):
            extract_article_body(DocumentContext(text=text))

    def test_blank_line_at_end_gives_empty_body(self):
        assert extract_article_body(DocumentContext(text="Subject: x\n\n")) == ""


class TestExtractAfterBanner:
    """Tests for the banner strategy."""

    def test_keeps_url_lines(self):
        text = "== Banner ==\n\nBody\nURL: stays\n"
        assert extract_after_banner(DocumentContext(text=text)) == "Body\nURL: stays\n"

    def test_no_blank_line_raises(self):
        with pytest.raises(StructuralMismatchError):
            extract_after_banner(DocumentContext(text="only a banner"))

    @pytest.mark.parametrize("text", ["a\nb\n", "only a banner\n"])
    def test_trailing_newline_is_not_a_blank_line(self, text):
        with pytest.raises(StructuralMismatchError):
            extract_after_banner(DocumentContext(text=text))


class TestExtractCurrentPage:
    """Tests for the page strategy."""

    def test_delegates_to_page_source(self):
        context = DocumentContext(page_source=lambda: "Visible page text")
        assert extract_current_page(context) == "Visible page text"

    def test_missing_page_source_raises(self):
        with pytest.raises(StructuralMismatchError):
            extract_current_page(DocumentContext(text="ignored"))


class TestRegionExtractor:
    """Tests for the strategy registry."""

    def test_default_strategies(self):
        assert RegionExtractor().strategies() == ["article", "banner", "page", "plain"]

    def test_dispatch_by_enum_and_string(self):
        extractor = RegionExtractor()
        context = DocumentContext(text=ARTICLE)
        assert extractor.extract(ContextTag.ARTICLE, context) == extractor.extract(
            "article", context
        )

    def test_unregistered_tag_raises(self):
        with pytest.raises(UnsupportedContextError) as exc_info:
            RegionExtractor().extract("spreadsheet", DocumentContext(text="x"))
        assert exc_info.value.tag == "spreadsheet"
        assert "plain" in exc_info.value.registered

    def test_register_custom_strategy(self):
        extractor = RegionExtractor()
        extractor.register("shout", lambda context: context.text.upper())
        assert extractor.is_registered("shout")
        assert extractor.extract("shout", DocumentContext(text="hi")) == "HI"

    def test_unregister(self):
        extractor = RegionExtractor()
        extractor.unregister(ContextTag.BANNER)
        assert not extractor.is_registered("banner")
        with pytest.raises(UnsupportedContextError):
            extractor.extract("banner", DocumentContext(text="a\n\nb"))

    def test_force_region_ignores_mode(self):
        context = DocumentContext(text=ARTICLE, regions=[Region(0, 4)])
        assert RegionExtractor().extract("article", context, force_region=True) == "From"

    def test_force_region_works_for_unregistered_tag(self):
        context = DocumentContext(text="abcdef", regions=[Region(2, 4)])
        assert RegionExtractor().extract("unknown", context, force_region=True) == "cd"

    def test_fallback_survives_empty_registry(self):
        extractor = RegionExtractor(strategies={})
        context = DocumentContext(text="abcdef", regions=[Region(0, 3)])
        assert extractor.extract(None, context) == "abc"

    def test_instances_do_not_share_registry(self):
        first = RegionExtractor()
        first.register("extra", extract_region)
        assert not RegionExtractor().is_registered("extra")
