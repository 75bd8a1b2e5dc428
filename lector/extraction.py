"""
Selection of the text to speak from a document context.

A document context describes where a speak request comes from: the full
text of the document, any active selection, and (for paged viewers) a
callable returning the visible page.  Each kind of document is identified
by a context tag, and a registry maps tags to extraction strategies.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from lector.exceptions import (
    NoActiveSelectionError,
    StructuralMismatchError,
    UnsupportedContextError,
)

logger = logging.getLogger(__name__)


class ContextTag(Enum):
    """Built-in document context tags.

    Attributes:
        PLAIN: Speak the active region as is
        ARTICLE: Mail/news article, skip headers and the trailing URL: block
        BANNER: Document that opens with a banner block ended by a blank line
        PAGE: Paged viewer, speak the visible page
    """

    PLAIN = "plain"
    ARTICLE = "article"
    BANNER = "banner"
    PAGE = "page"


@dataclass(frozen=True)
class Region:
    """A span of document text; start and end may be given in either order."""

    start: int
    end: int

    def bounds(self) -> tuple[int, int]:
        """Return (lower, upper) offsets."""
        return min(self.start, self.end), max(self.start, self.end)


@dataclass
class DocumentContext:
    """Snapshot of the document a speak request originates from."""

    mode: str | ContextTag | None = None
    text: str = ""
    # Several regions model a rectangular or otherwise non-contiguous selection
    regions: list[Region] = field(default_factory=list)
    page_source: Callable[[], str] | None = None


ExtractionStrategy = Callable[[DocumentContext], str]

# First line holding only whitespace ends the header block
_BLANK_LINE = re.compile(r"^[ \t\r]*\n", re.MULTILINE)
_TRAILER_MARKER = re.compile(r"^URL:", re.MULTILINE)


def _tag_name(tag: str | ContextTag) -> str:
    return tag.value if isinstance(tag, ContextTag) else tag


def _body_start(context: DocumentContext, tag: str) -> int:
    """Offset just past the first blank line of the context text."""
    match = _BLANK_LINE.search(context.text)
    if match is None:
        raise StructuralMismatchError(tag, "blank line after headers")
    return match.end()


def extract_region(context: DocumentContext) -> str:
    """
    Return the text covered by the active region(s).

    Regions are clamped to the document.  Several regions are joined by
    newlines, one per region, which is how a rectangular selection reads.

    Raises:
        NoActiveSelectionError: If the context has no region
    """
    if not context.regions:
        raise NoActiveSelectionError()

    size = len(context.text)
    parts = []
    for region in context.regions:
        start, end = region.bounds()
        parts.append(context.text[max(start, 0) : min(end, size)])
    return "\n".join(parts)


def extract_article_body(context: DocumentContext) -> str:
    """
    Return an article body without its headers and trailing URL block.

    The body starts after the first blank line.  If a line starting with
    ``URL:`` follows, the last such line and everything after it is dropped.

    Raises:
        StructuralMismatchError: If there is no blank line ending the headers
    """
    tag = ContextTag.ARTICLE.value
    start = _body_start(context, tag)

    end = len(context.text)
    trailers = list(_TRAILER_MARKER.finditer(context.text, start))
    if trailers:
        end = trailers[-1].start()

    return context.text[start:end]


def extract_after_banner(context: DocumentContext) -> str:
    """
    Return the document text after its banner block.

    Raises:
        StructuralMismatchError: If there is no blank line ending the banner
    """
    start = _body_start(context, ContextTag.BANNER.value)
    return context.text[start:]


def extract_current_page(context: DocumentContext) -> str:
    """
    Return the text of the visible page from the viewer's page source.

    Raises:
        StructuralMismatchError: If the context carries no page source
    """
    if context.page_source is None:
        raise StructuralMismatchError(ContextTag.PAGE.value, "page source")
    return context.page_source()


DEFAULT_STRATEGIES: dict[str, ExtractionStrategy] = {
    ContextTag.PLAIN.value: extract_region,
    ContextTag.ARTICLE.value: extract_article_body,
    ContextTag.BANNER.value: extract_after_banner,
    ContextTag.PAGE.value: extract_current_page,
}


class RegionExtractor:
    """Registry of extraction strategies keyed by context tag.

    The registry can be extended or trimmed at runtime.  The region fallback
    used by forced region requests is fixed and always available.

    Usage::

        extractor = RegionExtractor()
        extractor.register("wiki", extract_after_banner)
        text = extractor.extract("article", context)
        text = extractor.extract("article", context, force_region=True)
    """

    def __init__(self, strategies: dict[str, ExtractionStrategy] | None = None) -> None:
        self._strategies: dict[str, ExtractionStrategy] = dict(
            DEFAULT_STRATEGIES if strategies is None else strategies
        )

    def register(self, tag: str | ContextTag, strategy: ExtractionStrategy) -> None:
        """Register or replace the strategy for a context tag."""
        name = _tag_name(tag)
        self._strategies[name] = strategy
        logger.debug("Registered extraction strategy for '%s'", name)

    def unregister(self, tag: str | ContextTag) -> None:
        """Remove the strategy for a context tag if present."""
        self._strategies.pop(_tag_name(tag), None)

    def is_registered(self, tag: str | ContextTag) -> bool:
        return _tag_name(tag) in self._strategies

    def strategies(self) -> list[str]:
        """Registered context tags, sorted."""
        return sorted(self._strategies)

    def extract(
        self,
        tag: str | ContextTag | None,
        context: DocumentContext,
        force_region: bool = False,
    ) -> str:
        """
        Extract the text to speak for a context.

        Args:
            tag: Context tag selecting the strategy; None uses the fallback
            context: Document snapshot handed to the strategy
            force_region: Ignore the tag and speak the active region

        Returns:
            Plain text to speak

        Raises:
            UnsupportedContextError: If no strategy is registered for tag
            StructuralMismatchError: If the strategy's landmark is missing
            NoActiveSelectionError: If a region is needed but none is active
        """
        if force_region or tag is None:
            return extract_region(context)

        name = _tag_name(tag)
        strategy = self._strategies.get(name)
        if strategy is None:
            raise UnsupportedContextError(name, self.strategies())

        logger.debug("Extracting text for context '%s'", name)
        return strategy(context)
