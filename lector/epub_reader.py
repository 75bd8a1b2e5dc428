"""
EPUB page source for the "current page" extraction strategy.
"""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import ebooklib
from bs4 import BeautifulSoup
from ebooklib import epub

from lector.config import MIN_PAGE_CHARS
from lector.exceptions import (
    EPUBInvalidError,
    EPUBNoPagesError,
    EPUBNotFoundError,
    EPUBParseError,
    StructuralMismatchError,
)
from lector.extraction import ContextTag


@dataclass
class Page:
    """One document item of an EPUB book, as plain text."""

    number: int
    title: str
    content: str  # Plain text with preserved paragraph structure

    def __str__(self) -> str:
        return f"Page {self.number}: {self.title}"


@dataclass
class Book:
    """Represents an EPUB book with metadata and pages."""

    title: str
    author: str
    pages: list[Page]

    def __str__(self) -> str:
        return f"{self.title} by {self.author} ({len(self.pages)} pages)"

    def page(self, number: int) -> Page:
        """
        Return a page by its 1-based number.

        Raises:
            StructuralMismatchError: If the page does not exist
        """
        if number < 1 or number > len(self.pages):
            raise StructuralMismatchError(
                ContextTag.PAGE.value, f"page {number} (book has {len(self.pages)})"
            )
        return self.pages[number - 1]

    def page_source(self, number: int) -> Callable[[], str]:
        """Return a callable producing the text of a page, for DocumentContext."""
        return lambda: self.page(number).content


def html_to_text(html_content: str) -> str:
    """
    Clean HTML content and extract text while preserving structure.

    Args:
        html_content: Raw XHTML content

    Returns:
        Cleaned text with paragraph breaks preserved
    """
    soup = BeautifulSoup(html_content, "lxml-xml")

    for element in soup(["script", "style", "meta", "link"]):
        element.decompose()

    # Prefer structured elements (headings, paragraphs, list items) over containers
    parts = []
    seen = set()
    for element in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6", "p", "li"]):
        text = element.get_text(separator=" ", strip=True)
        if text and text not in seen:
            parts.append(text)
            seen.add(text)

    # Last resort: just get all text
    if not parts:
        text = soup.get_text(separator=" ", strip=True)
        if text:
            parts.append(text)

    return "\n\n".join(parts)


def extract_pages(book: epub.EpubBook) -> list[Page]:
    """
    Extract readable pages from an EPUB book.

    Args:
        book: Parsed EPUB book object

    Returns:
        List of Page objects, numbered from 1
    """
    pages = []

    for item in book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
        html_content = item.get_content().decode("utf-8", errors="ignore")
        content = html_to_text(html_content)

        # Skip if content is too short (navigation, cover, blank separators)
        if len(content.strip()) < MIN_PAGE_CHARS:
            continue

        number = len(pages) + 1
        title = Path(item.get_name()).stem or f"Page {number}"
        heading = BeautifulSoup(html_content, "lxml-xml").find(["h1", "h2", "h3"])
        if heading and heading.get_text(strip=True):
            title = heading.get_text(strip=True)[:100]

        pages.append(Page(number=number, title=title, content=content))

    return pages


def open_book(file_path: str) -> Book:
    """
    Parse an EPUB file into pages.

    Args:
        file_path: Path to the EPUB file

    Returns:
        Book object with metadata and pages

    Raises:
        EPUBNotFoundError: If file doesn't exist
        EPUBInvalidError: If file is not a valid EPUB
        EPUBNoPagesError: If no readable pages found
        EPUBParseError: If parsing fails
    """
    path = Path(file_path)

    if not path.exists():
        raise EPUBNotFoundError(file_path)

    if path.suffix.lower() != ".epub":
        raise EPUBInvalidError(file_path, "File extension is not .epub")

    try:
        book = epub.read_epub(str(path))

        title = book.get_metadata("DC", "title")
        title = title[0][0] if title else path.stem

        author = book.get_metadata("DC", "creator")
        author = author[0][0] if author else "Unknown Author"

        pages = extract_pages(book)

        if not pages:
            raise EPUBNoPagesError(file_path)

        return Book(title=title, author=author, pages=pages)

    except EPUBNoPagesError:
        raise
    except Exception as e:
        # Wrap any other exceptions
        raise EPUBParseError(file_path, e) from e
