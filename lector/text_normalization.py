"""
Text normalization utilities for Lector.

Raw hyperlinks are painful to listen to: the engine spells out every slash
and query parameter.  This module finds them and replaces each one with a
short spoken notice naming only the host, e.g.
``https://www.example.com/a?b=c`` becomes ``Link removed: example.com``.
"""

from __future__ import annotations

import logging
import re
from urllib.parse import urlsplit

from lector.config import LINK_NOTICE

logger = logging.getLogger(__name__)

# Hyperlink matching pattern
# Uses negative lookbehind to exclude trailing punctuation
URL_PATTERN = re.compile(
    r'\b[a-z][a-z0-9+.-]*://[^\s<>"{}|\\^`\[\]()]+'  # scheme://...
    r"(?<![.,;:!?])"  # Don't capture trailing punctuation
    r"|(?<![\w.@/-])www\d*\."  # www. or wwwN. leading a host
    r'[^\s<>"{}|\\^`\[\]()]+'
    r"(?<![.,;:!?])",  # Don't capture trailing punctuation
    flags=re.IGNORECASE,
)

_SCHEME_PATTERN = re.compile(r"^[a-z][a-z0-9+.-]*://", re.IGNORECASE)
_WWW_PREFIX = re.compile(r"^(?:www\d*\.)+", re.IGNORECASE)


def _fallback_host(url: str) -> str:
    """Best-effort host for URLs ``urlsplit`` rejects or finds no host in."""
    rest = _SCHEME_PATTERN.sub("", url)
    rest = re.split(r"[/?#]", rest, maxsplit=1)[0]
    # Drop userinfo
    return rest.rsplit("@", 1)[-1]


def extract_host(url: str) -> str:
    """
    Extract the host of a URL for the spoken notice.

    Bare ``www.`` forms are parsed as if they had an ``http://`` scheme.
    Malformed URLs never raise; they yield whatever partial host can be
    recovered.

    Args:
        url: Matched hyperlink text

    Returns:
        Host without scheme, port, path, query, fragment or ``www`` prefix

    Examples:
        >>> extract_host("http://www.example.com/path")
        'example.com'
        >>> extract_host("www2.example.org?q=1")
        'example.org'
        >>> extract_host("ftp://user@files.example.net:21/pub")
        'files.example.net'
    """
    target = url if _SCHEME_PATTERN.match(url) else f"http://{url}"

    try:
        host = urlsplit(target).hostname or ""
    except ValueError:
        # e.g. an unbalanced IPv6 bracket
        host = ""

    if not host:
        host = _fallback_host(target)

    return _WWW_PREFIX.sub("", host)


def link_notice(url: str, notice: str = LINK_NOTICE) -> str:
    """Return the spoken replacement for a single hyperlink."""
    return notice + extract_host(url)


def normalize_urls(text: str, notice: str = LINK_NOTICE) -> str:
    """
    Replace every hyperlink in text with a host-only notice.

    Replacement is a single pass: the notice never contains a scheme or a
    ``www`` prefix, so running this again over its own output changes
    nothing.  Text without hyperlinks is returned unchanged.

    Args:
        text: Input text potentially containing hyperlinks
        notice: Prefix spoken before the host

    Returns:
        Text with hyperlinks replaced

    Examples:
        >>> normalize_urls("See http://www.example.com/path for details.")
        'See Link removed: example.com for details.'
        >>> normalize_urls("Visit www.example.org today")
        'Visit Link removed: example.org today'
    """
    result, count = URL_PATTERN.subn(lambda match: link_notice(match.group(0), notice), text)
    if count:
        logger.debug("Replaced %d link(s) with spoken notices", count)
    return result


def clean_text(text: str) -> str:
    """
    Normalize text before it is handed to the speech engine.

    This is the main entry point used by the speak pipeline.

    Args:
        text: Raw text to speak

    Returns:
        Normalized text ready for the engine
    """
    return normalize_urls(text)
