"""
HTML parsing and absolute-link extraction.
"""
from __future__ import annotations

from typing import List

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from linkcrawler.errors import ParseError

LINK_SCHEMES: tuple[str, ...] = ("http://", "https://")


def parse_document(body: bytes | str, url: str = "") -> BeautifulSoup:
    """Parse a fetched body into a document tree using lxml."""
    try:
        return BeautifulSoup(body, "lxml")
    except ParserRejectedMarkup as e:
        raise ParseError(url, f"unparsable document: {e}") from e


def extract_links(document: BeautifulSoup) -> List[str]:
    """
    Return absolute http(s) hrefs of all ``<a>`` elements in document order.

    Values are whitespace-trimmed. Relative links and other schemes
    (``mailto:``, ``javascript:``, ...) are left out, as are empty hrefs.
    """
    links: List[str] = []
    for anchor in document.find_all("a", href=True):
        href = anchor["href"]
        if isinstance(href, list):
            href = " ".join(href)
        href = href.strip()
        if href and href.startswith(LINK_SCHEMES):
            links.append(href)
    return links
