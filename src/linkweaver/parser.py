"""
HTML parsing: title, body text and outgoing links of a page.
"""
from __future__ import annotations

import logging
from typing import Protocol, Set
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup, SoupStrainer

logger = logging.getLogger(__name__)

# SoupStrainer to parse only <a> tags (faster link extraction)
LINK_STRAINER = SoupStrainer("a", href=True)


class DocumentParser(Protocol):
    """Extracts the parts of an HTML document the crawler cares about."""

    def parse_title(self, html: str, page_uri: str) -> str: ...

    def parse_body(self, html: str, page_uri: str) -> str: ...

    def parse_links(self, html: str, page_uri: str) -> Set[str]: ...


class SoupDocumentParser:
    """DocumentParser backed by BeautifulSoup with the lxml parser."""

    def parse_title(self, html: str, page_uri: str) -> str:
        """Text of the first <title> element, or an empty string."""
        soup = BeautifulSoup(html, "lxml")
        title = soup.find("title")
        if title is None:
            return ""
        return title.get_text(strip=True)

    def parse_body(self, html: str, page_uri: str) -> str:
        """Text of every <p> element, one paragraph per line."""
        soup = BeautifulSoup(html, "lxml")
        # Collapse whitespace runs, including newlines inside a paragraph
        paragraphs = (
            text for p in soup.find_all("p")
            if (text := " ".join(p.get_text(separator=" ").split()))
        )
        return "".join(f"{text}\n" for text in paragraphs)

    def parse_links(self, html: str, page_uri: str) -> Set[str]:
        """
        Absolute targets of every <a href> on the page.

        - Resolves relative hrefs against page_uri
        - Drops fragments (#...)
        """
        soup = BeautifulSoup(html, "lxml", parse_only=LINK_STRAINER)
        links: Set[str] = set()
        for anchor in soup.find_all("a"):
            href = (anchor.get("href") or "").strip()
            if not href:
                continue
            try:
                target, _ = urldefrag(urljoin(page_uri, href))
            except ValueError:
                # e.g. an unbalanced IPv6 bracket
                logger.debug("Skipping malformed href %r on %s", href, page_uri)
                continue
            if target:
                links.add(target)
        return links
