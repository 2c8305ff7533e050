"""
Data structures shared by the fetch gate, the traversal engine and the sinks.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Union


@dataclass(frozen=True, slots=True)
class PageLink:
    """A crawl target and its distance from the host's seed."""
    url: str
    depth: int


@dataclass(frozen=True, slots=True)
class Connection:
    """One directed edge of the crawl graph; depth is the parent's depth."""
    parent: str
    child: str
    depth: int


@dataclass(frozen=True, slots=True)
class NodeError:
    """A recoverable fetch failure."""
    uri: str
    depth: int
    error: str


@dataclass(frozen=True, slots=True)
class Metadata:
    """Facts about a page captured when it was fetched."""
    source: str
    depth: int
    retrieved_on: str
    characters: int


@dataclass(frozen=True, slots=True)
class ResponseData:
    """Status code and body of a completed request."""
    status_code: int
    body: str

    def is_success(self) -> bool:
        """True for any 2xx status."""
        return 200 <= self.status_code < 300


@dataclass(frozen=True, slots=True)
class SuccessResultPage:
    """A fetched and parsed page."""
    uri: str
    title: str
    content: str
    links: FrozenSet[PageLink]
    metadata: Metadata
    depth: int

    @classmethod
    def create(
        cls,
        link: PageLink,
        title: str,
        content: str,
        links: FrozenSet[PageLink],
    ) -> "SuccessResultPage":
        """Build a success page, stamping its metadata with the current time."""
        metadata = Metadata(
            source=link.url,
            depth=link.depth,
            retrieved_on=datetime.now().isoformat(),
            characters=len(content),
        )
        return cls(
            uri=link.url,
            title=title,
            content=content,
            links=frozenset(links),
            metadata=metadata,
            depth=link.depth,
        )


@dataclass(frozen=True, slots=True)
class ErrorResultPage:
    """A failed fetch; content holds the response body or the error message."""
    uri: str
    depth: int
    content: str

    @classmethod
    def create(cls, link: PageLink, content: str) -> "ErrorResultPage":
        return cls(uri=link.url, depth=link.depth, content=content)


ResultPage = Union[SuccessResultPage, ErrorResultPage]


@dataclass(slots=True)
class CrawlStats:
    """Statistics collected for one host, used for the summary output."""
    base_uri: str
    pages_crawled: int = 0
    pages_failed: int = 0
    connections: int = 0
    elapsed_ms: int = 0
