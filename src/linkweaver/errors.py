"""
Exception types raised by the crawler.
"""
from __future__ import annotations

from typing import Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from linkweaver.models import CrawlStats


class CrawlError(Exception):
    """Base class for every error raised by linkweaver."""


class RootFetchError(CrawlError):
    """The seed page of a host could not be fetched, so the host has no graph."""

    def __init__(self, uri: str, reason: Optional[str] = None) -> None:
        super().__init__(f"Root URL request failed for {uri}")
        self.uri = uri
        self.reason = reason


class ContentTypeNotAllowedError(CrawlError):
    """Response carried a Content-Type outside the allow-list."""

    def __init__(self, content_type: str) -> None:
        super().__init__("Content-Type not allowed")
        self.content_type = content_type


class OutputFileError(CrawlError):
    """A result file or its directory could not be written."""


class CrawlExecutionError(CrawlError):
    """
    One or more hosts did not finish cleanly.

    Raised by the scheduler after every host has run. ``failures`` maps each
    failed base URI to its exception, ``completed`` holds the stats of the
    hosts that did finish.
    """

    def __init__(
        self,
        message: str,
        failures: Dict[str, BaseException],
        completed: Optional[List["CrawlStats"]] = None,
    ) -> None:
        super().__init__(message)
        self.failures = failures
        self.completed = completed or []


class CrawlCancelledError(CrawlError):
    """A host's crawl was cancelled before it finished."""

    def __init__(self, uri: str) -> None:
        super().__init__(f"Crawl cancelled for {uri}")
        self.uri = uri
