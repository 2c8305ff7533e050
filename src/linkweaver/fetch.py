"""
Fetch gate: one politely delayed request per link, classified into a result page.
"""
from __future__ import annotations

import logging
import threading
from typing import Mapping, Optional

import requests

from linkweaver.errors import ContentTypeNotAllowedError, RootFetchError
from linkweaver.models import (
    ErrorResultPage,
    PageLink,
    ResponseData,
    ResultPage,
    SuccessResultPage,
)
from linkweaver.parser import DocumentParser
from linkweaver.policy import is_allowed_content_type

logger = logging.getLogger(__name__)

CONTENT_TYPE_HEADER = "content-type"

# Used when the crawl was configured without a request timeout
FALLBACK_TIMEOUT_S = 1.0

CANCELLED_MESSAGE = "Crawl cancelled"


def find_content_type(headers: Mapping[str, str]) -> Optional[str]:
    """Return the Content-Type header value, matching the key case-insensitively."""
    for key, value in headers.items():
        if key.lower() == CONTENT_TYPE_HEADER:
            return value
    return None


def allowed_content_type(headers: Mapping[str, str]) -> bool:
    """A missing Content-Type is allowed; a present one must be on the allow-list."""
    content_type = find_content_type(headers)
    if content_type is None:
        return True
    return is_allowed_content_type(content_type)


class FetchGate:
    """
    Performs exactly one network fetch per call and classifies the outcome.

    Every call first waits ``politeness_delay`` seconds on ``cancel_event``.
    Failures come back as ErrorResultPage, except failures of the seed
    (depth 0), which raise RootFetchError. The gate never retries.
    """

    def __init__(
        self,
        session: requests.Session,
        parser: DocumentParser,
        *,
        politeness_delay: float,
        timeout: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self.session = session
        self.parser = parser
        self.politeness_delay = politeness_delay
        self.timeout = timeout if timeout is not None else FALLBACK_TIMEOUT_S
        self.cancel_event = cancel_event or threading.Event()

    def fetch(self, link: PageLink) -> ResultPage:
        """Fetch link and return a SuccessResultPage or an ErrorResultPage."""
        # Politeness delay; returns early once the crawl is cancelled
        if self.cancel_event.wait(self.politeness_delay):
            return ErrorResultPage.create(link, CANCELLED_MESSAGE)

        try:
            response = self.get(link)
            if self.cancel_event.is_set():
                return ErrorResultPage.create(link, CANCELLED_MESSAGE)
            if response.is_success():
                return self.create_from_html(response.body, link)
            return ErrorResultPage.create(link, response.body)
        except Exception as exc:
            # Anything but a seed failure is recoverable, parse errors included
            if link.depth == 0:
                logger.error("Root URL request failed for %s: %s", link.url, exc)
                raise RootFetchError(link.url, str(exc)) from exc
            return ErrorResultPage.create(link, str(exc))

    def get(self, link: PageLink) -> ResponseData:
        """Issue the GET request and reject disallowed content types."""
        logger.debug("Crawling %s with depth %d", link.url, link.depth)
        response = self.session.get(link.url, timeout=self.timeout, allow_redirects=True)
        headers = response.headers
        if not allowed_content_type(headers):
            raise ContentTypeNotAllowedError(find_content_type(headers) or "")
        return ResponseData(status_code=response.status_code, body=response.text)

    def create_from_html(self, html: str, link: PageLink) -> SuccessResultPage:
        """Parse a 2xx body into a success page whose links sit one level deeper."""
        content = self.parser.parse_body(html, link.url)
        title = self.parser.parse_title(html, link.url)
        children = frozenset(
            PageLink(url, link.depth + 1)
            for url in self.parser.parse_links(html, link.url)
        )
        return SuccessResultPage.create(link, title, content, children)
