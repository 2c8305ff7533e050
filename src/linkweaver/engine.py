"""
Per-host crawl traversal: frontier, visited set, link graph and error log.
"""
from __future__ import annotations

import itertools
import logging
import threading
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from typing import Deque, FrozenSet, List, Optional, Set

import requests

from linkweaver.errors import RootFetchError
from linkweaver.export import ExportConfig, ResultSink
from linkweaver.fetch import FetchGate
from linkweaver.models import (
    Connection,
    CrawlStats,
    ErrorResultPage,
    NodeError,
    PageLink,
    SuccessResultPage,
)
from linkweaver.parser import DocumentParser
from linkweaver.policy import LinkPolicy, UriValidator

logger = logging.getLogger(__name__)

WRITER_THREAD_NAME = "linkweaver-writer-"

_task_ids = itertools.count(1)


class CrawlTask:
    """
    Crawls one host breadth-first from its seed URI.

    All state (frontier, visited set, connections, errors) belongs to this
    task alone; only the collaborators passed in are shared with other hosts,
    and none of them is mutated. One fetch is in flight at a time. Successful
    pages are handed to the sink on a writer pool which is drained before the
    connection map and error log are flushed.
    """

    def __init__(
        self,
        base_uri: str,
        session: requests.Session,
        parser: DocumentParser,
        sink: ResultSink,
        export_config: ExportConfig,
        *,
        max_depth: int,
        politeness_delay: float,
        timeout: Optional[float] = None,
        validator: Optional[UriValidator] = None,
    ) -> None:
        self.id = next(_task_ids)
        self.base_uri = base_uri
        self.max_depth = max_depth
        self.politeness_delay = politeness_delay
        self.sink = sink
        self.export_config = export_config
        self.policy = LinkPolicy(base_uri, validator)

        self._cancel_event = threading.Event()
        self.gate = FetchGate(
            session,
            parser,
            politeness_delay=politeness_delay,
            timeout=timeout,
            cancel_event=self._cancel_event,
        )

        # Crawl state
        self._frontier: Deque[PageLink] = deque()
        self._visited: Set[str] = set()
        self._connections: List[Connection] = []
        self._errors: List[NodeError] = []
        self._pages_crawled = 0
        self._writers: Optional[ThreadPoolExecutor] = None

    def __repr__(self) -> str:
        return f"CrawlTask(id={self.id}, base_uri={self.base_uri!r})"

    @property
    def visited(self) -> FrozenSet[str]:
        return frozenset(self._visited)

    @property
    def connections(self) -> List[Connection]:
        return list(self._connections)

    @property
    def errors(self) -> List[NodeError]:
        return list(self._errors)

    @property
    def frontier_size(self) -> int:
        return len(self._frontier)

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Ask the traversal to stop; pending fetches turn into cancellation errors."""
        self._cancel_event.set()

    def start(self) -> CrawlStats:
        """
        Run the whole crawl for this host.

        Returns:
            Statistics for the finished crawl.

        Raises:
            RootFetchError: the seed page could not be fetched. Nothing is
                written for the host in that case.
        """
        logger.info("Starting crawl for %s", self.base_uri)
        started = time.perf_counter()

        with ThreadPoolExecutor(thread_name_prefix=f"{WRITER_THREAD_NAME}{self.id}") as writers:
            self._writers = writers
            try:
                self._crawl_root()
                self.travel_links()
            finally:
                self._writers = None

        self.sink.process_connection_map(self.base_uri, self.connections, self.export_config)
        self.sink.process_errors(self.base_uri, self.errors, self.export_config)

        stats = CrawlStats(
            base_uri=self.base_uri,
            pages_crawled=self._pages_crawled,
            pages_failed=len(self._errors),
            connections=len(self._connections),
            elapsed_ms=int((time.perf_counter() - started) * 1000),
        )
        logger.info(
            "Finished crawl for %s: %d pages, %d errors",
            self.base_uri, stats.pages_crawled, stats.pages_failed,
        )
        return stats

    def _crawl_root(self) -> None:
        root = PageLink(self.base_uri, 0)
        page = self.gate.fetch(root)
        self._visited.add(root.url)
        match page:
            case SuccessResultPage():
                self.process_success_page(page)
            case ErrorResultPage():
                logger.error("Base URL [%s] responds with %s", page.uri, page.content)
                raise RootFetchError(root.url, page.content)

    def travel_links(self) -> None:
        """Drain the frontier, fetching each unvisited link within the depth limit."""
        while self._frontier:
            link = self._frontier.popleft()
            if link.url in self._visited or link.depth > self.max_depth:
                continue
            page = self.gate.fetch(link)
            self._visited.add(link.url)
            match page:
                case SuccessResultPage():
                    self.process_success_page(page)
                case ErrorResultPage():
                    self.process_failure_page(page)

    def process_success_page(self, page: SuccessResultPage) -> None:
        """Enqueue the admitted children, record their edges and dispatch the page."""
        admitted = self.add_child_links(page)
        for child in admitted:
            self._frontier.append(child)
            self._connections.append(Connection(page.uri, child.url, page.depth))
        self._pages_crawled += 1
        self.write_output(replace(page, links=frozenset(admitted)))

    def process_failure_page(self, page: ErrorResultPage) -> None:
        logger.warning("Failed to crawl %s at depth %d: %s", page.uri, page.depth, page.content)
        self._errors.append(NodeError(page.uri, page.depth, page.content))

    def add_child_links(self, page: SuccessResultPage) -> List[PageLink]:
        """Children of page that pass the admission policy, one level deeper."""
        urls = self.policy.admitted(link.url for link in page.links)
        return [PageLink(url, page.depth + 1) for url in urls]

    def write_output(self, page: SuccessResultPage) -> None:
        """Hand page to the sink without waiting for the write to finish."""
        if self._writers is None:
            self.sink.process_success(page, self.export_config)
            return
        future = self._writers.submit(self.sink.process_success, page, self.export_config)
        future.add_done_callback(self._log_write_failure)

    def _log_write_failure(self, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error("Failed to write page for %s: %s", self.base_uri, exc)
