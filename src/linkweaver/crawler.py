"""
Crawler entry point: configuration, seed validation and task construction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import requests

from linkweaver.engine import CrawlTask
from linkweaver.export import ExportConfig, FileResultSink, ResultSink
from linkweaver.models import CrawlStats
from linkweaver.parser import DocumentParser, SoupDocumentParser
from linkweaver.policy import DefaultUriValidator, UriValidator
from linkweaver.scheduler import TaskExecutor

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3
DEFAULT_POLITENESS_DELAY_S = 3.0
DEFAULT_TIMEOUT_S = 5.0
DEFAULT_USER_AGENT = "LinkWeaver/1.0"


@dataclass(frozen=True, slots=True)
class CrawlConfig:
    """Settings shared, read-only, by every host's crawl."""
    max_depth: int = DEFAULT_MAX_DEPTH
    politeness_delay: float = DEFAULT_POLITENESS_DELAY_S
    timeout: Optional[float] = DEFAULT_TIMEOUT_S
    user_agent: str = DEFAULT_USER_AGENT
    export_config: ExportConfig = field(default_factory=ExportConfig.default)

    def __post_init__(self) -> None:
        if self.max_depth <= 0:
            raise ValueError("Depth must be greater than zero")
        if self.politeness_delay < 0:
            raise ValueError("Politeness delay cannot be negative")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("Timeout must be greater than zero")


class Crawler:
    """
    Crawls several independent hosts, one task per seed URI.

    Each seed should belong to a different host. Seeds that fail URI
    validation are dropped; at least one must remain.

    Args:
        seeds: Seed URIs, one per host.
        config: Shared crawl settings. Defaults to CrawlConfig().
        session: HTTP session used for every request. A new requests.Session
                 with the configured User-Agent is created if omitted.
        parser: HTML parser. Defaults to SoupDocumentParser.
        sink: Result sink. Defaults to FileResultSink.
        validator: URI validator for seeds and discovered links.
    """

    def __init__(
        self,
        seeds: Optional[Iterable[str]],
        config: Optional[CrawlConfig] = None,
        *,
        session: Optional[requests.Session] = None,
        parser: Optional[DocumentParser] = None,
        sink: Optional[ResultSink] = None,
        validator: Optional[UriValidator] = None,
    ) -> None:
        if seeds is None:
            raise ValueError("URI list must be provided")
        # Dedupe while keeping the caller's order
        seed_list = list(dict.fromkeys(seeds))
        if not seed_list:
            raise ValueError("URI set cannot be null or empty")

        self.config = config or CrawlConfig()
        self.validator = validator or DefaultUriValidator()
        self.parser = parser or SoupDocumentParser()
        self.sink = sink or FileResultSink()
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = self.config.user_agent
        self.session = session
        self.executor = TaskExecutor()
        self.tasks = self._create_tasks(seed_list)

    def _create_tasks(self, seeds: List[str]) -> List[CrawlTask]:
        valid = []
        for seed in seeds:
            if self.validator.is_valid(seed):
                valid.append(seed)
            else:
                logger.warning("Skipping invalid seed URI: %s", seed)
        if not valid:
            raise ValueError("No valid uris provided")
        return [self._create_task(seed) for seed in valid]

    def _create_task(self, base_uri: str) -> CrawlTask:
        return CrawlTask(
            base_uri,
            self.session,
            self.parser,
            self.sink,
            self.config.export_config,
            max_depth=self.config.max_depth,
            politeness_delay=self.config.politeness_delay,
            timeout=self.config.timeout,
            validator=self.validator,
        )

    def run(self) -> List[CrawlStats]:
        """
        Crawl the hosts one after another.

        Consider run_parallel() for better throughput.
        """
        return self.executor.run(self.tasks)

    def run_parallel(self) -> List[CrawlStats]:
        """Crawl every host concurrently, one thread per host. The preferred mode."""
        return self.executor.run_parallel(self.tasks)

    def cancel(self) -> None:
        """Cancel every host's crawl."""
        for task in self.tasks:
            task.cancel()
