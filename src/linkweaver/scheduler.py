"""
Runs per-host crawl tasks one after another or side by side.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, List, Sequence

from linkweaver.engine import CrawlTask
from linkweaver.errors import CrawlCancelledError, CrawlExecutionError
from linkweaver.models import CrawlStats

logger = logging.getLogger(__name__)

RUNNER_THREAD_NAME = "linkweaver-runner"


class TaskExecutor:
    """
    Executes a list of CrawlTask objects.

    Both modes let every task run to completion. A failed or cancelled task
    never stops its siblings; once all have finished the failures are raised
    together as a CrawlExecutionError.
    """

    def run(self, tasks: Sequence[CrawlTask]) -> List[CrawlStats]:
        """Run tasks sequentially, each one's full lifecycle before the next."""
        logger.info("Initializing sequential execution for %d tasks", len(tasks))
        completed: List[CrawlStats] = []
        failures: Dict[str, BaseException] = {}
        for task in tasks:
            try:
                stats = self.run_single_task(task)
            except Exception as exc:
                logger.error("Crawl for %s failed: %s", task.base_uri, exc)
                failures[task.base_uri] = exc
                continue
            self._collect(task, stats, completed, failures)
        self._raise_for_failures(failures, completed)
        return completed

    def run_parallel(self, tasks: Sequence[CrawlTask]) -> List[CrawlStats]:
        """Run every task on its own thread and wait for all of them."""
        logger.info("Initializing parallel execution for %d tasks", len(tasks))
        completed: List[CrawlStats] = []
        failures: Dict[str, BaseException] = {}
        if not tasks:
            return completed

        with ThreadPoolExecutor(
            max_workers=len(tasks), thread_name_prefix=RUNNER_THREAD_NAME
        ) as executor:
            futures = {executor.submit(self.run_single_task, task): task for task in tasks}
            wait(futures)

        # Report in task order rather than completion order
        for future, task in futures.items():
            exc = future.exception()
            if exc is not None:
                logger.error("Crawl for %s failed: %s", task.base_uri, exc)
                failures[task.base_uri] = exc
                continue
            self._collect(task, future.result(), completed, failures)
        self._raise_for_failures(failures, completed)
        return completed

    def run_single_task(self, task: CrawlTask) -> CrawlStats:
        started = time.perf_counter()
        stats = task.start()
        logger.debug(
            "Execution with id %d took %d ms", task.id, (time.perf_counter() - started) * 1000
        )
        return stats

    @staticmethod
    def _collect(
        task: CrawlTask,
        stats: CrawlStats,
        completed: List[CrawlStats],
        failures: Dict[str, BaseException],
    ) -> None:
        if task.cancelled:
            failures[task.base_uri] = CrawlCancelledError(task.base_uri)
        else:
            completed.append(stats)

    @staticmethod
    def _raise_for_failures(
        failures: Dict[str, BaseException], completed: List[CrawlStats]
    ) -> None:
        if not failures:
            return
        hosts = ", ".join(sorted(failures))
        first = next(iter(failures.values()))
        raise CrawlExecutionError(
            f"{len(failures)} crawl task(s) failed: {hosts}", failures, completed
        ) from first
