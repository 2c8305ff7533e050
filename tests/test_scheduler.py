import threading
from typing import List

import pytest

from linkweaver.errors import CrawlCancelledError, CrawlExecutionError, RootFetchError
from linkweaver.models import CrawlStats
from linkweaver.scheduler import TaskExecutor


class StubTask:
    """Quacks like CrawlTask for the scheduler."""

    def __init__(self, base_uri: str, log: List[str], fail: bool = False, cancel: bool = False) -> None:
        self.id = len(log)
        self.base_uri = base_uri
        self.log = log
        self.fail = fail
        self.cancel_on_start = cancel
        self.cancelled = False

    def start(self) -> CrawlStats:
        self.log.append(self.base_uri)
        if self.cancel_on_start:
            self.cancelled = True
        if self.fail:
            raise RootFetchError(self.base_uri)
        return CrawlStats(base_uri=self.base_uri, pages_crawled=1)


class BarrierTask(StubTask):
    def __init__(self, base_uri: str, log: List[str], barrier: threading.Barrier) -> None:
        super().__init__(base_uri, log)
        self.barrier = barrier

    def start(self) -> CrawlStats:
        # Only passes if every task is running at the same time
        self.barrier.wait(timeout=5)
        return super().start()


def test_sequential_runs_in_order() -> None:
    log: List[str] = []
    tasks = [StubTask("https://a.test/", log), StubTask("https://b.test/", log)]

    stats = TaskExecutor().run(tasks)

    assert log == ["https://a.test/", "https://b.test/"]
    assert [s.base_uri for s in stats] == ["https://a.test/", "https://b.test/"]


def test_sequential_failure_does_not_stop_later_tasks() -> None:
    log: List[str] = []
    tasks = [
        StubTask("https://a.test/", log, fail=True),
        StubTask("https://b.test/", log),
    ]

    with pytest.raises(CrawlExecutionError) as info:
        TaskExecutor().run(tasks)

    assert log == ["https://a.test/", "https://b.test/"]
    assert isinstance(info.value.failures["https://a.test/"], RootFetchError)
    assert [s.base_uri for s in info.value.completed] == ["https://b.test/"]
    assert isinstance(info.value.__cause__, RootFetchError)


def test_parallel_runs_tasks_concurrently() -> None:
    log: List[str] = []
    barrier = threading.Barrier(3)
    tasks = [BarrierTask(f"https://{name}.test/", log, barrier) for name in "abc"]

    stats = TaskExecutor().run_parallel(tasks)

    assert sorted(log) == ["https://a.test/", "https://b.test/", "https://c.test/"]
    # Results follow task order, not completion order
    assert [s.base_uri for s in stats] == ["https://a.test/", "https://b.test/", "https://c.test/"]


def test_parallel_failure_lets_siblings_finish() -> None:
    log: List[str] = []
    tasks = [
        StubTask("https://a.test/", log),
        StubTask("https://b.test/", log, fail=True),
        StubTask("https://c.test/", log),
    ]

    with pytest.raises(CrawlExecutionError) as info:
        TaskExecutor().run_parallel(tasks)

    assert sorted(log) == ["https://a.test/", "https://b.test/", "https://c.test/"]
    assert list(info.value.failures) == ["https://b.test/"]
    assert [s.base_uri for s in info.value.completed] == ["https://a.test/", "https://c.test/"]


@pytest.mark.parametrize("mode", ["run", "run_parallel"])
def test_cancelled_task_is_reported_as_failure(mode: str) -> None:
    log: List[str] = []
    tasks = [
        StubTask("https://a.test/", log, cancel=True),
        StubTask("https://b.test/", log),
    ]

    with pytest.raises(CrawlExecutionError) as info:
        getattr(TaskExecutor(), mode)(tasks)

    assert isinstance(info.value.failures["https://a.test/"], CrawlCancelledError)
    assert [s.base_uri for s in info.value.completed] == ["https://b.test/"]


def test_parallel_with_no_tasks_returns_nothing() -> None:
    assert TaskExecutor().run_parallel([]) == []
