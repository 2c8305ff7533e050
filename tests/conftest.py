from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional, Union

import pytest

from linkweaver.engine import CrawlTask
from linkweaver.export import ExportConfig
from linkweaver.models import Connection, NodeError, SuccessResultPage
from linkweaver.parser import SoupDocumentParser

BASE = "https://example.test/"


class FakeResponse:
    def __init__(
        self,
        text: str = "",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        self.text = text
        self.status_code = status_code
        self.headers = {"Content-Type": "text/html; charset=utf-8"} if headers is None else headers


Route = Union[FakeResponse, BaseException]


class FakeSession:
    """In-memory stand-in for requests.Session; unknown URLs answer 404."""

    def __init__(
        self,
        routes: Optional[Dict[str, Route]] = None,
        hooks: Optional[Dict[str, Callable[[], None]]] = None,
    ) -> None:
        self.routes = dict(routes or {})
        self.hooks = dict(hooks or {})
        self.calls: List[str] = []
        self.timeouts: List[Optional[float]] = []
        self.headers: Dict[str, str] = {}

    def get(self, url: str, timeout: Optional[float] = None, allow_redirects: bool = True):
        self.calls.append(url)
        self.timeouts.append(timeout)
        hook = self.hooks.get(url)
        if hook is not None:
            hook()
        route = self.routes.get(url, FakeResponse("not found", status_code=404))
        if isinstance(route, BaseException):
            raise route
        return route


class RecordingSink:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.pages: List[SuccessResultPage] = []
        self.connections: Dict[str, List[Connection]] = {}
        self.errors: Dict[str, List[NodeError]] = {}

    def process_success(self, page, config) -> None:
        with self._lock:
            self.pages.append(page)

    def process_errors(self, base_uri, errors, config) -> None:
        self.errors[base_uri] = list(errors)

    def process_connection_map(self, base_uri, connections, config) -> None:
        self.connections[base_uri] = list(connections)

    def page(self, uri: str) -> SuccessResultPage:
        return next(p for p in self.pages if p.uri == uri)


def html_page(*links: str, title: str = "Page", paragraphs: tuple = ("Some text.",)) -> str:
    anchors = "".join(f'<a href="{href}">link</a>' for href in links)
    body = "".join(f"<p>{p}</p>" for p in paragraphs)
    return f"<html><head><title>{title}</title></head><body>{body}{anchors}</body></html>"


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_task(sink, tmp_path):
    def _make(
        session: FakeSession,
        base_uri: str = BASE,
        max_depth: int = 3,
        parser=None,
        politeness_delay: float = 0,
    ) -> CrawlTask:
        return CrawlTask(
            base_uri,
            session,
            parser or SoupDocumentParser(),
            sink,
            ExportConfig.markdown(tmp_path),
            max_depth=max_depth,
            politeness_delay=politeness_delay,
            timeout=2.0,
        )

    return _make
