"""
Export configuration and the sinks that persist crawl results.
"""
from __future__ import annotations

import json
import logging
import random
from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Protocol, Union
from urllib.parse import urlparse

from linkweaver.errors import OutputFileError
from linkweaver.models import Connection, NodeError, SuccessResultPage

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_PATH = Path("output")
CONNECTIONS_PREFIX = "connections"
ERRORS_PREFIX = "errors"

# Pages with less text than this are not worth a file
MIN_BYTES_ALLOWED = 400

MAX_NAME_ATTEMPTS = 5


class ExportFormat(Enum):
    """File formats supported for exported pages."""
    MARKDOWN = ".md"
    JSON = ".json"

    @property
    def extension(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ExportConfig:
    """Where and how result files are written."""
    path: Path
    format: ExportFormat = ExportFormat.MARKDOWN
    metadata: bool = False

    @classmethod
    def markdown(cls, path: Union[str, Path]) -> "ExportConfig":
        """Markdown export into path (created if missing). Markdown never carries metadata."""
        return cls(path=_ensure_dir(Path(path)), format=ExportFormat.MARKDOWN)

    @classmethod
    def json(cls, path: Union[str, Path], metadata: bool = False) -> "ExportConfig":
        """JSON export into path (created if missing), optionally with page metadata."""
        return cls(path=_ensure_dir(Path(path)), format=ExportFormat.JSON, metadata=metadata)

    @classmethod
    def default(cls) -> "ExportConfig":
        """Markdown into ./output; the directory is created on first write."""
        return cls(path=DEFAULT_OUTPUT_PATH)


def _ensure_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputFileError(f"Could not create directory {path}: {exc}") from exc
    if not path.is_dir():
        raise OutputFileError(f"{path} exists and is not a directory")
    return path


class ResultSink(Protocol):
    """Receives crawl results. process_success may be called from writer threads."""

    def process_success(self, page: SuccessResultPage, config: ExportConfig) -> None: ...

    def process_errors(
        self, base_uri: str, errors: List[NodeError], config: ExportConfig
    ) -> None: ...

    def process_connection_map(
        self, base_uri: str, connections: List[Connection], config: ExportConfig
    ) -> None: ...


def pretty_host_name(uri: str) -> str:
    """Hostname with dots replaced by underscores, safe for filenames."""
    hostname = urlparse(uri).hostname or "unknown"
    return hostname.replace(".", "_")


def markdown_document(title: str, content: str) -> str:
    """Render a page as a Markdown heading followed by its paragraphs."""
    parts = [f"### {title}"]
    parts.extend(content.splitlines())
    return "".join(f"{part}\n\n" for part in parts)


class FileResultSink:
    """ResultSink writing one file per page plus a connection map and error log per host."""

    def process_success(self, page: SuccessResultPage, config: ExportConfig) -> None:
        if not page.content:
            return
        if len(page.content.encode("utf-8")) < MIN_BYTES_ALLOWED:
            return

        if config.format is ExportFormat.JSON:
            output: Dict[str, Any] = {}
            if config.metadata:
                output["metadata"] = asdict(page.metadata)
            output["title"] = page.title
            output["content"] = page.content
            data = json.dumps(output, ensure_ascii=False)
        else:
            data = markdown_document(page.title, page.content)

        # Writer threads of one host can produce the same name in the same millisecond
        for _ in range(MAX_NAME_ATTEMPTS):
            try:
                self._write(config.path, self.success_file_name(page.uri, config), data, mode="x")
                return
            except FileExistsError:
                continue
        raise OutputFileError(f"No free file name for {page.uri} in {config.path}")

    def process_errors(
        self, base_uri: str, errors: List[NodeError], config: ExportConfig
    ) -> None:
        payload = [asdict(e) for e in errors]
        self._write(config.path, self.custom_file_name(ERRORS_PREFIX, base_uri), _to_json(payload))

    def process_connection_map(
        self, base_uri: str, connections: List[Connection], config: ExportConfig
    ) -> None:
        payload = [asdict(c) for c in connections]
        self._write(
            config.path, self.custom_file_name(CONNECTIONS_PREFIX, base_uri), _to_json(payload)
        )

    def success_file_name(self, uri: str, config: ExportConfig) -> str:
        """{host}-{6 digit id}{timestamp to the millisecond}{extension}"""
        unique_id = f"{random.randrange(10000):06d}"
        timestamp = datetime.now().strftime("%Y%m%d%H%M%S%f")[:-3]
        return f"{pretty_host_name(uri)}-{unique_id}{timestamp}{config.format.extension}"

    def custom_file_name(self, prefix: str, uri: str) -> str:
        return f"{prefix}-{pretty_host_name(uri)}{ExportFormat.JSON.extension}"

    def _write(self, directory: Path, filename: str, data: str, mode: str = "w") -> Path:
        """Write data to directory/filename. FileExistsError passes through for mode "x"."""
        output_path = directory / filename
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputFileError(f"Could not create directory {directory}: {exc}") from exc
        try:
            with output_path.open(mode, encoding="utf-8") as f:
                f.write(data)
        except FileExistsError:
            raise
        except OSError as exc:
            raise OutputFileError(f"Could not write {output_path}: {exc}") from exc
        logger.debug("Results written to: %s", output_path)
        return output_path


def _to_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2)
