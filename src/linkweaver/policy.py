"""
Link admission rules: which discovered URIs may ever be scheduled for a host.
"""
from __future__ import annotations

import ipaddress
import re
from typing import Iterable, Optional, Protocol
from urllib.parse import urlparse

# Non-text formats that are never crawled (frozen set for O(1) lookup)
SKIP_EXTENSIONS: frozenset[str] = frozenset((
    # archives
    ".7z", ".7zip", ".bz2", ".rar", ".tar", ".tar.gz", ".xz", ".zip",
    # images
    ".mng", ".pct", ".bmp", ".gif", ".jpg", ".jpeg", ".png", ".pst", ".psp",
    ".tif", ".tiff", ".ai", ".drw", ".dxf", ".eps", ".ps", ".svg", ".cdr", ".ico",
    # audio
    ".mp3", ".wma", ".ogg", ".wav", ".ra", ".aac", ".mid", ".au", ".aiff",
    # video
    ".3gp", ".asf", ".asx", ".avi", ".mov", ".mp4", ".mpg", ".qt", ".rm",
    ".swf", ".wmv", ".m4a", ".m4v", ".flv", ".webm",
    # office documents
    ".xls", ".xlsx", ".ppt", ".pptx", ".pps", ".doc", ".docx",
    ".odt", ".ods", ".odg", ".odp", ".pdf",
    # executables and other binaries
    ".exe", ".bin", ".dmg", ".iso", ".apk",
    # misc
    ".css", ".rss", ".template", ".torrent",
))

ALLOWED_CONTENT_TYPES: tuple[str, ...] = (
    "text/html",
    "text/plain",
    "application/json",
    "application/javascript",
)

ALLOWED_SCHEMES: frozenset[str] = frozenset(("http", "https"))

WWW_PREFIX = "www."

_HOST_LABEL = re.compile(r"^(?!-)[a-z0-9-]{1,63}(?<!-)$", re.IGNORECASE)


class UriValidator(Protocol):
    """Syntactic URI check used before any other admission rule."""

    def is_valid(self, uri: str) -> bool: ...


class DefaultUriValidator:
    """
    Accept absolute http(s) URIs with a well-formed host.

    The host must be an IP address or a dot-separated list of DNS labels,
    and any explicit port must parse.
    """

    def is_valid(self, uri: str) -> bool:
        if not uri or any(ch.isspace() for ch in uri):
            return False
        try:
            parsed = urlparse(uri)
            parsed.port  # raises ValueError for a malformed port
        except ValueError:
            return False

        if parsed.scheme.lower() not in ALLOWED_SCHEMES:
            return False
        host = parsed.hostname
        if not host:
            return False
        if _is_ip_address(host):
            return True
        labels = host.rstrip(".").split(".")
        return all(_HOST_LABEL.match(label) for label in labels)


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def is_allowed_url(uri: str) -> bool:
    """False when the URI path ends with a skipped extension."""
    path_lower = (urlparse(uri).path or "").lower()
    return not any(path_lower.endswith(ext) for ext in SKIP_EXTENSIONS)


def strip_www(host: str) -> str:
    """Drop a leading 'www.' label so www.example.com compares equal to example.com."""
    if host.startswith(WWW_PREFIX):
        return host[len(WWW_PREFIX):]
    return host


def equal_host(host1: Optional[str], host2: Optional[str]) -> bool:
    """Compare two hosts after stripping 'www.'; a missing host never matches."""
    if host1 is None or host2 is None:
        return False
    return strip_www(host1) == strip_www(host2)


def is_external_uri(base_uri: str, child_uri: str) -> bool:
    """True when child_uri lives on a different host than base_uri."""
    return not equal_host(urlparse(base_uri).hostname, urlparse(child_uri).hostname)


def is_allowed_content_type(content_type: str) -> bool:
    """True when the header value mentions one of the allowed media types."""
    return any(allowed in content_type for allowed in ALLOWED_CONTENT_TYPES)


class LinkPolicy:
    """Admission policy scoped to one host's base URI."""

    def __init__(self, base_uri: str, validator: Optional[UriValidator] = None) -> None:
        self.base_uri = base_uri
        self.validator = validator or DefaultUriValidator()

    def admits(self, candidate: str) -> bool:
        """Return True if candidate may be scheduled for this host."""
        if not self.validator.is_valid(candidate):
            return False
        if not is_allowed_url(candidate):
            return False
        return not is_external_uri(self.base_uri, candidate)

    def admitted(self, candidates: Iterable[str]) -> list[str]:
        """Admitted candidates, sorted so traversal order is deterministic."""
        return sorted({c for c in candidates if self.admits(c)})
