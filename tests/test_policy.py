import pytest

from linkweaver.policy import (
    DefaultUriValidator,
    LinkPolicy,
    equal_host,
    is_allowed_content_type,
    is_allowed_url,
    is_external_uri,
    strip_www,
)

BASE = "https://example.test/"


def test_jpeg_is_not_allowed() -> None:
    assert not is_allowed_url("https://192.168.10.2:8080/file.jpeg")


def test_unknown_extension_is_allowed() -> None:
    assert is_allowed_url("https://192.168.10.2:8080/file.unknown")


def test_extension_check_ignores_query_and_case() -> None:
    assert not is_allowed_url("https://example.test/Photo.PNG?size=large")
    assert is_allowed_url("https://example.test/download?file=a.zip")


def test_different_hosts_are_external() -> None:
    assert is_external_uri("https://192.168.1.0:8080", "https://192.168.2.0:8080")


def test_www_prefix_is_ignored_when_comparing_hosts() -> None:
    assert not is_external_uri("https://example.test/", "https://www.example.test/about")
    assert strip_www("www.example.test") == "example.test"
    assert strip_www("wwwexample.test") == "wwwexample.test"


def test_missing_host_never_matches() -> None:
    assert not equal_host(None, "example.test")
    assert not equal_host("example.test", None)
    assert is_external_uri(BASE, "mailto:someone@example.test")


def test_subdomain_is_external() -> None:
    assert is_external_uri(BASE, "https://blog.example.test/post")


@pytest.mark.parametrize(
    "uri",
    [
        "https://example.test/",
        "http://192.168.1.10:8080",
        "https://www.example.test/a/b?c=d",
        "http://[::1]:8000/",
    ],
)
def test_validator_accepts(uri: str) -> None:
    assert DefaultUriValidator().is_valid(uri)


@pytest.mark.parametrize(
    "uri",
    [
        "",
        "ftp://example.test/file",
        "javascript:void(0)",
        "/relative/path",
        "https://exa mple.test/",
        "https://example.test:notaport/",
        "https://-bad-.test/",
    ],
)
def test_validator_rejects(uri: str) -> None:
    assert not DefaultUriValidator().is_valid(uri)


def test_policy_admits_same_host_pages() -> None:
    policy = LinkPolicy(BASE)
    assert policy.admits("https://example.test/about")
    assert policy.admits("https://www.example.test/about")


def test_policy_rejects_external_asset_and_invalid_links() -> None:
    policy = LinkPolicy(BASE)
    assert not policy.admits("https://other.test/")
    assert not policy.admits("https://example.test/logo.png")
    assert not policy.admits("https://example.test/archive.zip")
    assert not policy.admits("not a uri")


def test_policy_uses_injected_validator() -> None:
    class RejectAll:
        def is_valid(self, uri: str) -> bool:
            return False

    assert not LinkPolicy(BASE, RejectAll()).admits("https://example.test/about")


def test_admitted_is_sorted_and_deduplicated() -> None:
    policy = LinkPolicy(BASE)
    result = policy.admitted([
        "https://example.test/b",
        "https://example.test/a",
        "https://example.test/b",
        "https://other.test/c",
    ])
    assert result == ["https://example.test/a", "https://example.test/b"]


def test_allowed_content_types() -> None:
    assert is_allowed_content_type("text/html; charset=utf-8")
    assert is_allowed_content_type("application/json")
    assert not is_allowed_content_type("text/xml")
    assert not is_allowed_content_type("image/png")
