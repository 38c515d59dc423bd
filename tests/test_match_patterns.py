import pytest

from inferselector.errors import InvalidPatternError
from inferselector.match_patterns import ALL_URLS, compile_match_pattern, url_matches_patterns

PATTERNS = ["https://www.example.com/*", "https://*.pixiebrix.com/update/*"]


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://www.example.com", True),
        ("https://www.example.com/page?q=1", True),
        ("https://pixiebrix.com/update/", True),
        ("https://app.pixiebrix.com/update/now", True),
        ("https://example.com", False),
        ("https://www.example.comunication", False),
        ("http://www.example.com/", False),
    ],
)
def test_url_matches_patterns(url: str, expected: bool) -> None:
    assert url_matches_patterns(PATTERNS, url) is expected


def test_all_urls_covers_web_schemes_only() -> None:
    assert url_matches_patterns([ALL_URLS], "https://example.com")
    assert url_matches_patterns([ALL_URLS], "file:///tmp/index.html")
    assert not url_matches_patterns([ALL_URLS], "chrome://extensions")


def test_srcdoc_frames_need_all_urls() -> None:
    assert url_matches_patterns([ALL_URLS], "about:srcdoc")
    assert not url_matches_patterns(["https://www.example.com/*"], "about:srcdoc")


def test_wildcard_scheme_and_port() -> None:
    assert url_matches_patterns(["*://localhost:8080/*"], "http://localhost:8080/app")
    assert not url_matches_patterns(["*://localhost:8080/*"], "http://localhost:9000/app")
    assert url_matches_patterns(["*://*/*"], "wss://socket.example.com/")


def test_host_matching_ignores_case() -> None:
    assert url_matches_patterns(["https://www.example.com/*"], "https://WWW.Example.com/Path")


def test_invalid_pattern_names_the_pattern() -> None:
    with pytest.raises(InvalidPatternError, match="www.example.com/\\*") as excinfo:
        url_matches_patterns(["www.example.com/*"], "https://www.example.com/")
    assert excinfo.value.pattern == "www.example.com/*"


def test_invalid_pattern_raises_even_for_srcdoc() -> None:
    with pytest.raises(InvalidPatternError):
        url_matches_patterns(["https://"], "about:srcdoc")


def test_compile_match_pattern_is_anchored() -> None:
    regex = compile_match_pattern("https://example.com/docs/*")
    assert regex.match("https://example.com/docs/a/b")
    assert not regex.match("https://example.com/blog/docs/a")
