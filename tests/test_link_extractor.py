# File: tests/test_link_extractor.py
import pytest
from bs4 import BeautifulSoup

from seo_scout.crawler.link_extractor import (
    build_link_records,
    extract_hrefs,
    host_of,
    is_internal,
    normalize_url,
    resolve_link,
    resolve_links,
    validate_url,
)
from seo_scout.errors import InvalidUrl

BASE = "https://example.com/blog/post"


@pytest.mark.parametrize(
    "url",
    [
        "http://host/path",
        "https://example.com/a/b?x=1",
        "HTTP://Example.com/Path",
    ],
)
def test_absolute_url_returned_unchanged(url):
    assert resolve_link(url, BASE) == url


@pytest.mark.parametrize(
    "href,expected",
    [
        ("next", "https://example.com/blog/next"),
        ("../about", "https://example.com/about"),
        ("/contact", "https://example.com/contact"),
        ("//cdn.example.org/x.js", "https://cdn.example.org/x.js"),
        ("?page=2", "https://example.com/blog/post?page=2"),
        ("/faq#shipping", "https://example.com/faq"),
    ],
)
def test_relative_links_resolve_against_page(href, expected):
    assert resolve_link(href, BASE) == expected


@pytest.mark.parametrize(
    "href",
    ["", "   ", "#top", "mailto:hi@example.com", "tel:+123", "javascript:void(0)", "http://[broken/", "http://host:99999/"],
)
def test_unresolvable_links_are_dropped(href):
    assert resolve_link(href, BASE) is None


def test_resolve_links_keeps_order_and_skips_garbage():
    assert resolve_links(["/a", "mailto:x@y.z", "b"], BASE) == [
        "https://example.com/a",
        "https://example.com/blog/b",
    ]


def test_validate_url():
    assert validate_url("  https://example.com  ") == "https://example.com"
    for bad in ("example.com", "/relative", "ftp://example.com/", ""):
        with pytest.raises(InvalidUrl):
            validate_url(bad)


def test_invalid_url_is_value_error():
    with pytest.raises(ValueError):
        validate_url("nope")


def test_host_and_internal_checks():
    assert host_of("https://WWW.Example.com:8443/x") == "www.example.com"
    assert host_of("not a url") == ""
    assert is_internal("https://example.com/x", "example.com")
    assert not is_internal("https://www.example.com/x", "example.com")
    assert not is_internal("https://example.com/x", "")


def test_normalize_url():
    assert normalize_url("HTTPS://Example.COM") == "https://example.com/"
    assert normalize_url("https://example.com/a?b=1#frag") == "https://example.com/a?b=1"
    assert normalize_url("https://example.com/A/") == "https://example.com/A/"


def test_extract_hrefs_reads_text_and_rel():
    soup = BeautifulSoup(
        '<a href=" /a ">First</a><a>no href</a><a href="">empty</a>'
        '<a href="https://x.org" rel="NoFollow sponsored">X</a>',
        "html.parser",
    )
    assert extract_hrefs(soup) == [("/a", "First", ""), ("https://x.org", "X", "nofollow sponsored")]


def test_build_link_records_classifies_links():
    records = build_link_records(
        [("/a", "A", ""), ("https://other.org/p", "Other", "nofollow"), ("mailto:x@y.z", "Mail", "")],
        "https://example.com/",
        "example.com",
    )
    internal, external, mail = records
    assert internal.is_internal and internal.normalized_url == "https://example.com/a"
    assert not external.is_internal and external.domain == "other.org"
    assert mail.normalized_url == "" and mail.domain == "" and not mail.is_internal
