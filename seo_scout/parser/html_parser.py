# === FILE: seo_scout/parser/html_parser.py ===
"""On-page SEO signal extraction.

:func:`extract_signals` is a pure function from an HTML document (plus the
URL it was served from, used only to resolve relative image/icon paths) to a
flat :class:`PageSignals` record. It performs no network or storage I/O and
returns identical output for identical input.

What is extracted:

* title, meta description, language, hreflang alternates;
* headings H1–H6 and header usage counts;
* canonical link, robots meta and its ``noindex`` flag;
* meta image and favicon;
* raw anchors ``(href, text, rel)`` in document order;
* JSON-LD structured data, each block parsed on its own (broken blocks are
  dropped individually);
* analytics and technology fingerprints (substring / regex match against
  known vendor snippets);
* local-SEO and social signals.
"""
from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from seo_scout.crawler.link_extractor import RawLink, extract_hrefs, resolve_link
from seo_scout.crawler.models import PageRecord

__all__: Sequence[str] = ("PageSignals", "extract_signals", "detect_analytics", "detect_technology")

SERP_SNIPPET_LENGTH = 160

# (pattern, label), checked in order
_ANALYTICS_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"gtag\("), "Google Analytics (gtag)"),
    (re.compile(r"analytics\.js"), "Google Analytics (analytics.js)"),
    (re.compile(r"ga\('create'"), "Google Analytics (ga.js)"),
    (re.compile(r"dataLayer"), "Google Tag Manager"),
    (re.compile(r"fbq\(|connect\.facebook\.net"), "Facebook Pixel"),
)

_TECHNOLOGY_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(re.escape("wp-content")), "WordPress"),
    (re.compile(re.escape("Drupal.settings")), "Drupal"),
    (re.compile(re.escape("Shopify")), "Shopify"),
    (re.compile(r"next\.js", re.IGNORECASE), "Next.js"),
    (re.compile(r"react", re.IGNORECASE), "React"),
)

_PHONE_RE = re.compile(r"\d{3}[-.\s]?\d{3}[-.\s]?\d{4}")
_PIXEL_ID_RE = re.compile(r"fbq\(['\"]init['\"],\s*['\"]([^'\"]+)['\"]")

_SOCIAL_HOSTS = {
    "facebook": "facebook.com",
    "x": "twitter.com",
    "instagram": "instagram.com",
    "linkedin": "linkedin.com",
    "youtube": "youtube.com",
}


@dataclass(slots=True)
class PageSignals:
    """Flat record of everything the extractor reads from one document."""

    title: str = ""
    meta_description: str = ""
    serp_snippet: str = ""
    language: str = ""
    hreflangs: list[dict[str, str]] = field(default_factory=list)
    headings: dict[str, list[str]] = field(default_factory=dict)
    header_usage: dict[str, int] = field(default_factory=dict)
    canonical: str = ""
    robots_meta: str = ""
    noindex_meta: bool = False
    meta_image: str = ""
    favicon: str = ""
    links: list[RawLink] = field(default_factory=list)
    structured_data: list[Any] = field(default_factory=list)
    analytics: list[str] = field(default_factory=list)
    gtag_code: Optional[str] = None
    gtm_code: Optional[str] = None
    technology: list[str] = field(default_factory=list)
    address_phone_shown: bool = False
    local_business_schema: bool = False
    google_business_profile_identified: bool = False
    social: dict[str, Any] = field(default_factory=dict)

    @property
    def h1_tags(self) -> list[str]:
        return self.headings.get("h1", [])

    def to_page_record(self, url: str, links: list[str]) -> PageRecord:
        """Shape the crawl's per-page record from these signals."""
        return PageRecord(
            url=url,
            title=self.title,
            meta_description=self.meta_description,
            h1_tags=list(self.h1_tags),
            links=list(links),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["links"] = [{"href": h, "text": t, "rel": r} for h, t, r in self.links]
        return data


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _attr(tag: Any, name: str) -> str:
    if not isinstance(tag, Tag):
        return ""
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value.strip() if isinstance(value, str) else ""


def _meta(soup: BeautifulSoup, *, name: str | None = None, prop: str | None = None) -> str:
    if name is not None:
        tag = soup.find("meta", attrs={"name": re.compile(rf"^{re.escape(name)}$", re.I)})
    else:
        tag = soup.find("meta", attrs={"property": re.compile(rf"^{re.escape(prop or '')}$", re.I)})
    return _attr(tag, "content")


def _links_to(soup: BeautifulSoup, host: str) -> list[str]:
    return [_attr(a, "href") for a in soup.find_all("a", href=True) if host in _attr(a, "href")]


def _first_script(soup: BeautifulSoup, src_marker: str, inline_marker: str) -> Optional[str]:
    """First external script whose src contains *src_marker*, else first inline one mentioning *inline_marker*."""
    for script in soup.find_all("script", src=True):
        if src_marker in _attr(script, "src"):
            return str(script)
    for script in soup.find_all("script"):
        if inline_marker in script.get_text():
            return str(script)
    return None


def _structured_data(soup: BeautifulSoup) -> list[Any]:
    blocks: list[Any] = []
    for script in soup.find_all("script", attrs={"type": re.compile(r"^application/ld\+json$", re.I)}):
        try:
            parsed = json.loads(script.get_text())
        except ValueError:
            continue
        if parsed is not None:
            blocks.append(parsed)
    return blocks


def _is_local_business(item: Any) -> bool:
    if isinstance(item, dict):
        kind = item.get("@type")
        return kind == "LocalBusiness" or (isinstance(kind, list) and "LocalBusiness" in kind)
    return False


def detect_analytics(html: str) -> list[str]:
    """Labels of the analytics vendors whose snippets appear in *html*."""
    return [label for pattern, label in _ANALYTICS_PATTERNS if pattern.search(html)]


def detect_technology(html: str) -> list[str]:
    """Labels of the platforms / frameworks fingerprinted in *html*."""
    return [label for pattern, label in _TECHNOLOGY_PATTERNS if pattern.search(html)]


# ---------------------------------------------------------------------------
# Public function
# ---------------------------------------------------------------------------


def extract_signals(html: str, url: str = "") -> PageSignals:
    """Parse *html* and return its :class:`PageSignals`.

    Parameters
    ----------
    html
        Raw document markup.
    url
        Address the document was served from; only used to make the meta
        image and favicon absolute.
    """
    soup = BeautifulSoup(html, "html.parser")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""
    meta_description = _meta(soup, name="description")

    headings = {
        f"h{level}": [h.get_text(" ", strip=True) for h in soup.find_all(f"h{level}")]
        for level in range(1, 7)
    }

    robots_meta = _meta(soup, name="robots")
    meta_image = _meta(soup, prop="og:image") or _meta(soup, name="twitter:image")
    favicon = _attr(soup.find("link", rel="icon"), "href") or _attr(
        soup.find("link", rel="shortcut icon"), "href"
    )

    structured = _structured_data(soup)
    pixel = _PIXEL_ID_RE.search(html)

    social = {
        f"{name}_links": _links_to(soup, host) for name, host in _SOCIAL_HOSTS.items()
    }
    social["open_graph_tags"] = [
        _attr(m, "content") for m in soup.find_all("meta", attrs={"property": re.compile(r"^og:")})
    ]
    social["x_cards"] = [
        _attr(m, "content") for m in soup.find_all("meta", attrs={"name": re.compile(r"^twitter:card")})
    ]
    social["facebook_pixel"] = pixel.group(1) if pixel else ""
    social["youtube_embeds"] = [
        _attr(f, "src") for f in soup.find_all("iframe", src=True) if "youtube.com/embed" in _attr(f, "src")
    ]

    return PageSignals(
        title=title,
        meta_description=meta_description,
        serp_snippet=f"{title} - {meta_description}"[:SERP_SNIPPET_LENGTH],
        language=_attr(soup.find("html"), "lang"),
        hreflangs=[
            {"hreflang": _attr(link, "hreflang"), "href": _attr(link, "href")}
            for link in soup.find_all("link", rel="alternate", hreflang=True)
        ],
        headings=headings,
        header_usage={level.upper(): len(headings[level]) for level in ("h2", "h3", "h4", "h5", "h6")},
        canonical=_attr(soup.find("link", rel="canonical"), "href"),
        robots_meta=robots_meta,
        noindex_meta="noindex" in robots_meta.lower(),
        meta_image=(resolve_link(meta_image, url) or meta_image) if meta_image else "",
        favicon=(resolve_link(favicon, url) or favicon) if favicon else "",
        links=extract_hrefs(soup),
        structured_data=structured,
        analytics=detect_analytics(html),
        gtag_code=_first_script(soup, "gtag/js", "gtag("),
        gtm_code=_first_script(soup, "googletagmanager.com", "dataLayer"),
        technology=detect_technology(html),
        address_phone_shown=bool(soup.select('a[href^="tel:"]')) or bool(_PHONE_RE.search(html)),
        local_business_schema=any(_is_local_business(item) for item in structured),
        google_business_profile_identified="google.com/maps" in html,
        social=social,
    )
