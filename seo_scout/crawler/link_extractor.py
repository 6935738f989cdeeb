# seo_scout/crawler/link_extractor.py
"""
Link extraction, resolution and URL normalization utilities for SEO Scout.
"""
from __future__ import annotations

import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from seo_scout.crawler.models import LinkRecord
from seo_scout.errors import InvalidUrl

RawLink = Tuple[str, str, str]

_ABSOLUTE_RE = re.compile(r"^https?://", re.IGNORECASE)
_WEB_SCHEMES = ("http", "https")


def resolve_link(href: str, base_url: str) -> Optional[str]:
    """
    Turn *href* into an absolute http(s) URL relative to *base_url*.

    Absolute URLs pass through unchanged (minus the fragment),
    protocol-relative ones inherit the base scheme, everything else is
    resolved against the page URL. Returns None for empty and fragment-only
    hrefs, non-web schemes and anything that does not parse.
    """
    href = href.strip()
    if not href or href.startswith("#"):
        return None
    try:
        if _ABSOLUTE_RE.match(href):
            absolute = href
        else:
            scheme = urlsplit(href).scheme
            if scheme and scheme.lower() not in _WEB_SCHEMES:
                return None
            absolute = urljoin(base_url, href)
        parts = urlsplit(absolute)
        _ = parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None
    if parts.scheme.lower() not in _WEB_SCHEMES or not parts.hostname:
        return None
    return urldefrag(absolute).url


def validate_url(url: str) -> str:
    """Return the stripped *url* if it is an absolute http(s) URL, else raise InvalidUrl."""
    if not isinstance(url, str) or resolve_link(url, "") is None:
        raise InvalidUrl(str(url))
    return url.strip()


def host_of(url: str) -> str:
    """Lower-cased hostname of *url* without the port, ``""`` when unparsable."""
    try:
        return urlsplit(url).hostname or ""
    except ValueError:
        return ""


def is_internal(url: str, host: str) -> bool:
    """True iff the hostname of *url* equals *host* exactly (no subdomain folding)."""
    return bool(host) and host_of(url) == host.lower()


def normalize_url(url: str) -> str:
    """
    Visited-set key: lower-case scheme and host, drop the fragment,
    an empty path becomes ``/``.
    """
    parts = urlsplit(url)
    path = parts.path or "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def extract_hrefs(soup: BeautifulSoup) -> List[RawLink]:
    """``(href, text, rel)`` of every ``<a href>`` in document order."""
    links: List[RawLink] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str) or not href_val.strip():
            continue
        rel_val = tag.get("rel") or ""
        rel = " ".join(rel_val) if isinstance(rel_val, list) else str(rel_val)
        links.append((href_val.strip(), tag.get_text(strip=True), rel.lower()))
    return links


def resolve_links(hrefs: Iterable[str], base_url: str) -> List[str]:
    """Resolve every href, dropping the ones that cannot be resolved."""
    resolved: List[str] = []
    for href in hrefs:
        absolute = resolve_link(href, base_url)
        if absolute is not None:
            resolved.append(absolute)
    return resolved


def build_link_records(raw_links: Iterable[RawLink], base_url: str, host: str) -> List[LinkRecord]:
    """Classify the anchors of a page. Unresolvable hrefs keep an empty normalized URL."""
    records: List[LinkRecord] = []
    for href, text, rel in raw_links:
        normalized = resolve_link(href, base_url) or ""
        records.append(
            LinkRecord(
                href=href,
                text=text,
                rel=rel,
                normalized_url=normalized,
                is_internal=bool(normalized) and is_internal(normalized, host),
                domain=urlsplit(normalized).netloc.lower() if normalized else "",
            )
        )
    return records
