# File: seo_scout/errors.py
"""seo_scout.errors: exception hierarchy shared by the crawler, the engine and the API."""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SeoScoutError",
    "InvalidUrl",
    "FetchError",
    "RobotsUnavailable",
    "SitemapUnavailable",
    "ExternalServiceError",
    "PersistenceError",
]


class SeoScoutError(Exception):
    """Base class for every error raised by SEO Scout."""


class InvalidUrl(SeoScoutError, ValueError):
    """The URL is not an absolute http(s) URL. Fatal to the request."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Invalid URL: {url!r}")
        self.url = url


class FetchError(SeoScoutError):
    """A page could not be retrieved (network error, timeout or non-2xx status)."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status = status


class RobotsUnavailable(SeoScoutError):
    """robots.txt is missing or could not be retrieved."""


class SitemapUnavailable(SeoScoutError):
    """No XML sitemap could be located."""


class ExternalServiceError(SeoScoutError):
    """A third-party lookup (PageSpeed, DNS, WHOIS, Search Console) failed."""

    def __init__(self, service: str, message: str) -> None:
        super().__init__(f"{service}: {message}")
        self.service = service


class PersistenceError(SeoScoutError):
    """The audit store rejected a read or write."""
