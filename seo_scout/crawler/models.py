# seo_scout/crawler/models.py
"""
Data models for the SEO Scout crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True, slots=True)
class CrawlTask:
    """A URL waiting in the crawl queue together with its link depth."""

    url: str
    depth: int


@dataclass(slots=True)
class FetchedPage:
    """Holds the response of a successful page fetch."""

    url: str
    final_url: str
    status: int
    headers: Mapping[str, str]
    content: str

    def header(self, name: str) -> str:
        """Case-insensitive header lookup, ``""`` when absent."""
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return ""


@dataclass(frozen=True, slots=True)
class PageRecord:
    """What the crawl keeps about one successfully fetched page."""

    url: str
    title: str
    meta_description: str
    h1_tags: List[str] = field(default_factory=list)
    links: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class IssueKind(str, Enum):
    MISSING_TITLE = "missing_title"
    DUPLICATE_TITLE = "duplicate_title"
    ROBOTS_BLOCKED = "robots_blocked"
    BROKEN_LINK = "broken_link"
    FETCH_ERROR = "fetch_error"
    CRAWL_TRUNCATED = "crawl_truncated"


@dataclass(frozen=True, slots=True)
class CrawlIssue:
    """A structural problem found while crawling.

    ``detail`` carries the first owner of the title for duplicates, the
    offending link for broken links, and the error text for fetch errors.
    """

    kind: IssueKind
    url: str
    detail: str = ""
    status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind.value, "url": self.url, "detail": self.detail}
        if self.status is not None:
            data["status"] = self.status
        return data


@dataclass(frozen=True, slots=True)
class LinkRecord:
    """An anchor found on a page, resolved against the page URL."""

    href: str
    text: str
    rel: str
    normalized_url: str
    is_internal: bool
    domain: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class CrawlResult:
    """Pages and issues collected by one crawl invocation."""

    pages: List[PageRecord] = field(default_factory=list)
    issues: List[CrawlIssue] = field(default_factory=list)

    def issues_of(self, kind: IssueKind) -> List[CrawlIssue]:
        return [issue for issue in self.issues if issue.kind is kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pages": [page.to_dict() for page in self.pages],
            "issues": [issue.to_dict() for issue in self.issues],
        }
