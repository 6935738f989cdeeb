# === FILE: seo_scout/crawler/crawler.py ===
from __future__ import annotations

import time
from collections import deque
from typing import Callable, Deque, Dict, Optional, Set, Tuple
from urllib.parse import urljoin, urlsplit

from seo_scout.crawler.fetcher import Fetcher
from seo_scout.crawler.link_extractor import host_of, is_internal, normalize_url, resolve_links, validate_url
from seo_scout.crawler.models import CrawlIssue, CrawlResult, CrawlTask, IssueKind
from seo_scout.crawler.robots import RobotsTxtRules
from seo_scout.errors import FetchError
from seo_scout.logger import logger
from seo_scout.parser.html_parser import extract_signals

__all__ = ("SiteCrawler",)


class _CrawlState:
    """Mutable bookkeeping private to one crawl invocation."""

    def __init__(self, start_url: str, max_depth: int) -> None:
        self.start_host = host_of(start_url)
        self.max_depth = max_depth
        self.queue: Deque[CrawlTask] = deque([CrawlTask(start_url, 0)])
        self.queued: Set[str] = {start_url}
        self.visited: Set[str] = set()
        self.title_owner: Dict[str, str] = {}
        self.result = CrawlResult()


class SiteCrawler:
    """
    Sequential breadth-first crawler collecting page records and crawl issues.

    One network operation is in flight at a time. Traversal stops when the
    queue empties, or early (with a ``crawl_truncated`` issue) once
    *max_pages* page records were produced or *max_duration* seconds elapsed.
    HEAD liveness checks are issued once per unique internal URL.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        max_pages: int = 200,
        max_duration: Optional[float] = None,
        robots_agent: str = "*",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_pages < 1:
            raise ValueError("max_pages must be >= 1")
        self.fetcher = fetcher
        self.max_pages = max_pages
        self.max_duration = max_duration
        self.robots_agent = robots_agent
        self._clock = clock
        self._liveness: Dict[str, Tuple[Optional[int], str]] = {}

    async def crawl(self, start_url: str, max_depth: int) -> CrawlResult:
        start_url = validate_url(start_url)
        if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 0:
            raise ValueError(f"max_depth must be a non-negative integer, got {max_depth!r}")

        self._liveness = {}
        state = _CrawlState(normalize_url(start_url), max_depth)
        started = self._clock()
        logger.info("Crawl started: %s (max depth %d)", start_url, max_depth)

        while state.queue:
            reason = self._budget_exhausted(state, started)
            if reason:
                logger.warning("Crawl of %s truncated: %s", start_url, reason)
                state.result.issues.append(CrawlIssue(IssueKind.CRAWL_TRUNCATED, start_url, reason))
                break
            task = state.queue.popleft()
            if task.url in state.visited or task.depth > max_depth:
                continue
            state.visited.add(task.url)
            await self._visit(task, state)

        duration = self._clock() - started
        logger.info(
            "Crawl finished: %d pages, %d issues in %.2f s",
            len(state.result.pages), len(state.result.issues), duration,
        )
        return state.result

    def _budget_exhausted(self, state: _CrawlState, started: float) -> str:
        if len(state.result.pages) >= self.max_pages:
            return f"page limit of {self.max_pages} reached"
        if self.max_duration is not None and self._clock() - started >= self.max_duration:
            return f"time limit of {self.max_duration:g}s reached"
        return ""

    async def _visit(self, task: CrawlTask, state: _CrawlState) -> None:
        issues = state.result.issues
        try:
            page = await self.fetcher.fetch(task.url)
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", task.url, exc)
            issues.append(CrawlIssue(IssueKind.FETCH_ERROR, task.url, str(exc), status=exc.status))
            return

        base_url = page.final_url or task.url
        signals = extract_signals(page.content, base_url)
        links = resolve_links((href for href, _, _ in signals.links), base_url)

        if not signals.title:
            issues.append(CrawlIssue(IssueKind.MISSING_TITLE, task.url))
        elif signals.title in state.title_owner:
            issues.append(
                CrawlIssue(IssueKind.DUPLICATE_TITLE, task.url, state.title_owner[signals.title])
            )
        else:
            state.title_owner[signals.title] = task.url

        if task.depth == 0:
            await self._check_robots(task.url, state)

        checked: Set[str] = set()
        for link in links:
            if not is_internal(link, state.start_host):
                continue
            key = normalize_url(link)
            child_depth = task.depth + 1
            if key not in state.visited and key not in state.queued and child_depth <= state.max_depth:
                state.queue.append(CrawlTask(key, child_depth))
                state.queued.add(key)
            if key in checked:
                continue
            checked.add(key)
            status, error = await self._check_link(key)
            if status is None:
                logger.debug("Liveness check of %s failed: %s", link, error)
            elif not 200 <= status < 300:
                issues.append(CrawlIssue(IssueKind.BROKEN_LINK, task.url, link, status=status))
                logger.debug("Broken link on %s: %s (%s)", task.url, link, status)

        state.result.pages.append(signals.to_page_record(task.url, links))

    async def _check_link(self, url: str) -> Tuple[Optional[int], str]:
        if url not in self._liveness:
            try:
                self._liveness[url] = (await self.fetcher.head(url), "")
            except FetchError as exc:
                self._liveness[url] = (None, str(exc))
        return self._liveness[url]

    async def _check_robots(self, page_url: str, state: _CrawlState) -> None:
        robots_url = urljoin(page_url, "/robots.txt")
        try:
            text = await self.fetcher.fetch_text(robots_url)
        except FetchError as exc:
            logger.debug("robots.txt unavailable at %s: %s", robots_url, exc)
            return
        if text is None:
            logger.debug("robots.txt not found at %s", robots_url)
            return
        parts = urlsplit(page_url)
        path = (parts.path or "/") + (f"?{parts.query}" if parts.query else "")
        if not RobotsTxtRules(text).can_fetch(self.robots_agent, path):
            state.result.issues.append(CrawlIssue(IssueKind.ROBOTS_BLOCKED, page_url, robots_url))
