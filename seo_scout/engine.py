# File: seo_scout/engine.py
"""seo_scout.engine: orchestration layer that runs an audit and shapes its result."""

from __future__ import annotations

import asyncio
from types import ModuleType
from typing import Any, Awaitable, Dict, List, Optional, Tuple, TypeVar
from urllib.parse import urlsplit

from seo_scout.aggregator import (
    RobotsFacts,
    SiteFacts,
    aggregate_audit,
    analyze_links,
    referring_domains,
    response_facts,
)
from seo_scout.cache import AuditCache
from seo_scout.config import AuditConfig
from seo_scout.crawler.crawler import SiteCrawler
from seo_scout.crawler.fetcher import Fetcher
from seo_scout.crawler.link_extractor import build_link_records, host_of, validate_url
from seo_scout.crawler.models import CrawlResult
from seo_scout.crawler.robots import RobotsTxtRules
from seo_scout.errors import (
    ExternalServiceError,
    FetchError,
    PersistenceError,
    RobotsUnavailable,
    SitemapUnavailable,
)
from seo_scout.logger import logger
from seo_scout.parser.html_parser import extract_signals
from seo_scout.parser.sitemap_parser import parse_sitemap
from seo_scout.services import dns_info
from seo_scout.services.pagespeed import PAGESPEED_API_URL, PageSpeedClient
from seo_scout.storage import AuditStore

__all__ = ["Engine", "check_depth"]

T = TypeVar("T")


def check_depth(depth: Any) -> int:
    """Validate a requested crawl depth."""
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
        raise ValueError(f"depth must be a non-negative integer, got {depth!r}")
    return depth


class Engine:
    """Facade for the CLI and the HTTP API: cache lookup, audit pipeline, persistence."""

    def __init__(
        self,
        config: AuditConfig,
        cache: Optional[AuditCache] = None,
        store: Optional[AuditStore] = None,
        *,
        lookups: ModuleType = dns_info,
        pagespeed_endpoint: str = PAGESPEED_API_URL,
    ) -> None:
        self.config = config
        self.cache = cache if cache is not None else AuditCache(
            ttl=config.cache_ttl,
            max_entries=config.cache_max_entries,
            history_max_entries=config.history_max_entries,
        )
        self.store = store if store is not None else self._open_store(config)
        self.lookups = lookups
        self.pagespeed_endpoint = pagespeed_endpoint

    @staticmethod
    def _open_store(config: AuditConfig) -> Optional[AuditStore]:
        if not config.database_url:
            return None
        try:
            return AuditStore(config.database_url)
        except PersistenceError as exc:
            logger.error("Audit store disabled: %s", exc)
            return None

    # ------------------------------------------------------------------ #
    # Public API                                                         #
    # ------------------------------------------------------------------ #

    async def audit(self, url: str, depth: Optional[int] = None) -> Tuple[Dict[str, Any], bool]:
        """
        Audit *url* and return ``(record, served_from_cache)``.

        ``depth <= 1`` audits the single page; a larger depth also crawls the
        site with that maximum depth. Raises InvalidUrl for a malformed URL
        and FetchError when the page itself cannot be retrieved; every other
        failing lookup only empties its own fields.
        """
        url = validate_url(url)
        depth = check_depth(self.config.default_depth if depth is None else depth)

        cached = self.cache.get(url)
        if cached is not None:
            logger.info("Returning cached audit for %s", url)
            return cached.data, True

        logger.info("Auditing %s (depth %d)", url, depth)
        async with Fetcher.open(self.config) as fetcher:
            data = await self._run_audit(fetcher, url, depth)

        self.cache.set(url, data)
        await self._persist(url, data)
        return data, False

    async def crawl(self, url: str, depth: int) -> CrawlResult:
        """Crawl only, without the single-page audit."""
        url = validate_url(url)
        async with Fetcher.open(self.config) as fetcher:
            return await self._crawler(fetcher).crawl(url, check_depth(depth))

    def history(self, url: str) -> List[Dict[str, Any]]:
        """Cached audits of *url*, oldest first."""
        return [entry.to_dict() for entry in self.cache.history(url)]

    # ------------------------------------------------------------------ #
    # Pipeline                                                           #
    # ------------------------------------------------------------------ #

    def _crawler(self, fetcher: Fetcher) -> SiteCrawler:
        return SiteCrawler(
            fetcher,
            max_pages=self.config.max_pages,
            max_duration=self.config.crawl_timeout,
        )

    async def _run_audit(self, fetcher: Fetcher, url: str, depth: int) -> Dict[str, Any]:
        host = host_of(url)
        psi = await self._pagespeed(fetcher, url)

        crawl: Optional[CrawlResult] = None
        if depth > 1:
            crawl = await self._crawler(fetcher).crawl(url, depth)

        https_redirect = await self._https_redirect(fetcher, url)
        page = await fetcher.fetch(url)
        base_url = page.final_url or url
        signals = extract_signals(page.content, base_url)

        records = build_link_records(signals.links, base_url, host)
        resolved_ips: Dict[str, Optional[str]] = {}
        for domain in referring_domains(records):
            resolved_ips[domain] = await self._degrade(
                self.lookups.resolve_ip(domain.split(":", 1)[0]), f"IP of {domain}", None
            )

        return aggregate_audit(
            url=url,
            signals=signals,
            response=response_facts(page, https_redirect),
            robots=await self._robots_facts(fetcher, url),
            site=await self._site_facts(host),
            link_analysis=analyze_links(records, resolved_ips),
            psi=psi,
            crawl=crawl,
        )

    async def _degrade(self, awaitable: Awaitable[T], what: str, default: T) -> T:
        """Await a sub-lookup under the per-call timeout; failures yield *default*."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.config.timeout)
        except ExternalServiceError as exc:
            logger.warning("Lookup of %s failed: %s", what, exc)
        except asyncio.TimeoutError:
            logger.warning("Lookup of %s timed out after %ss", what, self.config.timeout)
        return default

    async def _pagespeed(self, fetcher: Fetcher, url: str) -> Dict[str, Any]:
        psi: Dict[str, Any] = {"mobile": None, "desktop": None}
        if not self.config.pagespeed_api_key:
            logger.warning("PageSpeed API key not configured")
            return psi
        client = PageSpeedClient(
            fetcher.session,
            self.config.pagespeed_api_key,
            endpoint=self.pagespeed_endpoint,
        )
        try:
            psi.update(await client.run_both(url))
        except ExternalServiceError as exc:
            logger.warning("PageSpeed API error: %s", exc)
        return psi

    async def _https_redirect(self, fetcher: Fetcher, url: str) -> bool:
        if urlsplit(url).scheme.lower() != "http":
            return False
        try:
            location = await fetcher.redirect_location(url)
        except FetchError as exc:
            logger.warning("HTTPS redirect check failed for %s: %s", url, exc)
            return False
        return location.lower().startswith("https:")

    async def _robots_facts(self, fetcher: Fetcher, url: str) -> RobotsFacts:
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}"
        robots_url = f"{origin}/robots.txt"
        facts = RobotsFacts()

        try:
            text = await fetcher.fetch_text(robots_url)
            if text is None:
                raise RobotsUnavailable(f"{robots_url} not found")
            rules = RobotsTxtRules(text)
            facts.robots_txt_exists = True
            path = (parts.path or "/") + (f"?{parts.query}" if parts.query else "")
            facts.blocked_by_robots = not rules.can_fetch("*", path)
            facts.xml_sitemaps = list(rules.sitemaps)
        except (FetchError, RobotsUnavailable) as exc:
            logger.debug("robots.txt unavailable for %s: %s", url, exc)

        sitemap_url = facts.xml_sitemaps[0] if facts.xml_sitemaps else f"{origin}/sitemap.xml"
        try:
            sitemap = await fetcher.fetch_text(sitemap_url)
            if sitemap is None:
                raise SitemapUnavailable(f"{sitemap_url} not found")
            if not facts.xml_sitemaps:
                facts.xml_sitemaps.append(sitemap_url)
            facts.sitemap_url_count = len(parse_sitemap(sitemap))
        except (FetchError, SitemapUnavailable) as exc:
            logger.debug("Sitemap unavailable for %s: %s", url, exc)
        return facts

    async def _site_facts(self, host: str) -> SiteFacts:
        return SiteFacts(
            server_ip=await self._degrade(self.lookups.resolve_ip(host), f"IP of {host}", ""),
            dns_servers=await self._degrade(self.lookups.resolve_ns(host), f"NS of {host}", []),
            dmarc_record=await self._degrade(self.lookups.find_dmarc(host), f"DMARC of {host}", None),
            spf_record=await self._degrade(self.lookups.find_spf(host), f"SPF of {host}", None),
            domain_age=await self._degrade(self.lookups.domain_age(host), f"WHOIS of {host}", None),
        )

    async def _persist(self, url: str, data: Dict[str, Any]) -> None:
        if self.store is None:
            return
        try:
            await asyncio.to_thread(self.store.save, url, data)
        except PersistenceError as exc:
            logger.error("Audit store insert failed for %s: %s", url, exc)
