"""
Thin coroutine wrappers used by the CLI to run a crawl or an audit.
"""
from typing import Any, Dict, Optional, Tuple

from seo_scout.config import AuditConfig
from seo_scout.crawler.crawler import SiteCrawler
from seo_scout.crawler.fetcher import Fetcher
from seo_scout.crawler.link_extractor import validate_url
from seo_scout.crawler.models import CrawlResult
from seo_scout.engine import Engine, check_depth


async def start_crawl(cfg: AuditConfig, url: str, depth: int) -> CrawlResult:
    """
    Crawl *url* breadth-first down to *depth* and return the CrawlResult.

    Only a fetcher and a crawler are built: no cache, no audit store.

    Parameters
    ----------
    cfg : AuditConfig
        Limits (max_pages, crawl_timeout) and HTTP settings.
    url : str
        Absolute start URL.
    depth : int
        Maximum link depth, the start page being depth 0.
    """
    url = validate_url(url)
    async with Fetcher.open(cfg) as fetcher:
        crawler = SiteCrawler(fetcher, max_pages=cfg.max_pages, max_duration=cfg.crawl_timeout)
        return await crawler.crawl(url, check_depth(depth))


async def start_audit(cfg: AuditConfig, url: str, depth: Optional[int] = None) -> Tuple[Dict[str, Any], bool]:
    """Run a full audit of *url*; returns ``(record, served_from_cache)``."""
    return await Engine(cfg).audit(url, depth)


__all__ = ["start_crawl", "start_audit"]
