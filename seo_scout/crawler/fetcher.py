# seo_scout/crawler/fetcher.py
"""
Fetcher module: every network request the crawler and the audit engine make
goes through here, with a per-call timeout and a uniform error type.
"""
from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from seo_scout.config import AuditConfig
from seo_scout.crawler.models import FetchedPage
from seo_scout.errors import FetchError
from seo_scout.logger import logger


class Fetcher:
    """Thin wrapper over an aiohttp session that raises FetchError on failure."""

    def __init__(self, session: ClientSession, config: AuditConfig) -> None:
        self.session = session
        self.config = config
        self._timeout = ClientTimeout(total=config.timeout)

    @classmethod
    @asynccontextmanager
    async def open(cls, config: AuditConfig) -> AsyncIterator["Fetcher"]:
        """Create a session-owning fetcher and close the session on exit."""
        session = ClientSession(
            timeout=ClientTimeout(total=config.timeout),
            headers={"User-Agent": config.user_agent},
            raise_for_status=False,
        )
        try:
            yield cls(session, config)
        finally:
            await session.close()

    async def fetch(self, url: str) -> FetchedPage:
        """
        GET the URL following redirects.

        Raises FetchError on network errors, timeouts and non-2xx statuses.
        """
        try:
            async with self.session.get(url, timeout=self._timeout, allow_redirects=True) as resp:
                if not 200 <= resp.status < 300:
                    raise FetchError(url, f"HTTP {resp.status} for {url}", status=resp.status)
                text = await resp.text(errors="replace")
                return FetchedPage(
                    url=url,
                    final_url=str(resp.url),
                    status=resp.status,
                    headers=dict(resp.headers),
                    content=text,
                )
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"Timed out after {self.config.timeout}s fetching {url}") from exc
        except ClientError as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

    async def fetch_text(self, url: str) -> Optional[str]:
        """Body of an auxiliary document (robots.txt, sitemap.xml) or None when not 2xx."""
        try:
            async with self.session.get(url, timeout=self._timeout) as resp:
                if not 200 <= resp.status < 300:
                    logger.debug("%s -> HTTP %s", url, resp.status)
                    return None
                return await resp.text(errors="replace")
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"Timed out fetching {url}") from exc
        except ClientError as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

    async def head(self, url: str) -> int:
        """Status of a HEAD request; retried as GET when the server refuses HEAD."""
        try:
            async with self.session.head(url, timeout=self._timeout, allow_redirects=True) as resp:
                status = resp.status
            if status == 405:
                async with self.session.get(url, timeout=self._timeout) as resp:
                    status = resp.status
            return status
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"Timed out checking {url}") from exc
        except ClientError as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc

    async def redirect_location(self, url: str) -> str:
        """``Location`` header of a non-followed HEAD request, ``""`` when absent."""
        try:
            async with self.session.head(url, timeout=self._timeout, allow_redirects=False) as resp:
                return resp.headers.get("Location", "")
        except asyncio.TimeoutError as exc:
            raise FetchError(url, f"Timed out checking redirect of {url}") from exc
        except ClientError as exc:
            raise FetchError(url, f"{type(exc).__name__}: {exc}") from exc
