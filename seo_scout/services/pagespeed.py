# File: seo_scout/services/pagespeed.py
"""seo_scout.services.pagespeed: client for the PageSpeed Insights v5 API."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from seo_scout.errors import ExternalServiceError
from seo_scout.logger import logger

PAGESPEED_API_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
STRATEGIES = ("mobile", "desktop")


def performance_score(result: Optional[Dict[str, Any]]) -> Optional[float]:
    """Lighthouse performance score (0..1) of a PageSpeed response, if present."""
    if not result:
        return None
    categories = result.get("lighthouseResult", {}).get("categories", {})
    return categories.get("performance", {}).get("score")


class PageSpeedClient:
    """Runs Lighthouse through PageSpeed Insights for one URL."""

    def __init__(
        self,
        session: ClientSession,
        api_key: str,
        *,
        timeout: float = 60.0,
        endpoint: str = PAGESPEED_API_URL,
    ) -> None:
        self.session = session
        self.api_key = api_key
        self.endpoint = endpoint
        self._timeout = ClientTimeout(total=timeout)

    async def run(self, url: str, strategy: str) -> Dict[str, Any]:
        """Raw PageSpeed response for *url* with the given strategy."""
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown PageSpeed strategy: {strategy}")
        params = {"url": url, "strategy": strategy, "key": self.api_key}
        try:
            async with self.session.get(self.endpoint, params=params, timeout=self._timeout) as resp:
                if resp.status != 200:
                    body = await resp.text(errors="replace")
                    raise ExternalServiceError("pagespeed", f"HTTP {resp.status}: {body[:200]}")
                data = await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise ExternalServiceError("pagespeed", f"{strategy} run timed out") from exc
        except (ClientError, ValueError) as exc:
            raise ExternalServiceError("pagespeed", str(exc)) from exc
        if not isinstance(data, dict) or "lighthouseResult" not in data:
            raise ExternalServiceError("pagespeed", "response carries no lighthouseResult")
        return data

    async def run_both(self, url: str) -> Dict[str, Dict[str, Any]]:
        """Mobile and desktop runs issued concurrently; both must succeed."""
        mobile, desktop = await asyncio.gather(self.run(url, "mobile"), self.run(url, "desktop"))
        logger.info("Mobile speed score: %s", performance_score(mobile))
        logger.info("Desktop speed score: %s", performance_score(desktop))
        return {"mobile": mobile, "desktop": desktop}
