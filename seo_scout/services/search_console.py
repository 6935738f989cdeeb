# File: seo_scout/services/search_console.py
"""seo_scout.services.search_console: Search Analytics query for one page.

The caller supplies a Google OAuth access token obtained elsewhere; no
session management happens here.
"""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import Any, Dict, Optional
from urllib.parse import quote

from aiohttp import ClientError, ClientSession, ClientTimeout

from seo_scout.errors import ExternalServiceError

SEARCH_CONSOLE_API = "https://www.googleapis.com/webmasters/v3/sites/{site}/searchAnalytics/query"
LOOKBACK_DAYS = 7


class SearchConsoleClient:
    def __init__(
        self,
        session: ClientSession,
        access_token: str,
        *,
        timeout: float = 30.0,
        endpoint: str = SEARCH_CONSOLE_API,
    ) -> None:
        self.session = session
        self.access_token = access_token
        self.endpoint = endpoint
        self._timeout = ClientTimeout(total=timeout)

    @staticmethod
    def build_query(site_url: str, today: Optional[date] = None) -> Dict[str, Any]:
        """Request body: last seven days, grouped by page, filtered to *site_url*."""
        end = today or date.today()
        start = end - timedelta(days=LOOKBACK_DAYS)
        return {
            "startDate": start.isoformat(),
            "endDate": end.isoformat(),
            "dimensions": ["page"],
            "dimensionFilterGroups": [
                {"filters": [{"dimension": "page", "operator": "equals", "expression": site_url}]}
            ],
            "rowLimit": 1,
        }

    async def query_page(self, site_url: str, today: Optional[date] = None) -> Dict[str, Any]:
        endpoint = self.endpoint.format(site=quote(site_url, safe=""))
        headers = {"Authorization": f"Bearer {self.access_token}"}
        try:
            async with self.session.post(
                endpoint, json=self.build_query(site_url, today), headers=headers, timeout=self._timeout
            ) as resp:
                if resp.status != 200:
                    body = await resp.text(errors="replace")
                    raise ExternalServiceError("search-console", f"HTTP {resp.status}: {body[:200]}")
                return await resp.json(content_type=None)
        except asyncio.TimeoutError as exc:
            raise ExternalServiceError("search-console", "request timed out") from exc
        except (ClientError, ValueError) as exc:
            raise ExternalServiceError("search-console", str(exc)) from exc
