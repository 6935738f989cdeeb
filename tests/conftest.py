# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web

from seo_scout.config import AuditConfig
from seo_scout.crawler.models import FetchedPage


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


# --------------------------------------------------------------------------- #
#                               Helper fixtures                               #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start apps on free ports, yield a starter returning the base URL, clean up after."""
    runners: List[web.AppRunner] = []

    async def start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "localhost", port)
        await site.start()
        runners.append(runner)
        return f"http://localhost:{port}"

    try:
        yield start
    finally:
        for runner in runners:
            await runner.cleanup()


@pytest.fixture()
def html_site() -> Callable[..., Tuple[web.Application, List[str]]]:
    """
    Factory of apps serving ``{path: html}`` plus an optional robots.txt.

    The builder returns ``(app, requests)``; every request is appended to
    *requests* as ``"METHOD /path"`` (aiohttp answers HEAD through the GET routes).
    """

    def build(pages: Dict[str, str], robots: Optional[str] = None) -> Tuple[web.Application, List[str]]:
        app = web.Application()
        requests: List[str] = []

        def page_handler(body: str):
            async def handle(request: web.Request) -> web.Response:
                requests.append(f"{request.method} {request.path}")
                return web.Response(text=body, content_type="text/html")

            return handle

        for path, body in pages.items():
            app.router.add_get(path, page_handler(body))

        if robots is not None:
            app.router.add_get("/robots.txt", page_handler(robots))

        return app, requests

    return build


@pytest.fixture()
def basic_config() -> AuditConfig:
    """A fast-failing config for tests talking to local servers."""
    return AuditConfig(timeout=2.0, crawl_timeout=10.0, user_agent="TestAgent/1.0")


@pytest.fixture()
def mock_page() -> FetchedPage:
    """A fetched page with one internal and one external link."""
    html = (
        "<html><head><title>Home</title></head>"
        '<body><a href="/link1">L1</a><a href="http://external.com/">X</a></body></html>'
    )
    return FetchedPage(
        url="http://example.com/",
        final_url="http://example.com/",
        status=200,
        headers={"Content-Type": "text/html; charset=utf-8", "Server": "nginx"},
        content=html,
    )
