# File: tests/test_scanner.py
import pytest
from aiohttp import web

from seo_scout.config import AuditConfig
from seo_scout.errors import InvalidUrl
from seo_scout.scanner import start_crawl


@pytest.mark.asyncio()
async def test_start_crawl_does_not_open_audit_store(serve, tmp_path):
    async def home(_):
        return web.Response(text="<html><head><title>Home</title></head></html>", content_type="text/html")

    app = web.Application()
    app.router.add_get("/", home)
    base = await serve(app)
    db_file = tmp_path / "audits.db"
    cfg = AuditConfig(timeout=2.0, database_url=f"sqlite:///{db_file}")

    result = await start_crawl(cfg, base, 1)

    assert [p.url for p in result.pages] == [f"{base}/"]
    assert not db_file.exists()


@pytest.mark.asyncio()
async def test_start_crawl_validates_arguments():
    cfg = AuditConfig(timeout=2.0)
    with pytest.raises(InvalidUrl):
        await start_crawl(cfg, "example.com", 1)
    with pytest.raises(ValueError):
        await start_crawl(cfg, "http://example.com/", -1)
