# File: tests/test_services.py
from __future__ import annotations

from datetime import date, datetime
from urllib.parse import unquote

import pytest
from aiohttp import ClientSession, web

from seo_scout.errors import ExternalServiceError
from seo_scout.services import dns_info
from seo_scout.services.pagespeed import PageSpeedClient, performance_score
from seo_scout.services.search_console import SearchConsoleClient


def lighthouse(score: float) -> dict:
    return {"lighthouseResult": {"categories": {"performance": {"score": score}}, "audits": {}}}


# --------------------------------------------------------------------------- #
# PageSpeed                                                                   #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_pagespeed_runs_both_strategies(serve):
    seen = []

    async def handler(request):
        seen.append(dict(request.query))
        score = 0.4 if request.query["strategy"] == "mobile" else 0.9
        return web.json_response(lighthouse(score))

    app = web.Application()
    app.router.add_get("/runPagespeed", handler)
    base = await serve(app)

    async with ClientSession() as session:
        client = PageSpeedClient(session, "KEY", endpoint=f"{base}/runPagespeed")
        result = await client.run_both("https://example.com/")

    assert performance_score(result["mobile"]) == 0.4
    assert performance_score(result["desktop"]) == 0.9
    assert sorted(q["strategy"] for q in seen) == ["desktop", "mobile"]
    assert all(q["key"] == "KEY" and q["url"] == "https://example.com/" for q in seen)


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "status,body",
    [(500, {"error": "boom"}), (200, {"no": "lighthouse"})],
)
async def test_pagespeed_errors(serve, status, body):
    async def handler(_):
        return web.json_response(body, status=status)

    app = web.Application()
    app.router.add_get("/runPagespeed", handler)
    base = await serve(app)

    async with ClientSession() as session:
        client = PageSpeedClient(session, "KEY", endpoint=f"{base}/runPagespeed")
        with pytest.raises(ExternalServiceError) as exc_info:
            await client.run("https://example.com/", "mobile")
    assert exc_info.value.service == "pagespeed"


@pytest.mark.asyncio()
async def test_pagespeed_rejects_unknown_strategy():
    async with ClientSession() as session:
        with pytest.raises(ValueError):
            await PageSpeedClient(session, "KEY").run("https://example.com/", "tablet")


def test_performance_score_missing():
    assert performance_score(None) is None
    assert performance_score({"lighthouseResult": {}}) is None


# --------------------------------------------------------------------------- #
# Search Console                                                              #
# --------------------------------------------------------------------------- #


def test_search_console_query_body():
    body = SearchConsoleClient.build_query("https://example.com/", today=date(2024, 3, 8))
    assert body["startDate"] == "2024-03-01"
    assert body["endDate"] == "2024-03-08"
    assert body["dimensions"] == ["page"]
    assert body["rowLimit"] == 1
    assert body["dimensionFilterGroups"][0]["filters"][0]["expression"] == "https://example.com/"


@pytest.mark.asyncio()
async def test_search_console_sends_bearer_token(serve):
    captured = {}

    async def handler(request):
        captured["auth"] = request.headers.get("Authorization")
        captured["site"] = request.match_info["site"]
        captured["body"] = await request.json()
        return web.json_response({"rows": [{"clicks": 3}]})

    app = web.Application()
    app.router.add_post("/sites/{site:.+}/searchAnalytics/query", handler)
    base = await serve(app)

    async with ClientSession() as session:
        client = SearchConsoleClient(
            session, "token-1", endpoint=f"{base}/sites/{{site}}/searchAnalytics/query"
        )
        data = await client.query_page("https://example.com/", today=date(2024, 1, 10))

    assert data == {"rows": [{"clicks": 3}]}
    assert captured["auth"] == "Bearer token-1"
    assert unquote(captured["site"]) == "https://example.com/"
    assert captured["body"]["endDate"] == "2024-01-10"


@pytest.mark.asyncio()
async def test_search_console_upstream_error(serve):
    async def handler(_):
        return web.json_response({"error": "denied"}, status=403)

    app = web.Application()
    app.router.add_post("/sites/{site:.+}/searchAnalytics/query", handler)
    base = await serve(app)

    async with ClientSession() as session:
        client = SearchConsoleClient(session, "t", endpoint=f"{base}/sites/{{site}}/searchAnalytics/query")
        with pytest.raises(ExternalServiceError):
            await client.query_page("https://example.com/")


# --------------------------------------------------------------------------- #
# DNS / WHOIS                                                                 #
# --------------------------------------------------------------------------- #


@pytest.mark.parametrize(
    "created,now,expected",
    [
        (datetime(2020, 5, 1), datetime(2021, 5, 1), "1 year"),
        (datetime(2020, 5, 2), datetime(2021, 5, 1), "0 years"),
        (datetime(2000, 1, 1), datetime(2024, 6, 1), "24 years"),
        (datetime(2030, 1, 1), datetime(2024, 6, 1), "0 years"),
    ],
)
def test_format_age(created, now, expected):
    assert dns_info.format_age(created, now) == expected


@pytest.mark.asyncio()
async def test_domain_age_uses_first_creation_date(monkeypatch):
    class Record:
        creation_date = [datetime(2010, 2, 3), datetime(2011, 1, 1)]

    monkeypatch.setattr(dns_info.whois, "whois", lambda host: Record())
    assert await dns_info.domain_age("example.com", now=datetime(2024, 2, 3)) == "14 years"


@pytest.mark.asyncio()
async def test_domain_age_wraps_whois_failures(monkeypatch):
    def broken(host):
        raise RuntimeError("whois server down")

    monkeypatch.setattr(dns_info.whois, "whois", broken)
    with pytest.raises(ExternalServiceError) as exc_info:
        await dns_info.domain_age("example.com")
    assert exc_info.value.service == "whois"


@pytest.mark.asyncio()
async def test_mail_policies_pick_matching_records(monkeypatch):
    records = {
        "_dmarc.example.com": ["v=DMARC1; p=none"],
        "example.com": ["google-site-verification=abc", "v=spf1 include:_spf.google.com ~all"],
    }

    async def fake_txt(name):
        return records[name]

    monkeypatch.setattr(dns_info, "resolve_txt", fake_txt)
    assert await dns_info.find_dmarc("example.com") == "v=DMARC1; p=none"
    assert await dns_info.find_spf("example.com") == "v=spf1 include:_spf.google.com ~all"


@pytest.mark.asyncio()
async def test_resolve_ip_localhost():
    assert await dns_info.resolve_ip("localhost") in {"127.0.0.1", "::1"}
