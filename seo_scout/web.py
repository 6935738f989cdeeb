# File: seo_scout/web.py
"""seo_scout.web: aiohttp.web JSON API in front of the audit engine.

Routes
------
POST   /api/audit                 run (or serve cached) audit, export as JSON/CSV/PDF
GET    /api/audit/history?url=    cached audits of one URL, oldest first
GET    /api/history[?url=]        persisted audits, newest first
DELETE /api/history/{id}          remove a persisted audit
PATCH  /api/history/{id}          set its ``view_option``
GET    /api/search-console?siteUrl=   proxy a Search Analytics query (Bearer token)
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

from aiohttp import ClientSession, web

from seo_scout.config import AuditConfig
from seo_scout.engine import Engine
from seo_scout.errors import ExternalServiceError, FetchError, InvalidUrl, PersistenceError
from seo_scout.logger import logger
from seo_scout.report import export_filename, render_csv, render_json, render_pdf
from seo_scout.services.search_console import SEARCH_CONSOLE_API, SearchConsoleClient

EXPORT_TYPES = ("json", "csv", "pdf")

ENGINE_KEY = web.AppKey("engine", Engine)
SEARCH_CONSOLE_ENDPOINT_KEY = web.AppKey("search_console_endpoint", str)


def _error(status: int, message: str) -> web.Response:
    return web.json_response({"error": message}, status=status)


def _attachment(body: Any, content_type: str, filename: str) -> web.Response:
    return web.Response(
        body=body,
        content_type=content_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


async def _read_json(request: web.Request) -> Optional[Dict[str, Any]]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    return body if isinstance(body, dict) else None


# --------------------------------------------------------------------------- #
# Audit                                                                       #
# --------------------------------------------------------------------------- #


async def audit_handler(request: web.Request) -> web.Response:
    body = await _read_json(request)
    if body is None:
        return _error(400, "Request body must be a JSON object")

    url = body.get("url")
    if not isinstance(url, str) or not url.strip():
        return _error(400, "URL is required")

    export_type = body.get("exportType") or "json"
    if export_type not in EXPORT_TYPES:
        return _error(400, f"Unsupported exportType: {export_type!r}")

    depth = body.get("depth", 1)
    if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
        return _error(400, "depth must be a non-negative integer")

    template = body.get("template") or "default"
    engine = request.app[ENGINE_KEY]
    try:
        data, cached = await engine.audit(url, depth)
    except InvalidUrl as exc:
        return _error(400, str(exc))
    except FetchError as exc:
        logger.error("Audit of %s failed: %s", url, exc)
        return _error(400, f"Failed to fetch {exc.url}: {exc}")

    headers = {"X-Cache": "HIT" if cached else "MISS"}
    if export_type == "csv":
        resp = _attachment(render_csv(data), "text/csv", export_filename(data["url"], "csv"))
    elif export_type == "pdf":
        pdf = await asyncio.to_thread(render_pdf, data, template)
        resp = _attachment(pdf, "application/pdf", export_filename(data["url"], "pdf"))
    else:
        resp = web.json_response(data, dumps=render_json)
    resp.headers.update(headers)
    return resp


async def audit_history_handler(request: web.Request) -> web.Response:
    url = request.query.get("url", "").strip()
    if not url:
        return _error(400, "URL is required")
    return web.json_response(request.app[ENGINE_KEY].history(url))


# --------------------------------------------------------------------------- #
# Persisted history                                                           #
# --------------------------------------------------------------------------- #


def _record_id(request: web.Request) -> Optional[int]:
    raw = request.match_info["record_id"]
    return int(raw) if raw.isdigit() else None


async def list_history_handler(request: web.Request) -> web.Response:
    store = request.app[ENGINE_KEY].store
    if store is None:
        return _error(500, "Audit persistence is not configured")
    try:
        rows = await asyncio.to_thread(store.list_audits, request.query.get("url") or None)
    except PersistenceError as exc:
        logger.error("Listing audits failed: %s", exc)
        return _error(500, "Failed to list audits")
    return web.json_response(rows)


async def delete_history_handler(request: web.Request) -> web.Response:
    store = request.app[ENGINE_KEY].store
    if store is None:
        return _error(500, "Audit persistence is not configured")
    record_id = _record_id(request)
    if record_id is None:
        return _error(404, "Audit not found")
    try:
        deleted = await asyncio.to_thread(store.delete, record_id)
    except PersistenceError as exc:
        logger.error("Deleting audit %d failed: %s", record_id, exc)
        return _error(500, "Failed to delete audit")
    if not deleted:
        return _error(404, "Audit not found")
    return web.json_response({"success": True})


async def update_history_handler(request: web.Request) -> web.Response:
    store = request.app[ENGINE_KEY].store
    if store is None:
        return _error(500, "Audit persistence is not configured")
    record_id = _record_id(request)
    if record_id is None:
        return _error(404, "Audit not found")
    body = await _read_json(request)
    if body is None or "view_option" not in body:
        return _error(400, "view_option is required")
    view_option = body["view_option"]
    if view_option is not None and not isinstance(view_option, str):
        return _error(400, "view_option must be a string")
    try:
        row = await asyncio.to_thread(store.update_view_option, record_id, view_option)
    except PersistenceError as exc:
        logger.error("Updating audit %d failed: %s", record_id, exc)
        return _error(500, "Failed to update audit")
    if row is None:
        return _error(404, "Audit not found")
    return web.json_response({"data": row})


# --------------------------------------------------------------------------- #
# Search Console                                                              #
# --------------------------------------------------------------------------- #


async def search_console_handler(request: web.Request) -> web.Response:
    auth = request.headers.get("Authorization", "")
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return _error(401, "Unauthorized")

    site_url = request.query.get("siteUrl", "").strip()
    if not site_url:
        return _error(400, "siteUrl is required")

    config = request.app[ENGINE_KEY].config
    async with ClientSession(headers={"User-Agent": config.user_agent}) as session:
        client = SearchConsoleClient(
            session,
            token.strip(),
            timeout=config.timeout,
            endpoint=request.app[SEARCH_CONSOLE_ENDPOINT_KEY],
        )
        try:
            data = await client.query_page(site_url)
        except ExternalServiceError as exc:
            logger.error("Search Console query failed: %s", exc)
            return _error(500, "Failed to fetch Search Console data")
    return web.json_response(data)


# --------------------------------------------------------------------------- #
# Application                                                                 #
# --------------------------------------------------------------------------- #


def create_app(
    config: AuditConfig,
    engine: Optional[Engine] = None,
    *,
    search_console_endpoint: str = SEARCH_CONSOLE_API,
) -> web.Application:
    app = web.Application()
    app[ENGINE_KEY] = engine if engine is not None else Engine(config)
    app[SEARCH_CONSOLE_ENDPOINT_KEY] = search_console_endpoint
    app.add_routes(
        [
            web.post("/api/audit", audit_handler),
            web.get("/api/audit/history", audit_history_handler),
            web.get("/api/history", list_history_handler),
            web.delete("/api/history/{record_id}", delete_history_handler),
            web.patch("/api/history/{record_id}", update_history_handler),
            web.get("/api/search-console", search_console_handler),
        ]
    )
    return app


def run_app(config: AuditConfig, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Serve the API until interrupted."""
    host = host or config.host
    port = port or config.port
    logger.info("Serving SEO Scout API on http://%s:%d", host, port)
    web.run_app(create_app(config), host=host, port=port, print=None)


__all__ = ["create_app", "run_app", "EXPORT_TYPES", "ENGINE_KEY"]
