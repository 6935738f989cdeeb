# File: seo_scout/services/dns_info.py
"""seo_scout.services.dns_info: DNS, mail-policy and WHOIS facts about a host.

Every helper raises :class:`~seo_scout.errors.ExternalServiceError` on
failure; the engine decides whether a failure leaves a field empty.
"""

from __future__ import annotations

import asyncio
import socket
from datetime import datetime
from typing import Any, List, Optional

import dns.asyncresolver
import dns.exception
import whois

from seo_scout.errors import ExternalServiceError


async def resolve_ip(host: str) -> str:
    """First address the system resolver returns for *host*."""
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except OSError as exc:
        raise ExternalServiceError("dns", f"lookup of {host} failed: {exc}") from exc
    if not infos:
        raise ExternalServiceError("dns", f"no address for {host}")
    return str(infos[0][4][0])


async def resolve_ns(host: str) -> List[str]:
    """Authoritative name servers of *host*."""
    try:
        answer = await dns.asyncresolver.resolve(host, "NS")
    except dns.exception.DNSException as exc:
        raise ExternalServiceError("dns", f"NS lookup of {host} failed: {exc}") from exc
    return [record.target.to_text().rstrip(".") for record in answer]


async def resolve_txt(name: str) -> List[str]:
    """TXT records of *name*, each with its character strings joined."""
    try:
        answer = await dns.asyncresolver.resolve(name, "TXT")
    except dns.exception.DNSException as exc:
        raise ExternalServiceError("dns", f"TXT lookup of {name} failed: {exc}") from exc
    return [b"".join(record.strings).decode("utf-8", errors="replace") for record in answer]


async def find_dmarc(host: str) -> Optional[str]:
    records = await resolve_txt(f"_dmarc.{host}")
    return next((r for r in records if r.startswith("v=DMARC1")), None)


async def find_spf(host: str) -> Optional[str]:
    records = await resolve_txt(host)
    return next((r for r in records if r.startswith("v=spf1")), None)


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, list):
        value = next((v for v in value if v), None)
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip()).replace(tzinfo=None)
        except ValueError:
            return None
    return None


def format_age(created: datetime, now: datetime) -> str:
    """Whole years between *created* and *now*, e.g. ``"1 year"`` / ``"12 years"``."""
    years = now.year - created.year - ((now.month, now.day) < (created.month, created.day))
    years = max(years, 0)
    return f"{years} year{'s' if years != 1 else ''}"


async def domain_age(host: str, now: Optional[datetime] = None) -> Optional[str]:
    """Age of the registered domain from its WHOIS creation date, None when unknown."""
    try:
        record = await asyncio.to_thread(whois.whois, host)
    except Exception as exc:
        raise ExternalServiceError("whois", f"lookup of {host} failed: {exc}") from exc
    creation = getattr(record, "creation_date", None)
    if creation is None and isinstance(record, dict):
        creation = record.get("creation_date") or record.get("created_date")
    created = _as_datetime(creation)
    if created is None:
        return None
    return format_age(created, (now or datetime.now()).replace(tzinfo=None))
