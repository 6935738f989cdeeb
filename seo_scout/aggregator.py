# File: seo_scout/aggregator.py
"""seo_scout.aggregator: merge page signals, crawl results and external lookups into one audit record."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, TypedDict

from seo_scout.crawler.models import CrawlResult, FetchedPage, LinkRecord
from seo_scout.parser.html_parser import PageSignals

TOP_N = 5

# response field -> (lighthouse audit id, good upper bound, needs-improvement upper bound)
METRIC_THRESHOLDS: Dict[str, tuple[str, float, float]] = {
    "first_contentful_paint": ("first-contentful-paint", 1000, 3000),
    "largest_contentful_paint": ("largest-contentful-paint", 2500, 4000),
    "speed_index": ("speed-index", 3000, 5000),
    "time_to_interactive": ("interactive", 5000, 10000),
    "total_blocking_time": ("total-blocking-time", 200, 600),
    "cumulative_layout_shift": ("cumulative-layout-shift", 0.1, 0.25),
}

_CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)


class CountedUrl(TypedDict):
    url: str
    count: int


class CountedAnchor(TypedDict):
    anchor: str
    count: int


class CountedGeography(TypedDict):
    geography: str
    count: int


@dataclass(slots=True)
class ResponseFacts:
    """What the HTTP response of the audited page says about it."""

    final_url: str = ""
    noindex_header: bool = False
    ssl_enabled: bool = False
    https_redirect: bool = False
    web_server: str = ""
    charset: str = ""


@dataclass(slots=True)
class RobotsFacts:
    robots_txt_exists: bool = False
    blocked_by_robots: bool = False
    xml_sitemaps: List[str] = field(default_factory=list)
    sitemap_url_count: Optional[int] = None


@dataclass(slots=True)
class SiteFacts:
    """DNS and WHOIS facts; every field stays empty when its lookup failed."""

    server_ip: str = ""
    dns_servers: List[str] = field(default_factory=list)
    dmarc_record: Optional[str] = None
    spf_record: Optional[str] = None
    domain_age: Optional[str] = None


def response_facts(page: FetchedPage, https_redirect: bool = False) -> ResponseFacts:
    content_type = page.header("Content-Type")
    charset = _CHARSET_RE.search(content_type)
    return ResponseFacts(
        final_url=page.final_url,
        noindex_header="noindex" in page.header("X-Robots-Tag").lower(),
        ssl_enabled=page.final_url.lower().startswith("https:"),
        https_redirect=https_redirect,
        web_server=page.header("Server"),
        charset=charset.group(1).strip() if charset else "",
    )


# --------------------------------------------------------------------------- #
# Link analysis                                                               #
# --------------------------------------------------------------------------- #


def external_links(records: List[LinkRecord]) -> List[LinkRecord]:
    return [r for r in records if not r.is_internal and r.normalized_url]


def referring_domains(records: List[LinkRecord]) -> List[str]:
    """Distinct external domains in first-seen order."""
    return list(dict.fromkeys(r.domain for r in external_links(records) if r.domain))


def _subnet(ip: str) -> str:
    return ".".join(ip.split(".")[:3])


def analyze_links(records: List[LinkRecord], resolved_ips: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    """On-page link statistics. *resolved_ips* maps referring domain -> IP (None if unresolved)."""
    external = external_links(records)
    internal_count = sum(1 for r in records if r.is_internal)
    nofollow = sum(1 for r in external if "nofollow" in r.rel.split())
    domains = referring_domains(records)

    ips = list(dict.fromkeys(ip for ip in (resolved_ips.get(d) for d in domains) if ip))

    top_pages: List[CountedUrl] = [
        {"url": url, "count": count}
        for url, count in Counter(r.normalized_url for r in external).most_common(TOP_N)
    ]
    top_anchors: List[CountedAnchor] = [
        {"anchor": anchor, "count": count}
        for anchor, count in Counter(r.text or r.normalized_url for r in external).most_common(TOP_N)
    ]
    top_geographies: List[CountedGeography] = [
        {"geography": tld, "count": count}
        for tld, count in Counter(
            d.split(":", 1)[0].rsplit(".", 1)[-1].upper() for d in domains
        ).most_common(TOP_N)
    ]

    return {
        "total_links": len(records),
        "internal_links_count": internal_count,
        "external_links_count": len(external),
        "nofollow_links_count": nofollow,
        "dofollow_links_count": len(external) - nofollow,
        "edu_links_count": sum(1 for r in external if r.domain.endswith(".edu")),
        "gov_links_count": sum(1 for r in external if r.domain.endswith(".gov")),
        "referring_domains_count": len(domains),
        "unique_subnets_count": len({_subnet(ip) for ip in ips}),
        "unique_ips_count": len(ips),
        "top_pages_by_backlinks": top_pages,
        "top_anchors_by_backlinks": top_anchors,
        "top_domain_geographies": top_geographies,
        "on_page_link_structure": {"internal": internal_count, "external": len(external)},
        "friendly_links_count": sum(1 for r in external if r.text and r.text not in r.normalized_url),
    }


# --------------------------------------------------------------------------- #
# Performance                                                                 #
# --------------------------------------------------------------------------- #


def categorize_metric(value: float, good: float, moderate: float) -> str:
    """Bucket a metric value: ``good`` / ``needs-improvement`` / ``poor``."""
    if value <= good:
        return "good"
    if value <= moderate:
        return "needs-improvement"
    return "poor"


def _audits(result: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if not result:
        return None
    audits = result.get("lighthouseResult", {}).get("audits")
    return audits if isinstance(audits, dict) else None


def _numeric(audits: Mapping[str, Any], audit_id: str) -> Optional[float]:
    value = audits.get(audit_id, {}).get("numericValue")
    return float(value) if isinstance(value, (int, float)) else None


def _per_strategy(psi: Mapping[str, Any], shape) -> Optional[Dict[str, Any]]:
    shaped = {}
    for strategy in ("mobile", "desktop"):
        audits = _audits(psi.get(strategy))
        shaped[strategy] = shape(audits) if audits is not None else None
    return shaped if any(v is not None for v in shaped.values()) else None


def performance_metrics(psi: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    return _per_strategy(
        psi,
        lambda audits: {name: _numeric(audits, audit_id) for name, (audit_id, _, _) in METRIC_THRESHOLDS.items()},
    )


def performance_comparison(psi: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    def shape(audits: Mapping[str, Any]) -> Dict[str, Optional[str]]:
        compared: Dict[str, Optional[str]] = {}
        for name, (audit_id, good, moderate) in METRIC_THRESHOLDS.items():
            value = _numeric(audits, audit_id)
            compared[name] = None if value is None else categorize_metric(value, good, moderate)
        return compared

    return _per_strategy(psi, shape)


def actionable_recommendations(psi: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Lighthouse audits that did not score a perfect 1."""
    return _per_strategy(
        psi,
        lambda audits: [
            {"id": audit_id, "title": audit.get("title"), "description": audit.get("description")}
            for audit_id, audit in audits.items()
            if isinstance(audit, dict) and audit.get("score") != 1
        ],
    )


# --------------------------------------------------------------------------- #
# Final record                                                                #
# --------------------------------------------------------------------------- #


def aggregate_audit(
    url: str,
    signals: PageSignals,
    response: ResponseFacts,
    robots: RobotsFacts,
    site: SiteFacts,
    link_analysis: Dict[str, Any],
    psi: Optional[Mapping[str, Any]] = None,
    crawl: Optional[CrawlResult] = None,
) -> Dict[str, Any]:
    """Flatten everything known about *url* into the audit record returned to clients."""
    psi = psi or {"mobile": None, "desktop": None}
    record: Dict[str, Any] = {
        "url": url,
        "title": signals.title,
        "title_length": len(signals.title),
        "meta_description": signals.meta_description,
        "meta_description_length": len(signals.meta_description),
        "serp_snippet": signals.serp_snippet,
        "hreflangs": signals.hreflangs,
        "language": signals.language,
    }
    for level in range(1, 7):
        record[f"h{level}_tags"] = signals.headings.get(f"h{level}", [])
    record.update(
        {
            "header_usage": signals.header_usage,
            "canonical": signals.canonical,
            "noindex_meta": signals.noindex_meta,
            "meta_image": signals.meta_image,
            "favicon": signals.favicon,
            "structured_data": signals.structured_data,
            "analytics": signals.analytics,
            "gtag_code": signals.gtag_code,
            "gtm_code": signals.gtm_code,
            "technology": signals.technology,
            "address_phone_shown": signals.address_phone_shown,
            "local_business_schema": signals.local_business_schema,
            "google_business_profile_identified": signals.google_business_profile_identified,
        }
    )
    record.update(signals.social)
    record.update(asdict(response))
    record.update(asdict(robots))
    record.update(asdict(site))
    record.update(
        {
            "psi": dict(psi),
            "performance_metrics": performance_metrics(psi),
            "performance_comparison": performance_comparison(psi),
            "actionable_recommendations": actionable_recommendations(psi),
            "link_analysis": link_analysis,
            "site_structure": [p.to_dict() for p in crawl.pages] if crawl is not None else None,
            "crawl_issues": [i.to_dict() for i in crawl.issues] if crawl is not None else None,
        }
    )
    return record
