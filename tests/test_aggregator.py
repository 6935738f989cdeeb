# File: tests/test_aggregator.py
import pytest

from seo_scout.aggregator import (
    RobotsFacts,
    SiteFacts,
    actionable_recommendations,
    aggregate_audit,
    analyze_links,
    categorize_metric,
    performance_comparison,
    performance_metrics,
    referring_domains,
    response_facts,
)
from seo_scout.crawler.link_extractor import build_link_records
from seo_scout.crawler.models import CrawlIssue, CrawlResult, IssueKind, PageRecord
from seo_scout.parser.html_parser import extract_signals


def lighthouse(lcp: float, score: float = 0.9) -> dict:
    return {
        "lighthouseResult": {
            "categories": {"performance": {"score": score}},
            "audits": {
                "largest-contentful-paint": {"numericValue": lcp, "score": 0.5, "title": "LCP", "description": "d"},
                "first-contentful-paint": {"numericValue": 800, "score": 1, "title": "FCP", "description": "d"},
                "cumulative-layout-shift": {"numericValue": 0.3, "score": 0.1, "title": "CLS", "description": "d"},
            },
        }
    }


@pytest.mark.parametrize(
    "value,expected",
    [(1000, "good"), (2000, "needs-improvement"), (3000, "needs-improvement"), (3001, "poor")],
)
def test_categorize_metric(value, expected):
    assert categorize_metric(value, 1000, 3000) == expected


def test_performance_sections_absent_without_results():
    psi = {"mobile": None, "desktop": None}
    assert performance_metrics(psi) is None
    assert performance_comparison(psi) is None
    assert actionable_recommendations(psi) is None


def test_performance_sections():
    psi = {"mobile": lighthouse(5000), "desktop": None}

    metrics = performance_metrics(psi)
    assert metrics["desktop"] is None
    assert metrics["mobile"]["largest_contentful_paint"] == 5000.0
    assert metrics["mobile"]["speed_index"] is None

    comparison = performance_comparison(psi)
    assert comparison["mobile"]["largest_contentful_paint"] == "poor"
    assert comparison["mobile"]["first_contentful_paint"] == "good"
    assert comparison["mobile"]["cumulative_layout_shift"] == "poor"

    recommendations = actionable_recommendations(psi)
    assert {r["id"] for r in recommendations["mobile"]} == {"largest-contentful-paint", "cumulative-layout-shift"}


def test_response_facts(mock_page):
    facts = response_facts(mock_page, https_redirect=True)
    assert facts.charset == "utf-8"
    assert facts.web_server == "nginx"
    assert facts.ssl_enabled is False
    assert facts.https_redirect is True
    assert facts.noindex_header is False


def test_analyze_links():
    records = build_link_records(
        [
            ("/a", "Internal", ""),
            ("https://news.edu/story", "Story", "nofollow"),
            ("https://news.edu/story", "https://news.edu/story", ""),
            ("https://agency.gov/", "Agency", ""),
            ("mailto:x@y.z", "Mail", ""),
        ],
        "https://example.com/",
        "example.com",
    )
    assert referring_domains(records) == ["news.edu", "agency.gov"]

    analysis = analyze_links(records, {"news.edu": "10.0.0.1", "agency.gov": "10.0.0.2"})

    assert analysis["total_links"] == 5
    assert analysis["internal_links_count"] == 1
    assert analysis["external_links_count"] == 3
    assert analysis["nofollow_links_count"] == 1
    assert analysis["dofollow_links_count"] == 2
    assert analysis["edu_links_count"] == 2
    assert analysis["gov_links_count"] == 1
    assert analysis["referring_domains_count"] == 2
    assert analysis["unique_ips_count"] == 2
    assert analysis["unique_subnets_count"] == 1
    assert analysis["top_pages_by_backlinks"][0] == {"url": "https://news.edu/story", "count": 2}
    assert {"geography": "EDU", "count": 1} in analysis["top_domain_geographies"]
    assert analysis["friendly_links_count"] == 2


def test_unresolved_ips_are_ignored():
    records = build_link_records([("https://x.org/", "X", "")], "https://example.com/", "example.com")
    analysis = analyze_links(records, {"x.org": None})
    assert analysis["unique_ips_count"] == 0
    assert analysis["unique_subnets_count"] == 0


def test_aggregate_audit_is_flat(mock_page):
    signals = extract_signals(mock_page.content, mock_page.url)
    crawl = CrawlResult(
        pages=[PageRecord("http://example.com/", "Home", "")],
        issues=[CrawlIssue(IssueKind.BROKEN_LINK, "http://example.com/", "http://example.com/x", 404)],
    )
    record = aggregate_audit(
        url=mock_page.url,
        signals=signals,
        response=response_facts(mock_page),
        robots=RobotsFacts(robots_txt_exists=True, xml_sitemaps=["http://example.com/sitemap.xml"]),
        site=SiteFacts(server_ip="93.184.216.34"),
        link_analysis={"total_links": 2},
        crawl=crawl,
    )

    assert record["url"] == "http://example.com/"
    assert record["title"] == "Home"
    assert record["title_length"] == 4
    assert record["h1_tags"] == [] and "h6_tags" in record
    assert record["facebook_links"] == []
    assert record["robots_txt_exists"] is True
    assert record["server_ip"] == "93.184.216.34"
    assert record["domain_age"] is None
    assert record["psi"] == {"mobile": None, "desktop": None}
    assert record["performance_metrics"] is None
    assert record["site_structure"][0]["title"] == "Home"
    assert record["crawl_issues"] == [
        {"kind": "broken_link", "url": "http://example.com/", "detail": "http://example.com/x", "status": 404}
    ]


def test_aggregate_audit_without_crawl(mock_page):
    record = aggregate_audit(
        url=mock_page.url,
        signals=extract_signals(mock_page.content),
        response=response_facts(mock_page),
        robots=RobotsFacts(),
        site=SiteFacts(),
        link_analysis={},
    )
    assert record["site_structure"] is None
    assert record["crawl_issues"] is None
