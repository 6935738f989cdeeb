# File: seo_scout/parser/sitemap_parser.py
"""seo_scout.parser.sitemap_parser: parse sitemap.xml / sitemap index documents."""

from __future__ import annotations

from typing import List

from lxml import etree


def parse_sitemap(xml_content: str) -> List[str]:
    """Parse sitemap XML and return the URLs found in ``<loc>`` tags.

    Works for both ``<urlset>`` and ``<sitemapindex>`` documents. Content
    that is not XML at all yields an empty list.

    Example:
    ```python
    from seo_scout.parser.sitemap_parser import parse_sitemap

    urls = parse_sitemap(xml_text)
    ```
    """
    if not xml_content.strip():
        return []
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False)
    try:
        root = etree.fromstring(xml_content.encode("utf-8"), parser=parser)
    except etree.XMLSyntaxError:
        return []
    if root is None:
        return []
    locs = root.findall(".//{*}loc")
    return [loc.text.strip() for loc in locs if loc.text and loc.text.strip()]
