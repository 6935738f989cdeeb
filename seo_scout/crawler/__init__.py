"""seo_scout.crawler: breadth-first site crawl, fetching, link resolution and robots.txt."""
