"""seo_scout.parser: HTML signal extraction and sitemap parsing."""
