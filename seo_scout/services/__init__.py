"""seo_scout.services: clients for the third-party lookups an audit relies on."""

from .pagespeed import PageSpeedClient
from .search_console import SearchConsoleClient

__all__ = ["PageSpeedClient", "SearchConsoleClient"]
