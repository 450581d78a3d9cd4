"""
Product page scrapers.

Scrapers fetch a product page and pull out the product title and the
ingredient list. The backend is chosen by settings.PETFOOD_SCRAPER_BACKEND.
"""

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from petfood.scrapers.base import BaseScraper, ScrapedProduct
from petfood.scrapers.httpx_scraper import HttpxScraper
from petfood.scrapers.static import StaticScraper

SCRAPER_BACKENDS = {
    "httpx": HttpxScraper,
    "static": StaticScraper,
}


def get_scraper(backend=None) -> BaseScraper:
    """
    Factory function to get the configured scraper.

    Raises:
        ImproperlyConfigured: for an unknown backend name
    """
    name = (backend or getattr(settings, "PETFOOD_SCRAPER_BACKEND", "httpx")).lower()
    scraper_class = SCRAPER_BACKENDS.get(name)
    if scraper_class is None:
        raise ImproperlyConfigured(
            f"Unsupported scraper backend: {name}. "
            f"Supported backends: {', '.join(sorted(SCRAPER_BACKENDS))}"
        )
    return scraper_class()


__all__ = [
    "BaseScraper",
    "HttpxScraper",
    "ScrapedProduct",
    "StaticScraper",
    "get_scraper",
]
