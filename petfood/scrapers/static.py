"""
Offline scraper for development and tests.
"""

import logging

from petfood.scrapers.base import BaseScraper, ScrapedProduct

logger = logging.getLogger(__name__)


class StaticScraper(BaseScraper):
    """Returns the same product for every URL without touching the network."""

    PRODUCT_NAME = "Sample Pet Food"
    INGREDIENTS = "Deboned Chicken, Chicken Meal, Brown Rice, Barley, Oatmeal"

    async def scrape(self, url: str) -> ScrapedProduct:
        logger.debug(f"Static scraper returning fixed product for {url}")
        return ScrapedProduct(name=self.PRODUCT_NAME, ingredients=self.INGREDIENTS)
