"""
Ingredient Source Resolver.

Decides where the ingredient text of a submission comes from: the caller's
own text, the "no ingredient list available" declaration, or the scraper.
"""

import logging
from typing import Optional

from petfood.scrapers import BaseScraper, get_scraper
from petfood.services.types import NO_INGREDIENTS_SENTINEL, AnalysisSubmission

logger = logging.getLogger(__name__)


class IngredientSourceResolver:
    """
    Resolve the ingredient text for one submission.

    Scraping failures propagate as ScrapingError; a page without an
    ingredient section yields the sentinel instead.
    """

    def __init__(self, scraper: Optional[BaseScraper] = None):
        self._scraper = scraper

    @property
    def scraper(self) -> BaseScraper:
        if self._scraper is None:
            self._scraper = get_scraper()
        return self._scraper

    async def resolve(self, submission: AnalysisSubmission) -> str:
        """
        Returns:
            Ingredient text, or NO_INGREDIENTS_SENTINEL when none is available

        Raises:
            ScrapingError: when the product page cannot be fetched or parsed
        """
        if submission.has_ingredients_text:
            return submission.ingredients_text

        if submission.ingredients_unavailable or not submission.product_url:
            logger.debug("No ingredient list available for submission, skipping scrape")
            return NO_INGREDIENTS_SENTINEL

        scraped = await self.scraper.scrape(submission.product_url)

        if not scraped.has_ingredients:
            logger.info(f"No ingredient section found at {submission.product_url}")
            return NO_INGREDIENTS_SENTINEL

        return scraped.ingredients.strip()
