"""
Scraper interface.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class ScrapedProduct:
    """Title and ingredient list pulled from a product page."""

    name: str
    # None when the page was fetched but has no recognisable ingredient section
    ingredients: Optional[str] = None

    @property
    def has_ingredients(self) -> bool:
        return bool(self.ingredients and self.ingredients.strip())


class BaseScraper(ABC):
    """Fetches a product page and extracts title and ingredients."""

    @abstractmethod
    async def scrape(self, url: str) -> ScrapedProduct:
        """
        Scrape one product page.

        Raises:
            ScrapingError: when the page cannot be fetched or parsed
        """
