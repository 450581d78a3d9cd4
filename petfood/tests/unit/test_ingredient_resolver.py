"""
Unit tests for IngredientSourceResolver.
"""

import pytest

from petfood.exceptions import ScrapingError
from petfood.services.ingredient_resolver import IngredientSourceResolver
from petfood.services.types import NO_INGREDIENTS_SENTINEL
from petfood.tests.fakes import FakeScraper


class TestIngredientSourceResolver:

    @pytest.mark.asyncio
    async def test_explicit_text_is_used_verbatim(self, make_submission):
        scraper = FakeScraper()
        submission = make_submission(
            is_manual=True, product_name="Kibble", product_url=None,
            ingredients_text="Salmon, Peas",
        )

        text = await IngredientSourceResolver(scraper).resolve(submission)

        assert text == "Salmon, Peas"
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_explicit_text_keeps_surrounding_whitespace(self, make_submission):
        raw = "\n  Salmon,\n  Peas  \n"
        submission = make_submission(
            is_manual=True, product_name="Kibble", product_url=None, ingredients_text=raw,
        ).validate()

        text = await IngredientSourceResolver(FakeScraper()).resolve(submission)

        assert text == raw

    @pytest.mark.asyncio
    async def test_manual_fallback_skips_scraping(self, make_submission):
        scraper = FakeScraper()
        submission = make_submission(ingredients_text="Duck, Oats")

        text = await IngredientSourceResolver(scraper).resolve(submission)

        assert text == "Duck, Oats"
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_declared_unavailable_returns_sentinel(self, make_submission):
        scraper = FakeScraper()
        submission = make_submission(ingredients_unavailable=True)

        text = await IngredientSourceResolver(scraper).resolve(submission)

        assert text == NO_INGREDIENTS_SENTINEL
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_no_text_and_no_url_returns_sentinel(self, make_submission):
        scraper = FakeScraper()
        submission = make_submission(is_manual=True, product_name="Kibble", product_url=None)

        text = await IngredientSourceResolver(scraper).resolve(submission)

        assert text == NO_INGREDIENTS_SENTINEL
        assert scraper.calls == []

    @pytest.mark.asyncio
    async def test_scrapes_product_url(self, make_submission):
        scraper = FakeScraper(ingredients="  Chicken, Rice \n")

        text = await IngredientSourceResolver(scraper).resolve(make_submission())

        assert text == "Chicken, Rice"
        assert scraper.calls == ["https://x/y"]

    @pytest.mark.asyncio
    async def test_page_without_ingredients_returns_sentinel(self, make_submission):
        scraper = FakeScraper(ingredients=None)

        text = await IngredientSourceResolver(scraper).resolve(make_submission())

        assert text == NO_INGREDIENTS_SENTINEL

    @pytest.mark.asyncio
    async def test_scraping_failure_propagates(self, make_submission):
        scraper = FakeScraper(error=ScrapingError("Product page returned HTTP 500"))

        with pytest.raises(ScrapingError):
            await IngredientSourceResolver(scraper).resolve(make_submission())

    def test_scraper_defaults_to_configured_backend(self, settings):
        settings.PETFOOD_SCRAPER_BACKEND = "static"

        from petfood.scrapers import StaticScraper

        assert isinstance(IngredientSourceResolver().scraper, StaticScraper)
