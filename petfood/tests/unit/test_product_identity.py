"""
Unit tests for ProductIdentityResolver.

Covers exact (name, url) reuse, manual entries never being deduplicated, and
recovery when a concurrent request inserts the same product first.
"""

import pytest

from petfood.models import Product
from petfood.services.product_identity import ProductIdentityResolver


@pytest.mark.django_db
class TestResolve:

    def test_new_url_product_is_not_saved(self):
        product = ProductIdentityResolver().resolve("Kibble", "https://x/y", is_manual=False)

        assert product._state.adding is True
        assert product.is_manual_entry is False
        assert Product.objects.count() == 0

    def test_existing_url_product_is_reused(self):
        existing = Product.objects.create(name="Kibble", url="https://x/y")

        product = ProductIdentityResolver().resolve("Kibble", "https://x/y", is_manual=False)

        assert product.id == existing.id

    def test_match_is_exact_on_name_and_url(self):
        Product.objects.create(name="Kibble", url="https://x/y")

        resolver = ProductIdentityResolver()

        assert resolver.resolve("Kibble 2", "https://x/y", is_manual=False)._state.adding
        assert resolver.resolve("Kibble", "https://x/z", is_manual=False)._state.adding

    def test_manual_products_are_never_matched(self):
        Product.objects.create(name="Kibble", url=None, is_manual_entry=True)

        product = ProductIdentityResolver().resolve("Kibble", None, is_manual=True)

        assert product._state.adding is True
        assert product.url is None
        assert product.is_manual_entry is True

    def test_url_lookup_ignores_manual_products(self):
        Product.objects.create(name="Kibble", url="https://x/y", is_manual_entry=True)

        product = ProductIdentityResolver().resolve("Kibble", "https://x/y", is_manual=False)

        assert product._state.adding is True


@pytest.mark.django_db
class TestPersist:

    def test_persists_new_product(self):
        resolver = ProductIdentityResolver()
        product = resolver.persist(resolver.resolve("Kibble", "https://x/y", is_manual=False))

        assert Product.objects.get(id=product.id).name == "Kibble"

    def test_existing_product_is_not_written_again(self):
        existing = Product.objects.create(name="Kibble", url="https://x/y")
        resolver = ProductIdentityResolver()

        product = resolver.persist(resolver.resolve("Kibble", "https://x/y", is_manual=False))

        assert product.id == existing.id
        assert Product.objects.count() == 1

    def test_manual_products_with_same_name_are_distinct(self):
        resolver = ProductIdentityResolver()

        first = resolver.persist(resolver.resolve("Kibble", None, is_manual=True))
        second = resolver.persist(resolver.resolve("Kibble", None, is_manual=True))

        assert first.id != second.id
        assert Product.objects.filter(name="Kibble", is_manual_entry=True).count() == 2

    def test_concurrent_insert_reuses_winner(self):
        resolver = ProductIdentityResolver()
        pending = resolver.resolve("Kibble", "https://x/y", is_manual=False)

        # Another request wins the race between resolve and persist
        winner = Product.objects.create(name="Kibble", url="https://x/y")

        product = resolver.persist(pending)

        assert product.id == winner.id
        assert Product.objects.count() == 1
