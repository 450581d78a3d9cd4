"""
Product Identity Resolver.

URL-backed products are reused by exact (name, url) match; manual entries
always become new products. Resolution never writes; persist() performs the
single insert inside the caller's transaction.
"""

import logging
from typing import Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from petfood.models import Product

logger = logging.getLogger(__name__)


class ProductIdentityResolver:
    """Map a submission's product reference to a Product."""

    def resolve(self, name: Optional[str], url: Optional[str], is_manual: bool) -> Product:
        """
        Find or prepare the product for an analysis.

        Returns:
            An existing Product, or a new unsaved one
        """
        name = (name or "").strip()

        if is_manual:
            # Manual entries have no stable identity to match on
            return Product(name=name, url=None, is_manual_entry=True, created_at=timezone.now())

        existing = self._find_url_product(name, url)
        if existing is not None:
            logger.debug(f"Reusing product {existing.id} for '{name}' {url}")
            return existing

        return Product(name=name, url=url, is_manual_entry=False, created_at=timezone.now())

    def persist(self, product: Product) -> Product:
        """
        Insert a product returned by resolve() if it is new.

        A concurrent request may have created the same URL-backed product
        since resolve(); the unique constraint rejects the insert and the
        winner's row is returned instead.
        """
        if not product._state.adding:
            return product

        if product.is_manual_entry:
            product.save(force_insert=True)
            logger.info(f"Created manual product {product.id} '{product.name}'")
            return product

        try:
            with transaction.atomic():
                product.save(force_insert=True)
        except IntegrityError:
            existing = self._find_url_product(product.name, product.url)
            if existing is None:
                raise
            logger.info(
                f"Product '{product.name}' {product.url} created concurrently, "
                f"reusing {existing.id}"
            )
            return existing

        logger.info(f"Created product {product.id} '{product.name}' {product.url}")
        return product

    def _find_url_product(self, name: str, url: Optional[str]) -> Optional[Product]:
        return Product.objects.filter(
            name=name,
            url=url,
            is_manual_entry=False,
        ).first()
