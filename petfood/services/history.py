"""
History Query Service.

Read-only access to a user's analyses: paginated lists (optionally one
product's version history, or the latest analysis per product) and single
analysis detail. Every query is scoped to the requesting user.
"""

import logging
from typing import Any, Optional
from uuid import UUID

from django.conf import settings
from django.db.models import OuterRef, Subquery

from petfood.exceptions import AnalysisNotFoundError, InvalidRequestError
from petfood.models import Analysis
from petfood.services.types import (
    AnalysisDetail,
    AnalysisListItem,
    AnalysisPage,
    Concern,
)

logger = logging.getLogger(__name__)


def _as_uuid(value: Any) -> Optional[UUID]:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class HistoryQueryService:
    """List and fetch analyses for their owner."""

    def list_analyses(
        self,
        user_id: Any,
        product_id: Optional[Any] = None,
        page: int = 1,
        page_size: Optional[int] = None,
        group_by_product: bool = False,
    ) -> AnalysisPage:
        """
        Newest-first page of the user's analyses.

        Args:
            user_id: Owner
            product_id: Restrict to one product's version history
            page: 1-based page number
            page_size: Items per page (default and ceiling from settings)
            group_by_product: Only the latest analysis per product; ignored
                when product_id is given

        Raises:
            InvalidRequestError: for an out-of-range page or page size
        """
        max_page_size = getattr(settings, "PETFOOD_HISTORY_MAX_PAGE_SIZE", 100)
        if page_size is None:
            page_size = getattr(settings, "PETFOOD_HISTORY_DEFAULT_PAGE_SIZE", 10)

        errors = {}
        if not _is_int(page) or page < 1:
            errors["page"] = ["Page must be a whole number of at least 1."]
        if not _is_int(page_size) or not 1 <= page_size <= max_page_size:
            errors["page_size"] = [f"Page size must be between 1 and {max_page_size}."]

        product_uuid = None
        if product_id is not None:
            product_uuid = _as_uuid(product_id)
            if product_uuid is None:
                errors["product_id"] = ["Product id must be a valid UUID."]

        if errors:
            raise InvalidRequestError("Invalid history query.", errors)

        queryset = Analysis.objects.filter(user_id=user_id)

        if product_uuid is not None:
            queryset = queryset.filter(product_id=product_uuid)
        elif group_by_product:
            latest_per_product = (
                Analysis.objects.filter(user_id=user_id, product_id=OuterRef("product_id"))
                .order_by("-created_at", "-id")
                .values("id")[:1]
            )
            queryset = queryset.filter(id=Subquery(latest_per_product))

        total_count = queryset.count()

        offset = (page - 1) * page_size
        rows = queryset.select_related("product").order_by("-created_at", "-id")[
            offset:offset + page_size
        ]

        items = [
            AnalysisListItem(
                analysis_id=analysis.id,
                product_id=analysis.product_id,
                product_name=analysis.product.name,
                product_url=analysis.product.url,
                is_manual_entry=analysis.product.is_manual_entry,
                recommendation=analysis.recommendation,
                created_at=analysis.created_at,
            )
            for analysis in rows
        ]

        logger.debug(
            f"History for user {user_id}: page {page} ({len(items)} of {total_count})"
        )
        return AnalysisPage(page=page, page_size=page_size, total_count=total_count, items=items)

    def get_analysis(self, analysis_id: Any, user_id: Any) -> AnalysisDetail:
        """
        Full detail of one analysis.

        Raises:
            AnalysisNotFoundError: when the analysis does not exist or belongs
                to someone else
        """
        analysis_uuid = _as_uuid(analysis_id)
        analysis = None
        if analysis_uuid is not None:
            analysis = (
                Analysis.objects.select_related("product")
                .filter(id=analysis_uuid, user_id=user_id)
                .first()
            )
        if analysis is None:
            raise AnalysisNotFoundError("Analysis not found.")

        product = analysis.product
        return AnalysisDetail(
            analysis_id=analysis.id,
            product_id=product.id,
            product_name=product.name,
            product_url=product.url,
            is_manual_entry=product.is_manual_entry,
            recommendation=analysis.recommendation,
            justification=analysis.justification,
            concerns=[Concern.from_dict(item) for item in analysis.concerns or []],
            ingredients_text=analysis.ingredients_text,
            species=analysis.species,
            breed=analysis.breed,
            age=analysis.age,
            additional_info=analysis.additional_info or None,
            created_at=analysis.created_at,
        )
