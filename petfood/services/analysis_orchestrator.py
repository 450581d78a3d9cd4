"""
Analysis Orchestrator.

Runs one create-analysis request end to end:

1. Validate the submission
2. Resolve product identity (no write)
3. Resolve ingredient text (may scrape)
4. Get a verdict: deterministic NotRecommended when no ingredient list is
   available, otherwise from the model client
5. Persist product (if new) and analysis in one transaction

External calls happen before the transaction, so a scraper or model failure
leaves nothing behind.
"""

import logging
from typing import Any, Optional

from asgiref.sync import async_to_sync
from django.db import transaction
from django.utils import timezone

from petfood.exceptions import ExternalDependencyError
from petfood.models import Analysis, ConcernType
from petfood.monitoring import add_analysis_breadcrumb, capture_service_error
from petfood.services.ingredient_resolver import IngredientSourceResolver
from petfood.services.model_client import BaseModelClient, get_model_client
from petfood.services.product_identity import ProductIdentityResolver
from petfood.services.types import (
    NO_INGREDIENTS_SENTINEL,
    AnalysisSubmission,
    AnalysisSummary,
    Concern,
    ModelVerdict,
    PetContext,
    is_missing_ingredients,
)

logger = logging.getLogger(__name__)

MISSING_INGREDIENTS_CONCERN = "Ingredient list (missing)"


def missing_ingredients_verdict(pet: PetContext) -> ModelVerdict:
    """Verdict for a product whose ingredient list is not available."""
    species = pet.species_label.lower()
    return ModelVerdict(
        is_recommended=False,
        justification=(
            f"No ingredient list is available for this product, so it cannot be "
            f"verified as safe for a {pet.age}-year-old {pet.breed} {species}. "
            f"Without the ingredients, toxic components and missing essential "
            f"nutrients cannot be ruled out."
        ),
        concerns=[
            Concern(
                type=ConcernType.UNACCEPTABLE.value,
                ingredient=MISSING_INGREDIENTS_CONCERN,
                reason=(
                    "The ingredient list could not be obtained, so the food cannot be "
                    "checked for toxic ingredients or essential nutrients."
                ),
            )
        ],
    )


class AnalysisOrchestrator:
    """
    Coordinates identity, ingredients, model and persistence for one request.

    Collaborators are created lazily from settings unless injected, so a
    request that never reaches the model does not need model credentials.
    """

    def __init__(
        self,
        identity_resolver: Optional[ProductIdentityResolver] = None,
        ingredient_resolver: Optional[IngredientSourceResolver] = None,
        model_client: Optional[BaseModelClient] = None,
    ):
        self.identity_resolver = identity_resolver or ProductIdentityResolver()
        self.ingredient_resolver = ingredient_resolver or IngredientSourceResolver()
        self._model_client = model_client

    @property
    def model_client(self) -> BaseModelClient:
        if self._model_client is None:
            self._model_client = get_model_client()
        return self._model_client

    def create_analysis(self, submission: AnalysisSubmission, user_id: Any) -> AnalysisSummary:
        """
        Analyse a product for a pet and record the result.

        Args:
            submission: Create-analysis request
            user_id: Owner of the new analysis

        Returns:
            AnalysisSummary for the persisted analysis

        Raises:
            InvalidRequestError: for a malformed submission
            ExternalDependencyError: when scraping or the model call fails
        """
        submission.validate()
        pet = submission.pet

        product = self.identity_resolver.resolve(
            submission.product_name,
            submission.product_url,
            submission.is_manual,
        )
        add_analysis_breadcrumb(
            "Product resolved",
            data={
                "product_id": None if product._state.adding else str(product.id),
                "is_manual": submission.is_manual,
                "product_url": submission.product_url,
            },
        )

        context = {
            "is_manual": submission.is_manual,
            "product_url": submission.product_url,
            "species": pet.species,
        }

        try:
            ingredients_text = async_to_sync(self.ingredient_resolver.resolve)(submission)
        except ExternalDependencyError as e:
            logger.warning(f"Ingredient resolution failed for user {user_id}: {e}")
            capture_service_error(e, operation=e.dependency, user_id=user_id, extra_context=context)
            raise

        if is_missing_ingredients(ingredients_text):
            ingredients_text = NO_INGREDIENTS_SENTINEL
            verdict = missing_ingredients_verdict(pet)
            logger.info("No ingredient list available, returning missing-ingredients verdict")
        else:
            add_analysis_breadcrumb(
                "Calling analysis model",
                data={"ingredients_length": len(ingredients_text), **context},
            )
            try:
                verdict = async_to_sync(self.model_client.analyze)(ingredients_text, pet)
            except ExternalDependencyError as e:
                logger.warning(f"Model analysis failed for user {user_id}: {e}")
                capture_service_error(e, operation=e.dependency, user_id=user_id, extra_context=context)
                raise

        with transaction.atomic():
            product = self.identity_resolver.persist(product)
            analysis = Analysis.objects.create(
                product=product,
                user_id=user_id,
                recommendation=verdict.recommendation,
                justification=verdict.justification,
                concerns=[concern.to_dict() for concern in verdict.concerns],
                ingredients_text=ingredients_text,
                species=pet.species,
                breed=pet.breed,
                age=pet.age,
                additional_info=pet.additional_info or "",
                created_at=timezone.now(),
            )

        logger.info(
            f"Created analysis {analysis.id} for product {product.id} "
            f"(user {user_id}): {analysis.recommendation}"
        )

        return AnalysisSummary(
            analysis_id=analysis.id,
            product_id=product.id,
            recommendation=analysis.recommendation,
            justification=analysis.justification,
            concerns=list(verdict.concerns),
            created_at=analysis.created_at,
        )


def get_analysis_orchestrator() -> AnalysisOrchestrator:
    """Factory function to get an orchestrator wired from settings."""
    return AnalysisOrchestrator()
