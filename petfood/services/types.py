"""
Data types for the analysis services.

Submissions flow in from the API layer (or any other caller), verdicts come
back from the model client, and summaries/pages/details are what the
services hand back to the presentation layer.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from uuid import UUID

from petfood.exceptions import InvalidRequestError
from petfood.models import ConcernType, Recommendation, Species

# Persisted in place of an ingredient list when none is available
NO_INGREDIENTS_SENTINEL = "No ingredient list available"

MAX_PRODUCT_NAME_LENGTH = 500
MAX_URL_LENGTH = 2000
MAX_BREED_LENGTH = 200
MAX_ADDITIONAL_INFO_LENGTH = 2000
MAX_PET_AGE = 50


def is_missing_ingredients(text: Optional[str]) -> bool:
    """True when the text denotes that no ingredient list is available."""
    if text is None or not text.strip():
        return True
    return text.strip().lower() == NO_INGREDIENTS_SENTINEL.lower()


def is_http_url(value: str) -> bool:
    """Check if a string is an absolute http(s) URL."""
    try:
        result = urlparse(value)
        return all([result.scheme in ("http", "https"), result.netloc])
    except Exception:
        return False


@dataclass
class PetContext:
    """The pet a product is being judged for."""

    species: str
    breed: str
    age: int
    additional_info: Optional[str] = None

    @property
    def species_label(self) -> str:
        return Species(self.species).label


@dataclass
class AnalysisSubmission:
    """
    A create-analysis request.

    Two modes:
    - manual (is_manual=True): product_name plus ingredients_text, or the
      ingredients_unavailable declaration; no URL.
    - URL (is_manual=False): product_url, optional product_name. Ingredients
      are scraped unless ingredients_text is given (manual fallback) or
      ingredients_unavailable is set.
    """

    is_manual: bool
    pet: PetContext
    product_name: Optional[str] = None
    product_url: Optional[str] = None
    ingredients_text: Optional[str] = None
    ingredients_unavailable: bool = False

    @property
    def has_ingredients_text(self) -> bool:
        return bool(self.ingredients_text and self.ingredients_text.strip())

    def validate(self) -> "AnalysisSubmission":
        """
        Normalise and validate the submission in place.

        Raises:
            InvalidRequestError: with a field -> messages mapping
        """
        errors: Dict[str, List[str]] = {}

        def add(field_name: str, message: str):
            errors.setdefault(field_name, []).append(message)

        self.product_name = (self.product_name or "").strip()
        self.product_url = (self.product_url or "").strip() or None

        if self.is_manual:
            if not self.product_name:
                add("product_name", "Product name is required for manual entry.")
            if self.product_url:
                add("product_url", "Do not provide a product URL for manual entry.")
            if not self.has_ingredients_text and not self.ingredients_unavailable:
                add(
                    "ingredients_text",
                    "Ingredients are required for manual entry unless no ingredient "
                    "list is available.",
                )
        else:
            if not self.product_url:
                add("product_url", "Product URL is required when not entering manually.")
            elif len(self.product_url) > MAX_URL_LENGTH or not is_http_url(self.product_url):
                add("product_url", "Product URL must be a valid HTTP or HTTPS URL.")

        if len(self.product_name) > MAX_PRODUCT_NAME_LENGTH:
            add("product_name", f"Product name must be at most {MAX_PRODUCT_NAME_LENGTH} characters.")

        if self.ingredients_unavailable and self.has_ingredients_text:
            add(
                "ingredients_text",
                "Leave ingredients empty when declaring that no ingredient list is available.",
            )

        pet = self.pet
        species = str(pet.species or "").strip().lower()
        if species not in Species.values:
            add("species", f"Species must be one of: {', '.join(Species.labels)}.")
        else:
            pet.species = species

        pet.breed = (pet.breed or "").strip()
        if not pet.breed:
            add("breed", "Breed is required.")
        elif len(pet.breed) > MAX_BREED_LENGTH:
            add("breed", f"Breed must be at most {MAX_BREED_LENGTH} characters.")

        if isinstance(pet.age, bool) or not isinstance(pet.age, int):
            add("age", "Age must be a whole number of years.")
        elif pet.age < 0 or pet.age > MAX_PET_AGE:
            add("age", f"Age must be between 0 and {MAX_PET_AGE}.")

        pet.additional_info = (pet.additional_info or "").strip() or None
        if pet.additional_info and len(pet.additional_info) > MAX_ADDITIONAL_INFO_LENGTH:
            add(
                "additional_info",
                f"Additional info must be at most {MAX_ADDITIONAL_INFO_LENGTH} characters.",
            )

        if errors:
            raise InvalidRequestError("Invalid analysis submission.", errors)
        return self


@dataclass
class Concern:
    """A flagged ingredient."""

    type: str
    ingredient: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "ingredient": self.ingredient, "reason": self.reason}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Concern":
        return cls(
            type=data.get("type", ConcernType.QUESTIONABLE),
            ingredient=data.get("ingredient", ""),
            reason=data.get("reason", ""),
        )


@dataclass
class ModelVerdict:
    """Structured verdict returned by the model client."""

    is_recommended: bool
    justification: str
    concerns: List[Concern] = field(default_factory=list)

    @property
    def recommendation(self) -> str:
        if self.is_recommended:
            return Recommendation.RECOMMENDED
        return Recommendation.NOT_RECOMMENDED


@dataclass
class AnalysisSummary:
    """Result of create-analysis."""

    analysis_id: UUID
    product_id: UUID
    recommendation: str
    justification: str
    concerns: List[Concern]
    created_at: datetime


@dataclass
class AnalysisListItem:
    """One row of a history page."""

    analysis_id: UUID
    product_id: UUID
    product_name: str
    product_url: Optional[str]
    is_manual_entry: bool
    recommendation: str
    created_at: datetime


@dataclass
class AnalysisPage:
    """Offset-paginated slice of a user's analyses."""

    page: int
    page_size: int
    total_count: int
    items: List[AnalysisListItem] = field(default_factory=list)


@dataclass
class AnalysisDetail:
    """Full view of one analysis, returned to its owner only."""

    analysis_id: UUID
    product_id: UUID
    product_name: str
    product_url: Optional[str]
    is_manual_entry: bool
    recommendation: str
    justification: str
    concerns: List[Concern]
    ingredients_text: str
    species: str
    breed: str
    age: int
    additional_info: Optional[str]
    created_at: datetime
