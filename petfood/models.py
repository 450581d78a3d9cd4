"""
Django models for PetFood VerifAI.

Models: Product, Analysis, Feedback

Rows are append-only: a product is created lazily by the first analysis
that references it, and every re-analysis adds a new Analysis row, which
together form the product's version history.
"""

import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone


class Species(models.TextChoices):
    """Pet species supported by the analysis rules."""

    CAT = "cat", "Cat"
    DOG = "dog", "Dog"


class Recommendation(models.TextChoices):
    """Verdict produced for a product and pet."""

    RECOMMENDED = "recommended", "Recommended"
    NOT_RECOMMENDED = "not_recommended", "Not Recommended"


class ConcernType(models.TextChoices):
    """Severity of a flagged ingredient."""

    QUESTIONABLE = "questionable", "Questionable"
    UNACCEPTABLE = "unacceptable", "Unacceptable"


class Product(models.Model):
    """
    A pet food product that has been analysed at least once.

    URL-backed products are unique by (name, url). Manual entries carry no
    stable external identity and are never deduplicated, so the uniqueness
    constraint only covers rows with is_manual_entry=False.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=500, blank=True, help_text="Display name")
    url = models.URLField(
        max_length=2000,
        null=True,
        blank=True,
        help_text="Source product page, empty for manual entries",
    )
    is_manual_entry = models.BooleanField(
        default=False,
        help_text="Entered by hand rather than resolved from a URL",
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "products"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["name", "url"],
                condition=Q(is_manual_entry=False),
                name="unique_product_name_url",
            ),
        ]

    def __str__(self):
        return self.name or self.url or str(self.id)


class Analysis(models.Model):
    """
    One verdict for a product against a specific pet context.

    Immutable after creation. Concerns are stored in order as a JSON list of
    {"type", "ingredient", "reason"} objects owned by this row.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="analyses",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="pet_food_analyses",
    )

    # Verdict
    recommendation = models.CharField(
        max_length=20,
        choices=Recommendation.choices,
    )
    justification = models.TextField()
    concerns = models.JSONField(default=list, blank=True)

    # Ingredient list actually analysed, never empty
    ingredients_text = models.TextField()

    # Pet context
    species = models.CharField(max_length=10, choices=Species.choices)
    breed = models.CharField(max_length=200)
    age = models.PositiveSmallIntegerField(validators=[MinValueValidator(0)])
    additional_info = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "analyses"
        ordering = ["-created_at"]
        verbose_name_plural = "analyses"
        indexes = [
            models.Index(fields=["user", "created_at"], name="analyses_user_created_idx"),
            models.Index(fields=["product", "created_at"], name="analyses_product_created_idx"),
        ]

    def __str__(self):
        return f"Analysis {self.id} - {self.product_id} ({self.recommendation})"

    @property
    def is_recommended(self) -> bool:
        return self.recommendation == Recommendation.RECOMMENDED


class Feedback(models.Model):
    """
    Thumbs up/down vote on an analysis.

    At most one vote per (analysis, user); a second vote is rejected by the
    unique constraint, never merged into the first.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    analysis = models.ForeignKey(
        Analysis,
        on_delete=models.CASCADE,
        related_name="feedback",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="pet_food_feedback",
    )
    is_positive = models.BooleanField()

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "feedback"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["analysis", "user"],
                name="unique_feedback_per_user",
            ),
        ]

    def __str__(self):
        vote = "positive" if self.is_positive else "negative"
        return f"Feedback {vote} on {self.analysis_id}"
