"""
Fixtures for petfood service and unit tests.
"""

import pytest

from petfood.services.types import AnalysisSubmission, PetContext


@pytest.fixture
def user(db, django_user_model):
    return django_user_model.objects.create_user(username="owner", password="secret")


@pytest.fixture
def other_user(db, django_user_model):
    return django_user_model.objects.create_user(username="someone-else", password="secret")


@pytest.fixture
def make_submission():
    """Build a URL-mode submission, overriding any field."""

    def _make(**overrides):
        pet = overrides.pop("pet", None) or PetContext(
            species=overrides.pop("species", "Dog"),
            breed=overrides.pop("breed", "Labrador"),
            age=overrides.pop("age", 5),
            additional_info=overrides.pop("additional_info", None),
        )
        fields = {
            "is_manual": False,
            "product_name": "",
            "product_url": "https://x/y",
            "ingredients_text": None,
            "ingredients_unavailable": False,
        }
        fields.update(overrides)
        return AnalysisSubmission(pet=pet, **fields)

    return _make
