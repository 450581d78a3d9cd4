"""
Unit tests for AnalysisSubmission validation.
"""

import pytest

from petfood.exceptions import InvalidRequestError
from petfood.services.types import (
    NO_INGREDIENTS_SENTINEL,
    AnalysisSubmission,
    PetContext,
    is_http_url,
    is_missing_ingredients,
)


def errors_for(submission):
    with pytest.raises(InvalidRequestError) as exc_info:
        submission.validate()
    return exc_info.value.errors


class TestSubmissionValidation:

    def test_url_submission_is_normalised(self, make_submission):
        submission = make_submission(product_url="  https://x/y  ", species=" DOG ", breed=" Labrador ")

        submission.validate()

        assert submission.product_url == "https://x/y"
        assert submission.product_name == ""
        assert submission.pet.species == "dog"
        assert submission.pet.breed == "Labrador"
        assert submission.pet.additional_info is None

    def test_manual_submission_requires_name(self, make_submission):
        submission = make_submission(is_manual=True, product_url=None, ingredients_text="Chicken")

        assert "product_name" in errors_for(submission)

    def test_manual_submission_requires_ingredients_or_declaration(self, make_submission):
        submission = make_submission(is_manual=True, product_name="Kibble", product_url=None)

        assert "ingredients_text" in errors_for(submission)

    def test_manual_submission_with_unavailable_declaration(self, make_submission):
        submission = make_submission(
            is_manual=True,
            product_name="Kibble",
            product_url=None,
            ingredients_unavailable=True,
        )

        assert submission.validate() is submission

    def test_manual_submission_rejects_url(self, make_submission):
        submission = make_submission(is_manual=True, product_name="Kibble", ingredients_text="Chicken")

        assert "product_url" in errors_for(submission)

    @pytest.mark.parametrize("url", [None, "", "x/y", "ftp://example.com/food", "https://"])
    def test_url_mode_requires_http_url(self, make_submission, url):
        submission = make_submission(product_url=url)

        assert "product_url" in errors_for(submission)

    def test_text_and_unavailable_declaration_conflict(self, make_submission):
        submission = make_submission(ingredients_text="Chicken", ingredients_unavailable=True)

        assert "ingredients_text" in errors_for(submission)

    def test_invalid_species(self, make_submission):
        assert "species" in errors_for(make_submission(species="Fish"))

    def test_blank_breed(self, make_submission):
        assert "breed" in errors_for(make_submission(breed="   "))

    @pytest.mark.parametrize("age", [-1, 51, "5", True, None])
    def test_invalid_age(self, make_submission, age):
        assert "age" in errors_for(make_submission(age=age))

    @pytest.mark.parametrize("age", [0, 50])
    def test_age_bounds_are_inclusive(self, make_submission, age):
        make_submission(age=age).validate()

    def test_additional_info_too_long(self, make_submission):
        assert "additional_info" in errors_for(make_submission(additional_info="x" * 2001))

    def test_all_errors_reported_together(self):
        submission = AnalysisSubmission(
            is_manual=False,
            pet=PetContext(species="bird", breed="", age=-3),
        )

        errors = errors_for(submission)

        assert set(errors) == {"product_url", "species", "breed", "age"}


class TestHelpers:

    @pytest.mark.parametrize("text", [None, "", "   ", NO_INGREDIENTS_SENTINEL, "no ingredient list available"])
    def test_missing_ingredients(self, text):
        assert is_missing_ingredients(text) is True

    def test_present_ingredients(self):
        assert is_missing_ingredients("Chicken, Rice") is False

    def test_is_http_url(self):
        assert is_http_url("https://www.zooplus.com/shop/p/1")
        assert is_http_url("http://x/y")
        assert not is_http_url("zooplus.com")
