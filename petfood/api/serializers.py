"""
Request and response serializers for the analysis API.

Input serializers only coerce types; the business rules for submissions
live in AnalysisSubmission.validate() and the services.
"""

from rest_framework import serializers

from petfood.models import ConcernType, Recommendation, Species
from petfood.services.types import AnalysisSubmission, PetContext


class AnalysisCreateSerializer(serializers.Serializer):
    is_manual = serializers.BooleanField()
    product_name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    product_url = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    ingredients_text = serializers.CharField(
        required=False, allow_blank=True, allow_null=True, trim_whitespace=False
    )
    no_ingredients_available = serializers.BooleanField(required=False, default=False)
    species = serializers.CharField(help_text="Cat or Dog (case-insensitive)")
    breed = serializers.CharField(allow_blank=True)
    age = serializers.IntegerField(help_text="Age in years")
    additional_info = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_submission(self) -> AnalysisSubmission:
        data = self.validated_data
        return AnalysisSubmission(
            is_manual=data["is_manual"],
            product_name=data.get("product_name"),
            product_url=data.get("product_url"),
            ingredients_text=data.get("ingredients_text"),
            ingredients_unavailable=data.get("no_ingredients_available", False),
            pet=PetContext(
                species=data["species"],
                breed=data["breed"],
                age=data["age"],
                additional_info=data.get("additional_info"),
            ),
        )


class AnalysisListQuerySerializer(serializers.Serializer):
    product_id = serializers.UUIDField(required=False)
    page = serializers.IntegerField(required=False, default=1)
    page_size = serializers.IntegerField(required=False)
    group_by_product = serializers.BooleanField(required=False, default=False)


class FeedbackCreateSerializer(serializers.Serializer):
    is_positive = serializers.BooleanField()


class ConcernSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ConcernType.choices)
    ingredient = serializers.CharField()
    reason = serializers.CharField(allow_blank=True)


class AnalysisSummarySerializer(serializers.Serializer):
    analysis_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    recommendation = serializers.ChoiceField(choices=Recommendation.choices)
    justification = serializers.CharField()
    concerns = ConcernSerializer(many=True)
    created_at = serializers.DateTimeField()


class AnalysisListItemSerializer(serializers.Serializer):
    analysis_id = serializers.UUIDField()
    product_id = serializers.UUIDField()
    product_name = serializers.CharField(allow_blank=True)
    product_url = serializers.CharField(allow_null=True)
    is_manual_entry = serializers.BooleanField()
    recommendation = serializers.ChoiceField(choices=Recommendation.choices)
    created_at = serializers.DateTimeField()


class AnalysisPageSerializer(serializers.Serializer):
    page = serializers.IntegerField()
    page_size = serializers.IntegerField()
    total_count = serializers.IntegerField()
    items = AnalysisListItemSerializer(many=True)


class AnalysisDetailSerializer(AnalysisListItemSerializer):
    justification = serializers.CharField()
    concerns = ConcernSerializer(many=True)
    ingredients_text = serializers.CharField()
    species = serializers.ChoiceField(choices=Species.choices)
    breed = serializers.CharField()
    age = serializers.IntegerField()
    additional_info = serializers.CharField(allow_null=True)


class FeedbackSerializer(serializers.Serializer):
    feedback_id = serializers.UUIDField(source="id")
    analysis_id = serializers.UUIDField()
    is_positive = serializers.BooleanField()
    created_at = serializers.DateTimeField()
