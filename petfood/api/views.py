"""
Analysis API views.

REST endpoints for pet food analyses:
- Create an analysis from a product URL or manual entry
- List the user's analyses (optionally one product's version history)
- Analysis detail
- Thumbs up/down feedback

All endpoints require authentication. Create is rate limited per user.
Service errors are turned into responses by petfood.api.exceptions.
"""

import logging

from drf_spectacular.utils import OpenApiExample, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from petfood.api.serializers import (
    AnalysisCreateSerializer,
    AnalysisDetailSerializer,
    AnalysisListQuerySerializer,
    AnalysisPageSerializer,
    AnalysisSummarySerializer,
    FeedbackCreateSerializer,
    FeedbackSerializer,
)
from petfood.api.throttling import AnalysisCreateThrottle
from petfood.services.analysis_orchestrator import get_analysis_orchestrator
from petfood.services.feedback import FeedbackRecorder
from petfood.services.history import HistoryQueryService

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"description": "Invalid submission; field errors under 'errors'"},
    403: {"description": "Not authenticated"},
}


@extend_schema(
    methods=["POST"],
    tags=["Analyses"],
    summary="Analyse a pet food product",
    description="""
    Analyse a product's ingredients for a specific pet.

    URL mode (is_manual=false): ingredients are scraped from product_url,
    unless ingredients_text is supplied as a manual fallback.
    Manual mode (is_manual=true): product_name and ingredients_text, or
    no_ingredients_available=true.

    Without an ingredient list the verdict is always not_recommended.
    """,
    request=AnalysisCreateSerializer,
    responses={
        201: AnalysisSummarySerializer,
        **ERROR_RESPONSES,
        429: {"description": "Rate limit exceeded"},
        503: {"description": "Scraper or model unavailable; retryable"},
    },
    examples=[
        OpenApiExample(
            "URL mode",
            value={
                "is_manual": False,
                "product_url": "https://www.zooplus.com/shop/dogs/dry_dog_food/example",
                "species": "Dog",
                "breed": "Labrador",
                "age": 5,
                "additional_info": "Sensitive stomach",
            },
            request_only=True,
        ),
        OpenApiExample(
            "Manual mode",
            value={
                "is_manual": True,
                "product_name": "Grain Free Salmon",
                "ingredients_text": "Salmon, Sweet Potato, Peas, Taurine",
                "species": "Cat",
                "breed": "Maine Coon",
                "age": 3,
            },
            request_only=True,
        ),
    ],
)
@extend_schema(
    methods=["GET"],
    tags=["Analyses"],
    summary="List my analyses",
    description="""
    Newest-first page of the current user's analyses.

    product_id restricts the list to one product's version history.
    group_by_product=true returns only the latest analysis per product.
    """,
    parameters=[AnalysisListQuerySerializer],
    responses={200: AnalysisPageSerializer, **ERROR_RESPONSES},
)
@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
@throttle_classes([AnalysisCreateThrottle])
def analyses(request):
    """
    GET: list the user's analyses.
    POST: create a new analysis.
    """
    if request.method == "POST":
        return _create_analysis(request)
    return _list_analyses(request)


def _create_analysis(request):
    serializer = AnalysisCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    summary = get_analysis_orchestrator().create_analysis(
        serializer.to_submission(),
        user_id=request.user.pk,
    )

    return Response(
        AnalysisSummarySerializer(summary).data,
        status=status.HTTP_201_CREATED,
    )


def _list_analyses(request):
    query = AnalysisListQuerySerializer(data=request.query_params)
    query.is_valid(raise_exception=True)
    params = query.validated_data

    page = HistoryQueryService().list_analyses(
        user_id=request.user.pk,
        product_id=params.get("product_id"),
        page=params.get("page", 1),
        page_size=params.get("page_size"),
        group_by_product=params.get("group_by_product", False),
    )
    return Response(AnalysisPageSerializer(page).data)


@extend_schema(
    tags=["Analyses"],
    summary="Get analysis detail",
    description="Full analysis including ingredients and pet context. Only the owner can see it.",
    responses={
        200: AnalysisDetailSerializer,
        403: {"description": "Not authenticated"},
        404: {"description": "Analysis not found"},
    },
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def analysis_detail(request, analysis_id):
    detail = HistoryQueryService().get_analysis(analysis_id, user_id=request.user.pk)
    return Response(AnalysisDetailSerializer(detail).data)


@extend_schema(
    tags=["Feedback"],
    summary="Rate an analysis",
    description="Thumbs up or down on one of your analyses. One vote per analysis.",
    request=FeedbackCreateSerializer,
    responses={
        201: FeedbackSerializer,
        **ERROR_RESPONSES,
        404: {"description": "Analysis not found"},
        409: {"description": "Feedback already submitted"},
    },
)
@api_view(["POST"])
@permission_classes([IsAuthenticated])
def analysis_feedback(request, analysis_id):
    serializer = FeedbackCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    feedback = FeedbackRecorder().record_feedback(
        analysis_id,
        user_id=request.user.pk,
        is_positive=serializer.validated_data["is_positive"],
    )
    return Response(FeedbackSerializer(feedback).data, status=status.HTTP_201_CREATED)
