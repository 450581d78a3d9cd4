"""
URL patterns for the analysis REST API.

Endpoints:
- GET  /api/v1/analyses/                         - List my analyses
- POST /api/v1/analyses/                         - Create analysis
- GET  /api/v1/analyses/<analysis_id>/           - Analysis detail
- POST /api/v1/analyses/<analysis_id>/feedback/  - Thumbs up/down
"""

from django.urls import path

from petfood.api.views import analyses, analysis_detail, analysis_feedback

app_name = "petfood_api"

urlpatterns = [
    path("analyses/", analyses, name="analyses"),
    path("analyses/<uuid:analysis_id>/", analysis_detail, name="analysis_detail"),
    path(
        "analyses/<uuid:analysis_id>/feedback/",
        analysis_feedback,
        name="analysis_feedback",
    ),
]
