"""
API throttling classes.
"""

from django.conf import settings
from rest_framework.throttling import UserRateThrottle


class AnalysisCreateThrottle(UserRateThrottle):
    """
    Throttle for create-analysis, which scrapes and calls the model.

    Rate: settings.PETFOOD_ANALYSIS_RATE per user (default 30/hour).
    Applied to: POST /api/v1/analyses/ only; listing is not throttled.
    """

    scope = "analysis_create"

    def get_rate(self):
        return getattr(settings, "PETFOOD_ANALYSIS_RATE", "30/hour")

    def allow_request(self, request, view):
        if request.method != "POST":
            return True
        return super().allow_request(request, view)
