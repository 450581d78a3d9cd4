"""
Feedback Recorder.

One thumbs up/down per (analysis, user). Duplicates are rejected by the
database constraint, not by a read-before-write check.
"""

import logging
from typing import Any
from uuid import UUID

from django.db import IntegrityError, transaction

from petfood.exceptions import AnalysisNotFoundError, FeedbackConflictError
from petfood.models import Analysis, Feedback

logger = logging.getLogger(__name__)


class FeedbackRecorder:
    """Record a user's vote on their own analysis."""

    def record_feedback(self, analysis_id: Any, user_id: Any, is_positive: bool) -> Feedback:
        """
        Raises:
            AnalysisNotFoundError: unknown analysis or not owned by the user
            FeedbackConflictError: the user already voted on this analysis
        """
        try:
            analysis_uuid = analysis_id if isinstance(analysis_id, UUID) else UUID(str(analysis_id))
        except ValueError:
            raise AnalysisNotFoundError("Analysis not found.")

        # Owner only: another user's analysis is indistinguishable from an
        # unknown id, same as on the detail endpoint.
        if not Analysis.objects.filter(id=analysis_uuid, user_id=user_id).exists():
            raise AnalysisNotFoundError("Analysis not found.")

        try:
            with transaction.atomic():
                feedback = Feedback.objects.create(
                    analysis_id=analysis_uuid,
                    user_id=user_id,
                    is_positive=bool(is_positive),
                )
        except IntegrityError as e:
            logger.info(f"Duplicate feedback from user {user_id} on analysis {analysis_uuid}")
            raise FeedbackConflictError("Feedback already submitted for this analysis.") from e

        logger.info(
            f"Recorded {'positive' if feedback.is_positive else 'negative'} feedback "
            f"from user {user_id} on analysis {analysis_uuid}"
        )
        return feedback
