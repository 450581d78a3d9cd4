"""
Exceptions raised by the analysis services.

The API layer maps each family to a response:
- InvalidRequestError: 400, messages shown verbatim
- AnalysisNotFoundError: 404
- FeedbackConflictError: 409
- ExternalDependencyError: 503, retryable, details kept in logs
"""

from typing import Dict, List, Optional


class PetFoodError(Exception):
    """Base error for PetFood services."""

    pass


class InvalidRequestError(PetFoodError):
    """
    A submission or query failed validation.

    Raised before any external call is made.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class ExternalDependencyError(PetFoodError):
    """
    A scraping or language model call failed.

    The whole operation is aborted without writes and may be retried.
    """

    retryable = True
    dependency = "external"

    def __init__(self, message: str, dependency: Optional[str] = None):
        super().__init__(message)
        if dependency:
            self.dependency = dependency


class ScrapingError(ExternalDependencyError):
    """Product page could not be fetched or parsed."""

    dependency = "scraper"


class ModelClientError(ExternalDependencyError):
    """Language model provider call failed."""

    dependency = "model"


class ModelResponseError(ModelClientError):
    """Provider answered, but not with the required analysis shape."""

    pass


class AnalysisNotFoundError(PetFoodError):
    """Analysis does not exist or belongs to another user."""

    pass


class FeedbackConflictError(PetFoodError):
    """The user already voted on this analysis."""

    pass
