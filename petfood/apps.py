"""
PetFood application configuration.
"""

from django.apps import AppConfig


class PetfoodConfig(AppConfig):
    """Configuration for the petfood Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "petfood"
    verbose_name = "PetFood VerifAI"
