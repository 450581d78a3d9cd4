"""
Pytest configuration and fixtures for the API test suite.
"""

import pytest


@pytest.fixture(autouse=True)
def clear_cache():
    """Throttle history lives in the cache; start every test with it empty."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Create a test API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def user(db, django_user_model):
    return django_user_model.objects.create_user(username="owner", password="secret")


@pytest.fixture
def other_user(db, django_user_model):
    return django_user_model.objects.create_user(username="someone-else", password="secret")


@pytest.fixture
def auth_client(api_client, user):
    """API client authenticated as `user`."""
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture
def url_payload():
    return {
        "is_manual": False,
        "product_url": "https://www.zooplus.com/shop/dogs/p/123",
        "product_name": "Purizon Adult",
        "species": "Dog",
        "breed": "Labrador",
        "age": 5,
    }


@pytest.fixture
def manual_payload():
    return {
        "is_manual": True,
        "product_name": "Grain Free Salmon",
        "ingredients_text": "Salmon, Sweet Potato, Peas, Taurine",
        "species": "cat",
        "breed": "Maine Coon",
        "age": 3,
        "additional_info": "Indoor cat",
    }
