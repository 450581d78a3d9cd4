"""
Test settings for the PetFood VerifAI analysis service.

Uses in-memory SQLite and offline scraper/model backends for fast test execution.
"""

from .base import *

# Test mode
DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# Test database - in-memory SQLite for speed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Test Cache - use local memory cache (throttling state)
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "unique-snowflake",
    }
}

# Test logging - minimal output
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["petfood"]["level"] = "WARNING"

# Password validators disabled for faster tests
AUTH_PASSWORD_VALIDATORS = []

# Use faster password hasher for tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Disable Sentry in tests
SENTRY_DSN = ""

# Offline collaborators, tests patch these where they need real behaviour
PETFOOD_LLM_PROVIDER = "static"
PETFOOD_LLM_API_KEY = "test-key"
PETFOOD_SCRAPER_BACKEND = "static"

# Fail fast
PETFOOD_LLM_TIMEOUT = 5
PETFOOD_SCRAPER_TIMEOUT = 5
PETFOOD_SCRAPER_MAX_RETRIES = 1

# Throttling is exercised explicitly where needed
PETFOOD_ANALYSIS_RATE = "1000/hour"
