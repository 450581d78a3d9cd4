"""
Django base settings for the PetFood VerifAI analysis service.

This module contains settings common to all environments.
For more information on this file, see
https://docs.djangoproject.com/en/4.2/topics/settings/
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# Quick-start development settings - unsuitable for production
# See https://docs.djangoproject.com/en/4.2/howto/deployment/checklist/

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv(
    "SECRET_KEY",
    "django-insecure-petfood-dev-key-change-in-production"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DEBUG", "True") == "True"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")


# Application definition

INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "petfood",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"


# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
# Configured in environment-specific settings (development.py, production.py, test.py)

DATABASES = {
    # Override in environment-specific settings
}


# Password validation
# https://docs.djangoproject.com/en/4.2/ref/settings/#auth-password-validators

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]


# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/4.2/howto/static-files/

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
# https://docs.djangoproject.com/en/4.2/ref/settings/#default-auto-field

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Django REST Framework Configuration
# https://www.django-rest-framework.org/

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "petfood.api.exceptions.petfood_exception_handler",
}


# DRF Spectacular (OpenAPI/Swagger) Configuration
# https://drf-spectacular.readthedocs.io/

SPECTACULAR_SETTINGS = {
    "TITLE": "PetFood VerifAI API",
    "DESCRIPTION": "AI-assisted pet food ingredient analysis with per-user history",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}


# Logging Configuration
# https://docs.djangoproject.com/en/4.2/topics/logging/

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
        "petfood": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
    },
}


# Sentry Configuration
# https://docs.sentry.io/platforms/python/guides/django/

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2"))

if SENTRY_DSN:
    import sentry_sdk

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        # Pet context and ingredient lists are not personal data, user ids are
        send_default_pii=False,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        environment=SENTRY_ENVIRONMENT,
    )


# Language model provider
# Supported providers: anthropic (alias: claude), openai, static

PETFOOD_LLM_PROVIDER = os.getenv("PETFOOD_LLM_PROVIDER", "anthropic")
PETFOOD_LLM_API_KEY = os.getenv("PETFOOD_LLM_API_KEY", "")
# Empty means the provider default model
PETFOOD_LLM_MODEL = os.getenv("PETFOOD_LLM_MODEL", "")
PETFOOD_LLM_API_VERSION = os.getenv("PETFOOD_LLM_API_VERSION", "2023-06-01")
# Override the provider endpoint, e.g. for a proxy or compatible API
PETFOOD_LLM_BASE_URL = os.getenv("PETFOOD_LLM_BASE_URL", "")
PETFOOD_LLM_TIMEOUT = float(os.getenv("PETFOOD_LLM_TIMEOUT", "60"))
PETFOOD_LLM_MAX_TOKENS = int(os.getenv("PETFOOD_LLM_MAX_TOKENS", "2000"))
PETFOOD_LLM_TEMPERATURE = float(os.getenv("PETFOOD_LLM_TEMPERATURE", "0.3"))


# Ingredient scraping
# Supported backends: httpx, static

PETFOOD_SCRAPER_BACKEND = os.getenv("PETFOOD_SCRAPER_BACKEND", "httpx")

# Ceiling for a single product page request (seconds)
PETFOOD_SCRAPER_TIMEOUT = float(os.getenv("PETFOOD_SCRAPER_TIMEOUT", "30"))

# Attempts per product page, transient failures only
PETFOOD_SCRAPER_MAX_RETRIES = int(os.getenv("PETFOOD_SCRAPER_MAX_RETRIES", "2"))


# History queries

PETFOOD_HISTORY_DEFAULT_PAGE_SIZE = int(os.getenv("PETFOOD_HISTORY_DEFAULT_PAGE_SIZE", "10"))
PETFOOD_HISTORY_MAX_PAGE_SIZE = int(os.getenv("PETFOOD_HISTORY_MAX_PAGE_SIZE", "100"))

# Create-analysis requests per user (DRF throttle rate format)
PETFOOD_ANALYSIS_RATE = os.getenv("PETFOOD_ANALYSIS_RATE", "30/hour")
