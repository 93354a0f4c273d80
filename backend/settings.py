"""
Django settings for the donation subscriptions backend
"""

import os
import dj_database_url
from pathlib import Path

# Load .env file for development
from dotenv import load_dotenv

load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-q5w!3d0n4t10n-s3cr3t-k3y-f0r-l0c4l-d3v3l0pm3nt"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.environ.get("DEBUG", "True").lower() == "true"

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    # Third Party Apps
    "corsheaders",
    "rest_framework",
    # Local Apps
    "core.donations.apps.DonationsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

# CORS Settings
CORS_ALLOWED_ORIGINS = os.environ.get(
    "CORS_ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:8888"
).split(",")
CORS_ALLOW_METHODS = [
    "OPTIONS",
    "POST",
]
CORS_ALLOW_HEADERS = [
    "accept",
    "content-type",
    "origin",
    "user-agent",
    "x-requested-with",
]

ROOT_URLCONF = "backend.urls"

WSGI_APPLICATION = "backend.wsgi.application"

# Database
# No models are defined; the database only backs Django's own machinery.


def database_config(database_url=None):
    """
    Production: DATABASE_URL (e.g. PostgreSQL), Development: SQLite
    """
    if database_url:
        return dj_database_url.parse(database_url)
    return {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",
    }


DATABASES = {"default": database_config(os.environ.get("DATABASE_URL"))}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Security Settings for Production
if not DEBUG:
    SECURE_CONTENT_TYPE_NOSNIFF = True
    SECURE_HSTS_INCLUDE_SUBDOMAINS = True
    SECURE_HSTS_SECONDS = 31536000
    SECURE_SSL_REDIRECT = True

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework Settings
# Callers are not authenticated here; an API gateway in front handles that.
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.AllowAny",),
    "DEFAULT_PARSER_CLASSES": ("rest_framework.parsers.JSONParser",),
    "DEFAULT_RENDERER_CLASSES": ("rest_framework.renderers.JSONRenderer",),
    "UNAUTHENTICATED_USER": None,
}

# Logging
DONATIONS_LOG_LEVEL = os.environ.get("DONATIONS_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "loggers": {
        "core.donations": {
            "handlers": ["console"],
            "level": DONATIONS_LOG_LEVEL,
            "propagate": False,
        },
    },
}

# ---- Payments / Stripe ----
# We support both TEST mode (development/sandbox) and LIVE mode (production).
# Which environment is active depends on STRIPE_LIVE_MODE.

# Mode toggle
#    - If STRIPE_LIVE_MODE=True → project uses LIVE Stripe environment (real payments).
#    - If STRIPE_LIVE_MODE=False → project uses TEST environment (fake payments).
STRIPE_LIVE_MODE = os.environ.get("STRIPE_LIVE_MODE", "False").lower() == "true"


# Secret keys (backend only)
#    - Used to create products, prices, customers and subscriptions.
#    - NEVER expose to frontend or commit to GitHub.
STRIPE_TEST_SECRET_KEY = os.environ.get("STRIPE_TEST_SECRET_KEY", "")  # sk_test_xxx
STRIPE_LIVE_SECRET_KEY = os.environ.get("STRIPE_LIVE_SECRET_KEY", "")  # sk_live_xxx


# Stripe API version
#    - Expanding `latest_invoice.payment_intent` on a new subscription only
#      works on API versions released before 2025-03-31.
STRIPE_API_VERSION = os.environ.get("STRIPE_API_VERSION", "2024-06-20")


# Active secret key at runtime, injected into the billing gateway per request.
STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY") or (
    STRIPE_LIVE_SECRET_KEY if STRIPE_LIVE_MODE else STRIPE_TEST_SECRET_KEY
)

# ---- Donations ----
# Product created for every donation and its billing interval.
DONATION_PRODUCT_NAME = os.environ.get("DONATION_PRODUCT_NAME", "Monthly Donation")
DONATION_DEFAULT_DESCRIPTION = os.environ.get(
    "DONATION_DEFAULT_DESCRIPTION", "Recurring donation"
)
DONATION_BILLING_INTERVAL = os.environ.get("DONATION_BILLING_INTERVAL", "month")
