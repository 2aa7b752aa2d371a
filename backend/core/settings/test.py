# flake8: noqa
"""
Test settings for the budgeting service.

Uses an in-memory SQLite database and a fast password hasher so the
pytest-django suite runs without external services.
"""

from .base import *

ENVIRONMENT = "test"

DEBUG = False
SECRET_KEY = "django-insecure-test-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

# Keep test output quiet unless something goes wrong
LOGGING["handlers"]["console"]["level"] = "WARNING"
LOGGING["loggers"]["budgeting"]["level"] = "DEBUG"
