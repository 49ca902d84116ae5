# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS

Used by `manage.py test` and by pytest-django (see pyproject.toml).
- In-memory SQLite
- Fast password hashing
- Throttling disabled
- Quiet engine logging
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK

DEBUG = False
TESTING = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

LOGGING["loggers"]["kafala"]["level"] = "WARNING"
