"""
Django settings for Radiant tests.

Collaborators are faked in the tests; the REST adapters point at a
placeholder host and are driven through httpx.MockTransport.
"""

SECRET_KEY = "test-secret-key-for-radiant-tests"

DEBUG = True

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "django.contrib.sessions",
    "radiant",
]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

SESSION_ENGINE = "django.contrib.sessions.backends.signed_cookies"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

USE_TZ = True
TIME_ZONE = "America/New_York"

RADIANT = {
    "API_BASE_URL": "https://spa.test/api/",
    "API_TIMEOUT": 2.0,
}
