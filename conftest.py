"""
Root pytest configuration for the Django project.

Sets the environment the settings module needs before pytest-django imports
it. Django setup and app-wide hooks live in app/conftest.py; app-specific
fixtures are defined in each app's tests/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

# Tests run against SQLite unless DATABASE_URL points somewhere else
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///test_notifications.sqlite3")
os.environ.setdefault("EMAIL_BACKEND", "django.core.mail.backends.locmem.EmailBackend")
os.environ.setdefault("NOTIFICATION_FROM_EMAIL", "notifications@example.com")
os.environ.setdefault("NOTIFICATION_FROM_NAME", "Greep")
