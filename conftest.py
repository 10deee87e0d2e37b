"""
Root pytest configuration for the Django project.

The Django project lives in app/ (added to sys.path by pytest's
pythonpath setting). Project-wide settings overrides and markers are in
app/conftest.py; app-specific fixtures are in each app's tests/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
