"""
Tests for authentication app.

This package contains test modules for:
- test_models.py: User model tests
- test_managers.py: UserManager tests
- test_identity.py: IdentityVerifier tests
- test_views.py: Token and current-user endpoint tests

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_identity.py
"""
