"""
Tests for the User model.

The User model is the user directory for chat: a peer's id, name and email
are what the other participant gets to see.
"""

import pytest
from django.db import IntegrityError

from authentication.models import User
from authentication.tests.factories import UserFactory


class TestUserModel:
    """Tests for the User model."""

    def test_email_must_be_unique(self, user):
        """
        Why it matters: Email is the login identifier; two accounts with the
        same email would make token issuance ambiguous.
        """
        with pytest.raises(IntegrityError):
            User.objects.create_user(email=user.email, password="TestPass123!")

    def test_str_is_email(self, user):
        assert str(user) == "alice@example.com"

    def test_display_name_uses_name(self, user):
        assert user.display_name == "Alice Candidate"
        assert user.get_full_name() == "Alice Candidate"

    def test_display_name_falls_back_to_email(self, db):
        user = UserFactory(email="anon@example.com", name="")

        assert user.display_name == "anon@example.com"

    def test_short_name(self, db):
        assert UserFactory(name="Hana Recruiter").get_short_name() == "Hana"
        assert UserFactory(email="bob@corp.example", name="").get_short_name() == "bob"
