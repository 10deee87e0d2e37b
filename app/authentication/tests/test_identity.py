"""
Tests for IdentityVerifier.

Every WebSocket handshake goes through IdentityVerifier.verify(), so each
rejection path here is a connection that must never be accepted.
"""

from datetime import timedelta

import pytest
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from authentication.identity import IdentityVerifier, VerifiedIdentity
from authentication.tests.factories import UserFactory
from core.exceptions import AuthenticationError


class TestIdentityVerifier:
    """Tests for IdentityVerifier.verify()."""

    def test_valid_token_resolves_identity(self, user, access_token):
        identity = IdentityVerifier.verify(access_token)

        assert identity == VerifiedIdentity(
            user_id=user.pk,
            display_name="Alice Candidate",
            email="alice@example.com",
            user=user,
        )
        assert identity.user == user

    @pytest.mark.parametrize("credential", [None, ""])
    def test_missing_credential_is_rejected(self, db, credential):
        with pytest.raises(AuthenticationError) as exc_info:
            IdentityVerifier.verify(credential)

        assert exc_info.value.error_code == "UNAUTHENTICATED"

    def test_garbage_token_is_rejected(self, db):
        with pytest.raises(AuthenticationError):
            IdentityVerifier.verify("not-a-jwt")

    def test_expired_token_is_rejected(self, user):
        token = AccessToken.for_user(user)
        token.set_exp(lifetime=-timedelta(minutes=1))

        with pytest.raises(AuthenticationError):
            IdentityVerifier.verify(str(token))

    def test_refresh_token_is_not_an_access_token(self, user):
        """
        Why it matters: Refresh tokens live for days. Accepting them on the
        socket would bypass the short access-token lifetime.
        """
        with pytest.raises(AuthenticationError):
            IdentityVerifier.verify(str(RefreshToken.for_user(user)))

    def test_token_without_user_claim_is_rejected(self, user):
        token = AccessToken.for_user(user)
        del token["user_id"]

        with pytest.raises(AuthenticationError, match="no user identification"):
            IdentityVerifier.verify(str(token))

    def test_deleted_user_is_rejected(self, db):
        doomed = UserFactory()
        token = str(AccessToken.for_user(doomed))
        doomed.delete()

        with pytest.raises(AuthenticationError, match="not found"):
            IdentityVerifier.verify(token)

    def test_deactivated_user_is_rejected(self, deactivated_user):
        token = str(AccessToken.for_user(deactivated_user))

        with pytest.raises(AuthenticationError, match="inactive"):
            IdentityVerifier.verify(token)
