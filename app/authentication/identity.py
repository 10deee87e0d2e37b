"""
Identity verification for bearer credentials.

IdentityVerifier turns a presented JWT access token into the identity of
an active user. The WebSocket handshake middleware (chat.middleware)
calls it directly; DRF views get the same guarantees from
rest_framework_simplejwt's JWTAuthentication, which validates the same
tokens with the same SIMPLE_JWT settings.

Usage:
    from authentication.identity import IdentityVerifier
    from core.exceptions import AuthenticationError

    try:
        identity = IdentityVerifier.verify(token)
    except AuthenticationError:
        ...  # reject
    identity.user_id, identity.display_name, identity.email
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import AccessToken

from authentication.models import User
from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedIdentity:
    """Public identity of an authenticated user."""

    user_id: int
    display_name: str
    email: str
    user: User = field(compare=False, repr=False)

    @classmethod
    def from_user(cls, user: User) -> VerifiedIdentity:
        return cls(
            user_id=user.pk,
            display_name=user.display_name,
            email=user.email,
            user=user,
        )


class IdentityVerifier:
    """
    Resolves bearer credentials to active users.

    Failure modes (all raise AuthenticationError):
        - No credential presented
        - Signature, expiry or token type check fails
        - Token carries no user claim
        - User no longer exists or has been deactivated
    """

    @classmethod
    def verify(cls, credential: str | None) -> VerifiedIdentity:
        """
        Validate a JWT access token and load its user.

        Args:
            credential: Raw encoded access token

        Returns:
            VerifiedIdentity for the token's user

        Raises:
            AuthenticationError: If the credential cannot be resolved
        """
        if not credential:
            raise AuthenticationError("No credential presented")

        try:
            token = AccessToken(credential)
        except TokenError as e:
            logger.warning(f"Rejected access token: {e}")
            raise AuthenticationError("Token is invalid or expired") from e

        user_id = token.get(api_settings.USER_ID_CLAIM)
        if user_id is None:
            raise AuthenticationError("Token contains no user identification")

        user = User.objects.filter(**{api_settings.USER_ID_FIELD: user_id}).first()
        if user is None:
            logger.warning(f"Token references unknown user {user_id}")
            raise AuthenticationError("User not found")

        if not user.is_active:
            logger.warning(f"Inactive user {user_id} presented a token")
            raise AuthenticationError("User is inactive")

        return VerifiedIdentity.from_user(user)
