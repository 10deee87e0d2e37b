"""
Base exception classes for application-wide error handling.

Exception Hierarchy:
    BaseApplicationError (base)
    └── AuthenticationError - Missing, invalid or expired credentials

Expected business failures (empty message body, unknown conversation, ...)
are reported through core.services.ServiceResult instead. Exceptions are
reserved for conditions that abort the whole operation, such as a
WebSocket handshake carrying a bad token.

Usage:
    from core.exceptions import AuthenticationError

    raise AuthenticationError("Token has expired", error_code="TOKEN_EXPIRED")

    try:
        ...
    except BaseApplicationError as e:
        logger.info(f"Rejected: {e}")  # "[TOKEN_EXPIRED] Token has expired"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class AuthenticationError(BaseApplicationError):
    """
    Raised when a presented credential cannot be resolved to an active user.

    Use for:
    - Missing token on a WebSocket handshake
    - Malformed, expired or tampered JWTs
    - Tokens that reference deleted or deactivated users

    Note:
        DRF views rely on rest_framework_simplejwt's own
        AuthenticationFailed. This error is for code paths outside DRF.
    """

    default_error_code: str = "UNAUTHENTICATED"
