"""
WebSocket authentication middleware.

Provides JWT authentication for WebSocket connections. The token is
verified once, during the handshake, by authentication.identity.IdentityVerifier.

Related files:
    - routing.py: WebSocket URL patterns
    - consumers.py: WebSocket handlers (rejects AnonymousUser with 4001)
    - config/asgi.py: ASGI configuration

Token Passing Methods (in order of precedence):
    1. Query string: ws://host/ws/chat/?token=<jwt_token>
    2. Subprotocol: Sec-WebSocket-Protocol: jwt, <jwt_token>
    3. Header: Authorization: Bearer <jwt_token> (non-browser clients)

Usage in config/asgi.py:
    from chat.middleware import JWTAuthMiddleware

    application = ProtocolTypeRouter({
        "websocket": JWTAuthMiddleware(
            URLRouter(websocket_urlpatterns)
        ),
    })
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs

from channels.db import database_sync_to_async
from channels.middleware import BaseMiddleware
from django.contrib.auth.models import AnonymousUser

from authentication.identity import IdentityVerifier, VerifiedIdentity
from core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

JWT_SUBPROTOCOL = "jwt"


def get_token_from_query(scope) -> str | None:
    """Extract token from query string."""
    query_string = scope.get("query_string", b"").decode()
    token_list = parse_qs(query_string).get("token", [])
    return token_list[0] if token_list else None


def get_token_from_subprotocol(scope) -> str | None:
    """
    Extract token from WebSocket subprotocol.

    Expects: Sec-WebSocket-Protocol: jwt, <token>
    """
    subprotocols = scope.get("subprotocols", [])
    if len(subprotocols) >= 2 and subprotocols[0] == JWT_SUBPROTOCOL:
        return subprotocols[1]
    return None


def get_token_from_header(scope) -> str | None:
    """Extract token from an Authorization: Bearer header."""
    for name, value in scope.get("headers", []):
        if name.lower() != b"authorization":
            continue
        parts = value.decode("latin1").split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


class JWTAuthMiddleware(BaseMiddleware):
    """
    JWT authentication middleware for WebSocket connections.

    Sets on the scope:
        user: The authenticated User, or AnonymousUser
        identity: VerifiedIdentity, or None
    """

    async def __call__(self, scope, receive, send):
        scope = dict(scope)
        token = (
            get_token_from_query(scope)
            or get_token_from_subprotocol(scope)
            or get_token_from_header(scope)
        )

        identity = await self._verify(token) if token else None
        scope["identity"] = identity
        scope["user"] = identity.user if identity else AnonymousUser()

        return await super().__call__(scope, receive, send)

    @database_sync_to_async
    def _verify(self, token: str) -> VerifiedIdentity | None:
        try:
            return IdentityVerifier.verify(token)
        except AuthenticationError as e:
            logger.info(f"WebSocket handshake rejected: {e}")
            return None
