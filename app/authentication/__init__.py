"""
Authentication application.

This app is the user directory for the chat backend and the identity
verifier used by both HTTP routes and the WebSocket gateway.

Key components:
    - User model: Email-based user with a public display name
    - IdentityVerifier: Resolves a JWT access token to an active user

Usage:
    from authentication.models import User
    from authentication.identity import IdentityVerifier
"""
