"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message operations (content limits, previews, history paging, send retries)
- Realtime rooms and WebSocket event names

Import example:
    from chat.constants import EVENTS, MESSAGE_CONFIG, ROOM_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message operations."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters

    # Conversation list preview
    PREVIEW_LENGTH: Final[int] = 100  # Characters before truncation
    PREVIEW_ELLIPSIS: Final[str] = "…"

    # History paging
    HISTORY_DEFAULT_PAGE_SIZE: Final[int] = 50
    HISTORY_MAX_PAGE_SIZE: Final[int] = 100

    # Transient storage failures on send
    SEND_MAX_ATTEMPTS: Final[int] = 3
    SEND_RETRY_BACKOFF_SECONDS: Final[float] = 0.05  # Multiplied by attempt number


# =============================================================================
# Room Configuration
# =============================================================================


class ROOM_CONFIG:
    """
    Channel layer group naming.

    Group names must be ASCII alphanumerics, hyphens, underscores or
    periods, and shorter than 100 characters.
    """

    CONVERSATION_PREFIX: Final[str] = "chat.conversation"
    USER_PREFIX: Final[str] = "chat.user"


# =============================================================================
# WebSocket Events
# =============================================================================


class EVENTS:
    """Event type names on the WebSocket wire."""

    # Client -> server
    JOIN_ROOM: Final[str] = "join-room"
    LEAVE_ROOM: Final[str] = "leave-room"
    SEND_MESSAGE: Final[str] = "send-message"
    TYPING_START: Final[str] = "typing-start"
    TYPING_STOP: Final[str] = "typing-stop"

    INBOUND: Final[tuple] = (
        JOIN_ROOM,
        LEAVE_ROOM,
        SEND_MESSAGE,
        TYPING_START,
        TYPING_STOP,
    )

    # Server -> client
    MESSAGE_CREATED: Final[str] = "message-created"
    USER_TYPING: Final[str] = "user-typing"
    USER_STOPPED_TYPING: Final[str] = "user-stopped-typing"
    ROOM_JOINED: Final[str] = "room-joined"
    ROOM_LEFT: Final[str] = "room-left"
    NOTIFICATION: Final[str] = "notification"
    ERROR: Final[str] = "error"


# =============================================================================
# WebSocket Close Codes
# =============================================================================


class CLOSE_CODES:
    """Application close codes (4000-4999 range)."""

    UNAUTHENTICATED: Final[int] = 4001
