"""
Room membership and fan-out over the Channels channel layer.

A room is an ephemeral fan-out group:
    - chat.conversation.<id>: every connection viewing a conversation
    - chat.user.<id>: every connection of one user (private notifications)

RoomRegistry is the only place that talks to the channel layer, so the
consumer, the chat service and Celery tasks share one naming scheme. The
backing is whatever CHANNEL_LAYERS configures:
    - channels.layers.InMemoryChannelLayer for a single process (and tests)
    - channels_redis.core.RedisChannelLayer when several gateway instances
      must see each other's broadcasts

Backpressure:
    The Redis layer bounds each channel's queue with the "capacity"
    option. A group send to a full channel is dropped for that channel
    only, so one slow consumer never blocks the broadcaster.

Usage:
    from chat.rooms import rooms

    await rooms.join(rooms.conversation_room(conversation.id), self.channel_name)
    rooms.broadcast_sync(rooms.user_room(user.id), {"type": "chat.notification", ...})
"""

from __future__ import annotations

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from chat.constants import ROOM_CONFIG

logger = logging.getLogger(__name__)


class RoomRegistry:
    """
    Join/leave/broadcast interface for realtime rooms.

    The channel layer is looked up on every call so that settings
    overrides (tests, management commands) take effect without
    rebuilding the registry.
    """

    def __init__(self, layer_alias: str = "default"):
        self.layer_alias = layer_alias

    @property
    def layer(self):
        return get_channel_layer(self.layer_alias)

    @staticmethod
    def conversation_room(conversation_id) -> str:
        """Room name for a conversation."""
        return f"{ROOM_CONFIG.CONVERSATION_PREFIX}.{conversation_id}"

    @staticmethod
    def user_room(user_id) -> str:
        """Private room name for a user."""
        return f"{ROOM_CONFIG.USER_PREFIX}.{user_id}"

    async def join(self, room: str, channel_name: str) -> None:
        """Add a connection to a room. Joining twice is a no-op."""
        await self.layer.group_add(room, channel_name)

    async def leave(self, room: str, channel_name: str) -> None:
        """Remove a connection from a room. Leaving a room not joined is a no-op."""
        await self.layer.group_discard(room, channel_name)

    async def broadcast(self, room: str, event: dict) -> None:
        """
        Deliver an event to every connection in a room.

        Args:
            room: Room name
            event: Channel layer message; "type" selects the consumer handler
        """
        await self.layer.group_send(room, event)

    def broadcast_sync(self, room: str, event: dict) -> None:
        """Synchronous broadcast for services and Celery tasks."""
        logger.debug(f"Broadcasting {event.get('type')} to {room}")
        async_to_sync(self.broadcast)(room, event)


rooms = RoomRegistry()
