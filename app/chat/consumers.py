"""
WebSocket consumer for the chat application.

One connection serves every conversation of its user: clients join and
leave conversation rooms with events instead of opening a socket per
conversation.

Consumers:
    ChatConsumer: Handles WebSocket connections at ws/chat/

Authentication:
    JWTAuthMiddleware verifies the handshake token and attaches the user
    to self.scope["user"]. Unauthenticated handshakes are closed with
    4001 before accept.

Rooms:
    chat.user.<id>: joined automatically on connect (notifications)
    chat.conversation.<id>: joined with join-room

Message Types (from client):
    - join-room {conversation_id}
    - leave-room {conversation_id}
    - send-message {conversation_id, body, kind?}
    - typing-start / typing-stop {conversation_id}

Message Types (to client):
    - room-joined / room-left {conversation_id}
    - message-created {message}
    - user-typing / user-stopped-typing {conversation_id, user_id}
    - notification {event, data}
    - error {code, description}
"""

from __future__ import annotations

import logging
from enum import Enum

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from chat.constants import CLOSE_CODES, EVENTS
from chat.middleware import JWT_SUBPROTOCOL
from chat.rooms import rooms
from chat.serializers import (
    InboundEventSerializer,
    MessageSerializer,
    RoomEventSerializer,
    SendMessageEventSerializer,
)
from chat.services import ChatService, ConversationService

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    CLOSED = "closed"


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat.

    Handles:
        - Handshake authentication
        - Joining/leaving conversation rooms
        - Sending messages through ChatService
        - Typing indicators
        - Private notifications

    Malformed or rejected events are answered with an error event to this
    connection only; the connection stays open.

    Attributes:
        state: Connection lifecycle state
        user: Authenticated user (after connect)
        joined: Conversation ids whose rooms this connection has joined
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.state = ConnectionState.CONNECTING
        self.user = None
        self.joined: set[int] = set()
        self.handlers = {
            EVENTS.JOIN_ROOM: self.handle_join_room,
            EVENTS.LEAVE_ROOM: self.handle_leave_room,
            EVENTS.SEND_MESSAGE: self.handle_send_message,
            EVENTS.TYPING_START: self.handle_typing,
            EVENTS.TYPING_STOP: self.handle_typing,
        }

    async def connect(self):
        """
        Handle WebSocket connection.

        Rejects the handshake when no user was authenticated. Otherwise
        joins the user's private room and accepts, echoing the "jwt"
        subprotocol when the client offered it.
        """
        user = self.scope.get("user")

        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated WebSocket connection")
            self.state = ConnectionState.CLOSED
            await self.close(code=CLOSE_CODES.UNAUTHENTICATED)
            return

        self.user = user
        await rooms.join(rooms.user_room(user.pk), self.channel_name)

        subprotocol = None
        if JWT_SUBPROTOCOL in self.scope.get("subprotocols", []):
            subprotocol = JWT_SUBPROTOCOL
        await self.accept(subprotocol=subprotocol)

        self.state = ConnectionState.AUTHENTICATED
        logger.info(f"User {user.pk} connected")

    async def disconnect(self, close_code):
        """Drop every room membership of this connection."""
        if self.state == ConnectionState.AUTHENTICATED:
            for conversation_id in self.joined:
                await rooms.leave(
                    rooms.conversation_room(conversation_id), self.channel_name
                )
            await rooms.leave(rooms.user_room(self.user.pk), self.channel_name)
            logger.info(f"User {self.user.pk} disconnected ({close_code})")

        self.joined.clear()
        self.state = ConnectionState.CLOSED

    async def receive(self, text_data=None, bytes_data=None, **kwargs):
        """Decode JSON frames, reporting undecodable ones instead of closing."""
        if text_data is None:
            await self.send_error("MALFORMED_PAYLOAD", "Expected a JSON text frame")
            return

        try:
            content = await self.decode_json(text_data)
        except ValueError:
            await self.send_error("MALFORMED_PAYLOAD", "Payload is not valid JSON")
            return

        await self.receive_json(content, **kwargs)

    async def receive_json(self, content, **kwargs):
        """
        Dispatch an inbound event.

        Expected message format:
            {"type": "join-room", "conversation_id": 1}
            {"type": "send-message", "conversation_id": 1, "body": "Hi"}
        """
        if not isinstance(content, dict):
            await self.send_error("MALFORMED_PAYLOAD", "Payload must be a JSON object")
            return

        envelope = InboundEventSerializer(data=content)
        if not envelope.is_valid():
            await self.send_error(
                "UNKNOWN_EVENT",
                f"Unknown event type: {content.get('type')!r}",
            )
            return

        event_type = envelope.validated_data["type"]
        await self.handlers[event_type](event_type, content)

    # =========================================================================
    # Inbound event handlers
    # =========================================================================

    async def handle_join_room(self, event_type, content):
        data = await self.validate_event(RoomEventSerializer, content)
        if data is None:
            return
        conversation_id = data["conversation_id"]

        result = await database_sync_to_async(ConversationService.get_for_participant)(
            conversation_id, self.user
        )
        if not result.success:
            await self.send_error(result.error_code, result.error)
            return

        await rooms.join(rooms.conversation_room(conversation_id), self.channel_name)
        self.joined.add(conversation_id)
        await self.send_json(
            {"type": EVENTS.ROOM_JOINED, "conversation_id": conversation_id}
        )

    async def handle_leave_room(self, event_type, content):
        data = await self.validate_event(RoomEventSerializer, content)
        if data is None:
            return
        conversation_id = data["conversation_id"]

        if conversation_id in self.joined:
            await rooms.leave(
                rooms.conversation_room(conversation_id), self.channel_name
            )
            self.joined.discard(conversation_id)
        await self.send_json(
            {"type": EVENTS.ROOM_LEFT, "conversation_id": conversation_id}
        )

    async def handle_send_message(self, event_type, content):
        data = await self.validate_event(SendMessageEventSerializer, content)
        if data is None:
            return
        conversation_id = data["conversation_id"]

        result, payload = await self._send_message(
            conversation_id, data["body"], data["kind"]
        )
        if not result.success:
            await self.send_error(
                result.error_code, result.error, retryable=result.retryable
            )
            return

        # Room members get the broadcast; a sender outside the room gets it here
        if conversation_id not in self.joined:
            await self.send_json({"type": EVENTS.MESSAGE_CREATED, "message": payload})

    async def handle_typing(self, event_type, content):
        data = await self.validate_event(RoomEventSerializer, content)
        if data is None:
            return
        conversation_id = data["conversation_id"]

        if conversation_id not in self.joined:
            await self.send_error(
                "NOT_IN_ROOM",
                f"Join conversation {conversation_id} before sending typing events",
            )
            return

        outbound = (
            EVENTS.USER_TYPING
            if event_type == EVENTS.TYPING_START
            else EVENTS.USER_STOPPED_TYPING
        )
        await rooms.broadcast(
            rooms.conversation_room(conversation_id),
            {
                "type": "chat.typing",
                "event": outbound,
                "conversation_id": conversation_id,
                "user_id": self.user.pk,
            },
        )

    # =========================================================================
    # Channel layer handlers
    # =========================================================================

    async def chat_message_created(self, event):
        """Relay a stored message to this client."""
        await self.send_json(
            {"type": EVENTS.MESSAGE_CREATED, "message": event["message"]}
        )

    async def chat_typing(self, event):
        """Relay a typing indicator, except to the typing user's own connections."""
        if event["user_id"] == self.user.pk:
            return

        await self.send_json(
            {
                "type": event["event"],
                "conversation_id": event["conversation_id"],
                "user_id": event["user_id"],
            }
        )

    async def chat_notification(self, event):
        """Relay a private notification."""
        await self.send_json(
            {
                "type": EVENTS.NOTIFICATION,
                "event": event["event"],
                "data": event.get("data", {}),
            }
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    async def send_error(self, code, description, retryable=False, errors=None):
        payload = {"type": EVENTS.ERROR, "code": code, "description": description}
        if retryable:
            payload["retryable"] = True
        if errors:
            payload["errors"] = errors
        await self.send_json(payload)

    async def validate_event(self, serializer_class, content):
        """Validated data, or None after reporting INVALID_PAYLOAD."""
        serializer = serializer_class(data=content)
        if serializer.is_valid():
            return serializer.validated_data

        await self.send_error(
            "INVALID_PAYLOAD",
            f"Invalid {content.get('type')} payload",
            errors=serializer.errors,
        )
        return None

    @database_sync_to_async
    def _send_message(self, conversation_id, body, kind):
        """Store and broadcast via ChatService; returns (result, serialized message)."""
        result = ChatService.send(conversation_id, self.user, body, kind)
        if not result.success:
            return result, None
        return result, dict(MessageSerializer(result.data).data)
