"""
Serializers for chat API and WebSocket events.

This module provides serializers for the chat system:
- Conversation serializers (summary, create)
- Message serializers (read, create, history query)
- WebSocket inbound event schemas

Serializer Hierarchy:
    ConversationSummarySerializer: Conversation list/detail row with peer and unread count
    ConversationCreateSerializer: Start a conversation with a peer

    MessageSerializer: Message as returned by history and broadcast in events
    MessageCreateSerializer: Send new message over HTTP
    MessageHistoryQuerySerializer: ?cursor= and ?page_size= of the history endpoint

    InboundEventSerializer: {"type": ...} envelope of every client event
    RoomEventSerializer: join-room, leave-room, typing-start, typing-stop
    SendMessageEventSerializer: send-message

Design Decisions:
    - Read and write serializers are separate for clarity
    - Business rules (empty body, length, kind, participation) live in the
      services so HTTP and WebSocket callers get the same error codes.
      Serializers only check shape.
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSummarySerializer
from chat.constants import EVENTS, MESSAGE_CONFIG
from chat.models import Conversation, Message, MessageKind


# =============================================================================
# Message Serializers
# =============================================================================


class MessageSerializer(serializers.ModelSerializer):
    """
    Message as seen by both participants.

    The same representation is used for history pages and for the
    message-created event, so clients handle one shape.
    """

    conversation_id = serializers.IntegerField(read_only=True)
    sender = UserSummarySerializer(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "sender",
            "kind",
            "body",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class MessageCreateSerializer(serializers.Serializer):
    """
    Serializer for sending a message over HTTP.

    body may be blank here; the message service rejects it with EMPTY_BODY.
    """

    body = serializers.CharField(
        allow_blank=True,
        trim_whitespace=False,
        help_text="Message text, or attachment reference for image/file messages",
    )
    kind = serializers.CharField(
        default=MessageKind.TEXT,
        help_text="One of: text, image, file",
    )


class MessageHistoryQuerySerializer(serializers.Serializer):
    """Query parameters of the message history endpoint."""

    cursor = serializers.CharField(
        required=False,
        allow_blank=True,
        help_text="next_cursor from the previous page",
    )
    page_size = serializers.IntegerField(
        required=False,
        min_value=1,
        max_value=MESSAGE_CONFIG.HISTORY_MAX_PAGE_SIZE,
    )


# =============================================================================
# Conversation Serializers
# =============================================================================


class ConversationSummarySerializer(serializers.ModelSerializer):
    """
    Conversation as shown in a user's conversation list.

    Requires the requesting user in context (either "request" or "user")
    to resolve the other participant.
    """

    other_participant = serializers.SerializerMethodField()
    unread_count = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            "id",
            "other_participant",
            "last_message_preview",
            "last_message_at",
            "unread_count",
            "is_active",
            "created_at",
        ]
        read_only_fields = fields

    def _get_user(self):
        if "user" in self.context:
            return self.context["user"]
        return self.context["request"].user

    def get_other_participant(self, obj: Conversation) -> dict:
        return UserSummarySerializer(obj.other_participant(self._get_user())).data

    def get_unread_count(self, obj: Conversation) -> int:
        """Use the list annotation when present, else count."""
        if hasattr(obj, "unread_count"):
            return obj.unread_count

        from chat.services import MessageService

        return MessageService.unread_count(obj, self._get_user())


class ConversationCreateSerializer(serializers.Serializer):
    """Serializer for starting (or resuming) a conversation with a peer."""

    peer_id = serializers.IntegerField(
        min_value=1,
        help_text="User id of the other participant",
    )


# =============================================================================
# WebSocket Event Schemas
# =============================================================================


class InboundEventSerializer(serializers.Serializer):
    """Envelope of every client event: only the type is checked here."""

    type = serializers.ChoiceField(choices=EVENTS.INBOUND)


class RoomEventSerializer(serializers.Serializer):
    """join-room, leave-room, typing-start and typing-stop."""

    conversation_id = serializers.IntegerField(min_value=1)


class SendMessageEventSerializer(RoomEventSerializer):
    """send-message."""

    body = serializers.CharField(allow_blank=True, trim_whitespace=False)
    kind = serializers.CharField(default=MessageKind.TEXT)
