"""
Chat system service layer.

This module provides the business logic for two-party chat, encapsulating
all operations on conversations and messages.

Services:
    ConversationService: Conversation registry (get-or-create, activation, lookups)
    MessageService: Message store (append, history, read state)
    ChatService: Entry point for the HTTP and WebSocket layers

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Broadcasts happen only after the message is durably stored

Usage:
    from chat.services import ChatService

    result = ChatService.get_or_create_conversation(alice, bob.id)
    if result.success:
        conversation = result.data

    result = ChatService.send(conversation.id, alice, "Hi Bob")
    if not result.success:
        print(result.error_code)
"""

from __future__ import annotations

import base64
import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model
from django.db import IntegrityError, InterfaceError, OperationalError, transaction
from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from core.services import BaseService, ServiceResult

from chat.constants import MESSAGE_CONFIG
from chat.models import Conversation, Message, MessageKind, ParticipantPair
from chat.rooms import rooms

if TYPE_CHECKING:
    from authentication.models import User

logger = logging.getLogger(__name__)


class ConversationService(BaseService):
    """
    Service for the conversation registry.

    Methods:
        get_or_create: Find or create the conversation between two users
        set_active: Soft-disable or re-enable a conversation
        list_for_user: A user's active conversations, most recent first
        get_for_participant: Load a conversation the user takes part in
    """

    @classmethod
    def get_or_create(
        cls,
        user_a: User,
        user_b: User,
    ) -> ServiceResult[Conversation]:
        """
        Find or create the conversation between two users.

        Conversations are unique per user pair regardless of argument
        order. Concurrent first contacts between the same two users
        resolve to a single row:

        Implementation:
            1. Canonicalize the pair (lower user id first)
            2. Look up an existing conversation for the pair
            3. If absent, insert inside its own savepoint
            4. On IntegrityError (a concurrent insert won), look up again
            5. Reactivate the conversation if it was deactivated

        Args:
            user_a: First participant
            user_b: Second participant

        Returns:
            ServiceResult with Conversation (existing or new)

        Error codes:
            INVALID_PARTICIPANTS: Both users are the same user
        """
        try:
            pair = ParticipantPair.of(user_a.pk, user_b.pk)
        except ValueError:
            return ServiceResult.failure(
                "Cannot start a conversation with yourself",
                error_code="INVALID_PARTICIPANTS",
            )

        conversation = cls._find_by_pair(pair)

        if conversation is None:
            try:
                with cls.atomic():
                    conversation = Conversation.objects.create(
                        user_lower_id=pair.lower,
                        user_higher_id=pair.higher,
                    )
            except IntegrityError:
                conversation = cls._find_by_pair(pair)
                if conversation is None:
                    raise
                cls.get_logger().debug(
                    f"Lost create race for users {pair.lower} and {pair.higher}, "
                    f"using conversation {conversation.id}"
                )
            else:
                cls.get_logger().info(
                    f"Created conversation {conversation.id} "
                    f"between users {pair.lower} and {pair.higher}"
                )

        if not conversation.is_active:
            cls.set_active(conversation, True)

        return ServiceResult.success(conversation)

    @classmethod
    def _find_by_pair(cls, pair: ParticipantPair) -> Conversation | None:
        return (
            Conversation.objects.select_related("user_lower", "user_higher")
            .filter(user_lower_id=pair.lower, user_higher_id=pair.higher)
            .first()
        )

    @classmethod
    def set_active(
        cls,
        conversation: Conversation,
        is_active: bool,
    ) -> ServiceResult[Conversation]:
        """
        Soft-disable or re-enable a conversation.

        Conversations are never deleted. Inactive conversations drop out of
        conversation lists but keep their history.
        """
        now = timezone.now()
        Conversation.objects.filter(pk=conversation.pk).update(
            is_active=is_active,
            updated_at=now,
        )
        conversation.is_active = is_active
        conversation.updated_at = now

        cls.get_logger().info(
            f"Conversation {conversation.id} "
            f"{'activated' if is_active else 'deactivated'}"
        )
        return ServiceResult.success(conversation)

    @classmethod
    def list_for_user(cls, user: User, include_inactive: bool = False) -> QuerySet:
        """
        Conversations where user is either participant.

        Ordered by last_message_at descending, ties broken by id descending.
        Each row is annotated with unread_count: messages from the other
        participant that user has not read yet.
        """
        unread = Q(messages__is_read=False) & ~Q(messages__sender_id=user.pk)

        queryset = Conversation.objects.filter(
            Q(user_lower_id=user.pk) | Q(user_higher_id=user.pk)
        )
        if not include_inactive:
            queryset = queryset.filter(is_active=True)

        return (
            queryset.select_related("user_lower", "user_higher")
            .annotate(unread_count=Count("messages", filter=unread))
            .order_by("-last_message_at", "-id")
        )

    @classmethod
    def get_for_participant(
        cls,
        conversation_id: int,
        user: User,
    ) -> ServiceResult[Conversation]:
        """
        Load a conversation that user takes part in.

        Unknown conversations and conversations of other users are
        indistinguishable to the caller.

        Error codes:
            NOT_FOUND: Conversation missing or user is not a participant
        """
        conversation = (
            Conversation.objects.select_related("user_lower", "user_higher")
            .filter(pk=conversation_id)
            .first()
        )
        if conversation is None or not conversation.has_participant(user):
            return ServiceResult.failure(
                "Conversation not found",
                error_code="NOT_FOUND",
            )
        return ServiceResult.success(conversation)


@dataclass
class MessageCursor:
    """
    Position in a conversation's history for keyset pagination.

    Encodes the (created_at, id) of the last message of a page. Two
    messages may share a timestamp, so the id breaks ties.
    """

    created_at: datetime
    message_id: int

    def encode(self) -> str:
        """Encode cursor as URL-safe base64 JSON string."""
        data = {"created_at": self.created_at.isoformat(), "id": self.message_id}
        return base64.urlsafe_b64encode(json.dumps(data).encode()).decode()

    @classmethod
    def decode(cls, encoded: str) -> MessageCursor:
        """
        Decode cursor from URL-safe base64 JSON string.

        Raises:
            ValueError: If the cursor is malformed
        """
        try:
            data = json.loads(base64.urlsafe_b64decode(encoded.encode()).decode())
            created_at = datetime.fromisoformat(data["created_at"])
            message_id = int(data["id"])
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ValueError("Invalid cursor") from e

        if timezone.is_naive(created_at):
            raise ValueError("Invalid cursor")
        return cls(created_at=created_at, message_id=message_id)


@dataclass
class MessagePage:
    """One page of conversation history in ascending order."""

    messages: list[Message]
    next_cursor: str | None


class MessageService(BaseService):
    """
    Service for the message store.

    Methods:
        append: Store a message and update the conversation preview
        history: Cursor-paginated messages of a conversation
        mark_read: Mark the other participant's messages as read
        unread_count: Messages a user has not read in a conversation
        build_preview: Preview text for the conversation list
    """

    @classmethod
    def append(
        cls,
        conversation_id: int,
        sender: User,
        body: str,
        kind: str = MessageKind.TEXT,
    ) -> ServiceResult[Message]:
        """
        Store a new message in a conversation.

        The message insert and the preview update run in one transaction,
        message first. The preview update is conditional on
        last_message_at <= message.created_at so a conversation's activity
        timestamp never moves backwards.

        Args:
            conversation_id: Target conversation
            sender: User sending the message
            body: Message text, or attachment reference for image/file
            kind: text, image or file

        Returns:
            ServiceResult with new Message

        Error codes:
            INVALID_KIND: Unknown message kind
            NOT_FOUND: Conversation does not exist
            INVALID_SENDER: Sender is not a participant
            EMPTY_BODY: Body is blank after trimming
            BODY_TOO_LONG: Body exceeds MAX_CONTENT_LENGTH
        """
        if kind not in MessageKind.values:
            return ServiceResult.failure(
                f"Unknown message kind: {kind}",
                error_code="INVALID_KIND",
            )

        conversation = Conversation.objects.filter(pk=conversation_id).first()
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code="NOT_FOUND",
            )

        if not conversation.has_participant(sender):
            return ServiceResult.failure(
                "You are not a participant in this conversation",
                error_code="INVALID_SENDER",
            )

        body = body.strip() if body else ""
        if not body:
            if kind == MessageKind.TEXT:
                error = "Message content cannot be empty"
            else:
                error = f"A {kind} message needs an attachment reference"
            return ServiceResult.failure(error, error_code="EMPTY_BODY")

        if len(body) > MESSAGE_CONFIG.MAX_CONTENT_LENGTH:
            return ServiceResult.failure(
                f"Message exceeds {MESSAGE_CONFIG.MAX_CONTENT_LENGTH} characters",
                error_code="BODY_TOO_LONG",
            )

        with cls.atomic():
            message = Message.objects.create(
                conversation=conversation,
                sender=sender,
                kind=kind,
                body=body,
            )

            Conversation.objects.filter(
                pk=conversation.pk,
                last_message_at__lte=message.created_at,
            ).update(
                last_message_preview=cls.build_preview(kind, body),
                last_message_at=message.created_at,
                updated_at=message.created_at,
            )

        cls.get_logger().debug(
            f"User {sender.pk} sent message {message.id} "
            f"to conversation {conversation.id}"
        )

        return ServiceResult.success(message)

    @staticmethod
    def build_preview(kind: str, body: str) -> str:
        """
        Preview text shown in conversation lists.

        Text is truncated to PREVIEW_LENGTH characters with an ellipsis.
        Attachments preview as their kind, e.g. "[image]".
        """
        if kind != MessageKind.TEXT:
            return f"[{kind}]"
        if len(body) <= MESSAGE_CONFIG.PREVIEW_LENGTH:
            return body
        return body[: MESSAGE_CONFIG.PREVIEW_LENGTH] + MESSAGE_CONFIG.PREVIEW_ELLIPSIS

    @classmethod
    def history(
        cls,
        conversation_id: int,
        cursor: str | None = None,
        page_size: int | None = None,
    ) -> ServiceResult[MessagePage]:
        """
        Messages of a conversation in ascending (created_at, id) order.

        Pages are resumable: pass a page's next_cursor to get the messages
        strictly after it. next_cursor is None on the final page.

        Args:
            conversation_id: Conversation to read
            cursor: Opaque cursor from a previous page
            page_size: Messages per page (default 50, max 100)

        Error codes:
            NOT_FOUND: Conversation does not exist
            INVALID_CURSOR: Cursor could not be decoded
        """
        if not Conversation.objects.filter(pk=conversation_id).exists():
            return ServiceResult.failure(
                "Conversation not found",
                error_code="NOT_FOUND",
            )

        if page_size is None:
            page_size = MESSAGE_CONFIG.HISTORY_DEFAULT_PAGE_SIZE
        page_size = max(1, min(page_size, MESSAGE_CONFIG.HISTORY_MAX_PAGE_SIZE))

        queryset = Message.objects.filter(conversation_id=conversation_id).order_by(
            "created_at", "id"
        )

        if cursor:
            try:
                position = MessageCursor.decode(cursor)
            except ValueError:
                return ServiceResult.failure(
                    "Invalid cursor",
                    error_code="INVALID_CURSOR",
                )
            queryset = queryset.filter(
                Q(created_at__gt=position.created_at)
                | Q(created_at=position.created_at, id__gt=position.message_id)
            )

        # One extra row tells us whether another page exists
        rows = list(queryset.select_related("sender")[: page_size + 1])
        messages = rows[:page_size]

        next_cursor = None
        if len(rows) > page_size:
            last = messages[-1]
            next_cursor = MessageCursor(
                created_at=last.created_at,
                message_id=last.id,
            ).encode()

        return ServiceResult.success(
            MessagePage(messages=messages, next_cursor=next_cursor)
        )

    @classmethod
    def mark_read(cls, conversation_id: int, reader: User) -> ServiceResult[int]:
        """
        Mark every message the reader received in a conversation as read.

        Runs as one conditional bulk update, so concurrent calls never flip
        a message back or set read_at twice. Calling it again returns 0.

        Returns:
            ServiceResult with the number of messages updated

        Error codes:
            NOT_FOUND: Conversation missing or reader is not a participant
        """
        result = ConversationService.get_for_participant(conversation_id, reader)
        if not result.success:
            return result

        now = timezone.now()
        updated = (
            Message.objects.filter(conversation_id=conversation_id, is_read=False)
            .exclude(sender_id=reader.pk)
            .update(is_read=True, read_at=now, updated_at=now)
        )

        if updated:
            cls.get_logger().debug(
                f"User {reader.pk} read {updated} messages "
                f"in conversation {conversation_id}"
            )
        return ServiceResult.success(updated)

    @classmethod
    def unread_count(cls, conversation: Conversation, user: User) -> int:
        """Messages from the other participant that user has not read."""
        return (
            conversation.messages.filter(is_read=False)
            .exclude(sender_id=user.pk)
            .count()
        )


class ChatService(BaseService):
    """
    Entry point for the HTTP and WebSocket layers.

    Every method enforces that the requester takes part in the
    conversation it touches.

    Methods:
        send: Store a message and broadcast it to the conversation room
        broadcast_message: Fan a stored message out to its room
        get_conversations: A user's conversation summaries
        get_or_create_conversation: Start (or resume) a chat with a peer
        list_messages: Paginated history for a participant
        mark_conversation_read: Mark received messages as read
    """

    TRANSIENT_ERRORS = (OperationalError, InterfaceError)

    @classmethod
    def send(
        cls,
        conversation_id: int,
        sender: User,
        body: str,
        kind: str = MessageKind.TEXT,
    ) -> ServiceResult[Message]:
        """
        Store a message and broadcast it to the conversation room.

        Transient storage errors are retried up to SEND_MAX_ATTEMPTS times.
        The broadcast is scheduled with transaction.on_commit, so room
        members only ever see messages that a history read can return.
        The sender is not excluded: their other connections receive it too.

        Error codes:
            Those of MessageService.append, plus
            TRANSIENT: Storage kept failing (retryable)
        """
        attempts = MESSAGE_CONFIG.SEND_MAX_ATTEMPTS

        for attempt in range(1, attempts + 1):
            try:
                result = MessageService.append(conversation_id, sender, body, kind)
            except cls.TRANSIENT_ERRORS as e:
                cls.get_logger().warning(
                    f"Transient error storing message for conversation "
                    f"{conversation_id} (attempt {attempt}/{attempts}): {e}"
                )
                if attempt < attempts:
                    time.sleep(MESSAGE_CONFIG.SEND_RETRY_BACKOFF_SECONDS * attempt)
                continue

            if result.success:
                message = result.data
                transaction.on_commit(
                    lambda: cls.broadcast_message(message),
                    robust=True,
                )
            return result

        cls.get_logger().error(
            f"Giving up storing message for conversation {conversation_id} "
            f"after {attempts} attempts"
        )
        return ServiceResult.failure(
            "Message could not be stored, please retry",
            error_code="TRANSIENT",
            retryable=True,
        )

    @classmethod
    def broadcast_message(cls, message: Message) -> None:
        """Send a message-created event to every connection in the room."""
        from chat.serializers import MessageSerializer

        rooms.broadcast_sync(
            rooms.conversation_room(message.conversation_id),
            {
                "type": "chat.message_created",
                "message": dict(MessageSerializer(message).data),
            },
        )

    @classmethod
    def get_conversations(cls, user: User) -> list[Conversation]:
        """
        A user's active conversations, most recent activity first.

        Each conversation carries unread_count; use
        conversation.other_participant(user) for the peer's public fields.
        """
        return list(ConversationService.list_for_user(user))

    @classmethod
    def get_conversation(
        cls,
        conversation_id: int,
        requester: User,
    ) -> ServiceResult[Conversation]:
        """
        A single conversation summary, annotated with unread_count.

        Error codes:
            NOT_FOUND: Conversation missing or requester is not a participant
        """
        conversation = (
            ConversationService.list_for_user(requester, include_inactive=True)
            .filter(pk=conversation_id)
            .first()
        )
        if conversation is None:
            return ServiceResult.failure(
                "Conversation not found",
                error_code="NOT_FOUND",
            )
        return ServiceResult.success(conversation)

    @classmethod
    def get_or_create_conversation(
        cls,
        requester: User,
        peer_id: int,
    ) -> ServiceResult[Conversation]:
        """
        Start or resume the conversation between requester and a peer.

        Error codes:
            NOT_FOUND: Peer does not exist or is inactive
            INVALID_PARTICIPANTS: Peer is the requester
        """
        peer = get_user_model().objects.filter(pk=peer_id, is_active=True).first()
        if peer is None:
            return ServiceResult.failure(
                "User not found",
                error_code="NOT_FOUND",
            )
        return ConversationService.get_or_create(requester, peer)

    @classmethod
    def list_messages(
        cls,
        conversation_id: int,
        requester: User,
        cursor: str | None = None,
        page_size: int | None = None,
    ) -> ServiceResult[MessagePage]:
        """
        Paginated history of a conversation the requester takes part in.

        Error codes:
            NOT_FOUND: Conversation missing or requester is not a participant
            INVALID_CURSOR: Cursor could not be decoded
        """
        result = ConversationService.get_for_participant(conversation_id, requester)
        if not result.success:
            return result
        return MessageService.history(conversation_id, cursor, page_size)

    @classmethod
    def mark_conversation_read(
        cls,
        conversation_id: int,
        requester: User,
    ) -> ServiceResult[int]:
        """Mark the messages requester received in a conversation as read."""
        return MessageService.mark_read(conversation_id, requester)
