"""
Chat system models.

This module defines the data models for two-party chat between users of
the job board (candidates, HR staff, company accounts):

Models:
    Conversation: The persistent thread between exactly two users
    Message: Individual message within a conversation

Design Decisions:
    - A conversation's participants are a normalized pair stored in two
      columns (user_lower < user_higher). The two-participant invariant is
      structural, and the unique constraint on the pair makes "one
      conversation per pair of users" a database guarantee.
    - Conversations are never deleted, only deactivated (is_active=False).
    - Messages are immutable except for read state, which only ever moves
      from unread to read.
    - Messages are ordered by (created_at, id) everywhere.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from core.models import BaseModel

if TYPE_CHECKING:
    from authentication.models import User


@dataclass(frozen=True)
class ParticipantPair:
    """
    Unordered pair of two distinct user ids, stored in canonical order.

    Usage:
        pair = ParticipantPair.of(bob.id, alice.id)
        pair.lower, pair.higher   # always lower id first
        alice.id in pair          # True
        pair.other(alice.id)      # bob.id
    """

    lower: int
    higher: int

    @classmethod
    def of(cls, user_a_id: int, user_b_id: int) -> ParticipantPair:
        """
        Build the canonical pair for two user ids.

        Raises:
            ValueError: If both ids are the same user
        """
        if user_a_id == user_b_id:
            raise ValueError("A conversation needs two distinct participants")
        lower, higher = sorted((user_a_id, user_b_id))
        return cls(lower=lower, higher=higher)

    def __contains__(self, user_id) -> bool:
        return user_id in (self.lower, self.higher)

    def other(self, user_id: int) -> int:
        """
        Return the participant that is not user_id.

        Raises:
            ValueError: If user_id is not part of the pair
        """
        if user_id == self.lower:
            return self.higher
        if user_id == self.higher:
            return self.lower
        raise ValueError(f"User {user_id} is not a participant")


class MessageKind(models.TextChoices):
    """
    Type of message content.

    TEXT: User-authored text, stored trimmed
    IMAGE: Reference to an uploaded image (URL or storage key)
    FILE: Reference to an uploaded file (resume, offer letter, ...)
    """

    TEXT = "text", "Text"
    IMAGE = "image", "Image"
    FILE = "file", "File"


class Conversation(BaseModel):
    """
    A conversation between exactly two users.

    Created lazily on first contact between two users via
    ConversationService.get_or_create(), which canonicalizes the pair so
    that (alice, bob) and (bob, alice) land on the same row.

    Fields:
        user_lower: Participant with the lower user id
        user_higher: Participant with the higher user id
        last_message_preview: Short text of the most recent message
        last_message_at: Timestamp of most recent activity (never decreases)
        is_active: Soft-disable flag (conversations are never deleted)

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower < user_higher): Canonical order, no self-chat
    """

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",  # Queried through Q(user_lower) | Q(user_higher)
        help_text="Participant with the lower user id",
    )

    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the higher user id",
    )

    last_message_preview = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Preview of the most recent message",
    )

    last_message_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text="Timestamp of most recent message (for sorting conversation lists)",
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Inactive conversations are hidden from conversation lists",
    )

    class Meta:
        db_table = "chat_conversation"
        ordering = ["-last_message_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower__lt=F("user_higher")),
                name="conversation_pair_canonical_order",
            ),
        ]
        indexes = [
            # A user's conversations, most recent first (either side of the pair)
            models.Index(
                fields=["user_lower", "-last_message_at"],
                name="chat_conv_lower_recent_idx",
            ),
            models.Index(
                fields=["user_higher", "-last_message_at"],
                name="chat_conv_higher_recent_idx",
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        return f"Conversation({self.pk}: {self.user_lower_id}, {self.user_higher_id})"

    @property
    def pair(self) -> ParticipantPair:
        """The participant pair of this conversation."""
        return ParticipantPair(lower=self.user_lower_id, higher=self.user_higher_id)

    def has_participant(self, user: User) -> bool:
        """Check if user is one of the two participants."""
        return user.pk in self.pair

    def other_participant(self, user: User) -> User:
        """
        Get the participant that is not user.

        Raises:
            ValueError: If user is not a participant
        """
        if user.pk == self.user_lower_id:
            return self.user_higher
        if user.pk == self.user_higher_id:
            return self.user_lower
        raise ValueError(f"User {user.pk} is not a participant")


class Message(BaseModel):
    """
    A message within a conversation.

    Fields:
        conversation: Conversation this message belongs to
        sender: One of the conversation's two participants
        kind: text, image or file
        body: Trimmed text, or the attachment reference for image/file
        is_read: Whether the recipient has read the message
        read_at: When the message was first marked read

    Read state:
        is_read only transitions False -> True, and read_at is set in the
        same statement. See MessageService.mark_read().
    """

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name="messages",
        help_text="Conversation this message belongs to",
    )

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )

    kind = models.CharField(
        max_length=10,
        choices=MessageKind.choices,
        default=MessageKind.TEXT,
        help_text="Type of message content",
    )

    body = models.TextField(
        help_text="Message text, or attachment reference for image/file messages",
    )

    is_read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this message",
    )

    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the message was marked read",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            # Messages in a conversation (cursor pagination)
            models.Index(
                fields=["conversation", "created_at", "id"],
                name="chat_msg_conv_cursor_idx",
            ),
            # Unread messages in a conversation (mark read, unread counts)
            models.Index(
                fields=["conversation", "sender"],
                name="chat_msg_conv_unread_idx",
                condition=Q(is_read=False),
            ),
        ]

    def __str__(self) -> str:
        """Return human-readable representation."""
        preview = self.body[:50] + "..." if len(self.body) > 50 else self.body
        return f"User {self.sender_id}: {preview}"

    @property
    def is_text(self) -> bool:
        """Check if this is a text message."""
        return self.kind == MessageKind.TEXT

    @property
    def is_attachment(self) -> bool:
        """Check if this message carries an image or file reference."""
        return self.kind in (MessageKind.IMAGE, MessageKind.FILE)
