"""
Permission classes for chat API.

- IsConversationParticipant: User is one of the conversation's two participants

Design Decisions:
    - ConversationViewSet scopes its queryset to the requesting user, so a
      non-participant gets 404 before object permissions run. The
      permission still guards any view that loads conversations some other
      way.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from chat.models import Conversation, Message

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsConversationParticipant(permissions.BasePermission):
    """Allows access only to the two participants of the conversation."""

    message = "You are not a participant in this conversation."

    def has_object_permission(
        self, request: Request, view: APIView, obj: Conversation | Message
    ) -> bool:
        if not request.user.is_authenticated:
            return False

        conversation = obj.conversation if isinstance(obj, Message) else obj
        return conversation.has_participant(request.user)
