"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- ConversationViewSet: Conversation list, get-or-create and actions
- MessageViewSet: Message history and sending (nested under conversation)

URL Structure:
    /api/v1/chat/conversations/                   GET, POST
    /api/v1/chat/conversations/{id}/              GET
    /api/v1/chat/conversations/{id}/read/         POST
    /api/v1/chat/conversations/{id}/deactivate/   POST
    /api/v1/chat/conversations/{id}/messages/     GET, POST

Design Decisions:
    - All operations go through ChatService, the same entry point the
      WebSocket consumer uses
    - ServiceResult error codes map to HTTP status: NOT_FOUND -> 404,
      TRANSIENT -> 503, everything else -> 400
    - A conversation the user does not take part in is a 404, never a 403
"""

from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
    inline_serializer,
)
from rest_framework import serializers, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.permissions import IsConversationParticipant
from chat.serializers import (
    ConversationCreateSerializer,
    ConversationSummarySerializer,
    MessageCreateSerializer,
    MessageHistoryQuerySerializer,
    MessageSerializer,
)
from chat.services import ChatService, ConversationService

ERROR_STATUS = {
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "TRANSIENT": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def error_response(result) -> Response:
    """Translate a failed ServiceResult into an HTTP error response."""
    return Response(
        result.to_response(),
        status=ERROR_STATUS.get(result.error_code, status.HTTP_400_BAD_REQUEST),
    )


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="create_conversation",
        summary="Start or resume a conversation",
        tags=["Chat - Conversations"],
        request=ConversationCreateSerializer,
        responses={201: ConversationSummarySerializer},
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(viewsets.GenericViewSet):
    """
    ViewSet for conversation operations.

    list:
        The user's active conversations, most recent activity first,
        each with the other participant and an unread count.

    create:
        Start a conversation with peer_id, or return the existing one.
        A deactivated conversation is reactivated.

    retrieve:
        A single conversation summary.

    read:
        Mark every message received in the conversation as read.

    deactivate:
        Hide the conversation from conversation lists. History is kept.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = ConversationSummarySerializer
    lookup_value_regex = r"\d+"

    def get_queryset(self):
        """Conversations of the current user (inactive ones included)."""
        return ConversationService.list_for_user(
            self.request.user, include_inactive=True
        )

    def get_serializer_class(self):
        if self.action == "create":
            return ConversationCreateSerializer
        return ConversationSummarySerializer

    def get_permissions(self):
        if self.action in ("retrieve", "read", "deactivate"):
            return [IsAuthenticated(), IsConversationParticipant()]
        return [IsAuthenticated()]

    def list(self, request):
        conversations = ChatService.get_conversations(request.user)
        serializer = ConversationSummarySerializer(
            conversations, many=True, context={"request": request}
        )
        return Response(serializer.data)

    def create(self, request):
        serializer = ConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatService.get_or_create_conversation(
            request.user, serializer.validated_data["peer_id"]
        )
        if not result.success:
            return error_response(result)

        output_serializer = ConversationSummarySerializer(
            result.data, context={"request": request}
        )
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        conversation = self.get_object()
        serializer = ConversationSummarySerializer(
            conversation, context={"request": request}
        )
        return Response(serializer.data)

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        tags=["Chat - Conversations"],
        request=None,
        responses={
            200: inline_serializer(
                name="MarkReadResponse",
                fields={"updated": serializers.IntegerField()},
            ),
            404: OpenApiResponse(description="Conversation not found"),
        },
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        conversation = self.get_object()

        result = ChatService.mark_conversation_read(conversation.pk, request.user)
        if not result.success:
            return error_response(result)

        return Response({"updated": result.data})

    @extend_schema(
        operation_id="deactivate_conversation",
        summary="Deactivate conversation",
        tags=["Chat - Conversations"],
        request=None,
        responses={200: ConversationSummarySerializer},
    )
    @action(detail=True, methods=["post"])
    def deactivate(self, request, pk=None):
        conversation = self.get_object()

        result = ConversationService.set_active(conversation, False)
        serializer = ConversationSummarySerializer(
            result.data, context={"request": request}
        )
        return Response(serializer.data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_messages",
        summary="List messages",
        tags=["Chat - Messages"],
        parameters=[
            OpenApiParameter(
                "cursor",
                OpenApiTypes.STR,
                description="next_cursor from the previous page",
            ),
            OpenApiParameter(
                "page_size",
                OpenApiTypes.INT,
                description="Messages per page (default 50, max 100)",
            ),
        ],
        responses={
            200: inline_serializer(
                name="MessagePage",
                fields={
                    "results": MessageSerializer(many=True),
                    "next_cursor": serializers.CharField(allow_null=True),
                },
            ),
        },
    ),
    create=extend_schema(
        operation_id="send_message",
        summary="Send message",
        tags=["Chat - Messages"],
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
    ),
)
class MessageViewSet(viewsets.GenericViewSet):
    """
    ViewSet for messages within a conversation.

    list:
        Messages oldest first, cursor paginated. Follow next_cursor until
        it is null.

    create:
        Send a message. It is broadcast to the conversation's room once
        stored, exactly as if it had been sent over the WebSocket.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MessageSerializer

    def list(self, request, conversation_pk=None):
        query = MessageHistoryQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = ChatService.list_messages(
            conversation_pk,
            request.user,
            cursor=query.validated_data.get("cursor") or None,
            page_size=query.validated_data.get("page_size"),
        )
        if not result.success:
            return error_response(result)

        page = result.data
        return Response(
            {
                "results": MessageSerializer(page.messages, many=True).data,
                "next_cursor": page.next_cursor,
            }
        )

    def create(self, request, conversation_pk=None):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ChatService.send(
            conversation_pk,
            request.user,
            serializer.validated_data["body"],
            serializer.validated_data["kind"],
        )
        if not result.success:
            return error_response(result)

        return Response(
            MessageSerializer(result.data).data, status=status.HTTP_201_CREATED
        )
