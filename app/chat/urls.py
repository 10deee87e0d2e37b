"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                   GET, POST
        /conversations/{id}/              GET
        /conversations/{id}/read/         POST
        /conversations/{id}/deactivate/   POST

    Messages:
        /conversations/{id}/messages/     GET, POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from chat.views import ConversationViewSet, MessageViewSet

router = DefaultRouter()
router.register(r"conversations", ConversationViewSet, basename="conversation")

app_name = "chat"

urlpatterns = [
    path("", include(router.urls)),
    # Nested routes for messages
    path(
        "conversations/<int:conversation_pk>/messages/",
        MessageViewSet.as_view({"get": "list", "post": "create"}),
        name="conversation-message-list",
    ),
]
