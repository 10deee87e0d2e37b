"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Conversation management (activation)
- Message moderation
"""

from django.contrib import admin

from chat.models import Conversation, Message


class MessageInline(admin.TabularInline):
    """Most recent messages of a conversation, read-only."""

    model = Message
    extra = 0
    can_delete = False
    fields = ["sender", "kind", "body", "is_read", "created_at"]
    readonly_fields = fields
    ordering = ["-created_at", "-id"]

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    """Admin interface for Conversation model."""

    list_display = [
        "id",
        "user_lower",
        "user_higher",
        "last_message_preview",
        "last_message_at",
        "is_active",
    ]
    list_filter = ["is_active", "created_at"]
    search_fields = ["user_lower__email", "user_higher__email", "id"]
    readonly_fields = [
        "user_lower",
        "user_higher",
        "last_message_preview",
        "last_message_at",
        "created_at",
        "updated_at",
    ]
    inlines = [MessageInline]
    ordering = ["-last_message_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "sender",
        "kind",
        "body_preview",
        "is_read",
        "created_at",
    ]
    list_filter = ["kind", "is_read", "created_at"]
    search_fields = ["body", "sender__email"]
    readonly_fields = ["created_at", "updated_at", "read_at"]
    raw_id_fields = ["conversation", "sender"]
    ordering = ["-created_at"]

    @admin.display(description="Body Preview")
    def body_preview(self, obj: Message) -> str:
        """Return truncated body for list display."""
        max_length = 50
        if len(obj.body) > max_length:
            return obj.body[:max_length] + "..."
        return obj.body
