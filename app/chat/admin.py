"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Direct conversations
- Groups with inline memberships
- Message moderation
"""

from django.contrib import admin

from chat.models import DirectConversation, Group, GroupMember, Message


class GroupMemberInline(admin.TabularInline):
    """Inline display of members in group admin."""

    model = GroupMember
    extra = 0
    readonly_fields = ["joined_at"]
    raw_id_fields = ["user"]


@admin.register(DirectConversation)
class DirectConversationAdmin(admin.ModelAdmin):
    list_display = ["id", "user_lower", "user_higher", "last_message_at", "created_at"]
    search_fields = ["id", "user_lower__email", "user_higher__email"]
    readonly_fields = ["created_at", "updated_at", "last_message_at"]
    raw_id_fields = ["user_lower", "user_higher"]
    ordering = ["-created_at"]


@admin.register(Group)
class GroupAdmin(admin.ModelAdmin):
    """Admin interface for Group model."""

    list_display = ["id", "name", "creator", "last_message_at", "created_at"]
    search_fields = ["name", "id"]
    readonly_fields = ["created_at", "updated_at", "last_message_at"]
    raw_id_fields = ["creator"]
    inlines = [GroupMemberInline]
    ordering = ["-created_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "conversation",
        "group",
        "sender",
        "message_type",
        "content_preview",
        "is_deleted",
        "created_at",
    ]
    list_filter = ["message_type", "is_deleted", "created_at"]
    search_fields = ["content", "sender__email", "file_name"]
    readonly_fields = ["created_at", "updated_at", "edited_at", "file_type", "file_size"]
    raw_id_fields = ["conversation", "group", "sender"]
    ordering = ["-created_at"]

    @admin.display(description="Content Preview")
    def content_preview(self, obj: Message) -> str:
        """Return truncated content for list display."""
        max_length = 50
        if len(obj.content) > max_length:
            return obj.content[:max_length] + "..."
        return obj.content
