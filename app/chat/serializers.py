"""
Serializers for chat API.

This module provides serializers for the chat system:
- Direct conversation serializers (list/detail, create)
- Group serializers (list, detail, create, update, membership)
- Message serializers (read, create, edit, file upload, file pre-check)

Serializer Hierarchy:
    DirectConversationSerializer: Conversation with the other participant
    DirectConversationCreateSerializer: Open a conversation with a user

    GroupListSerializer: Group with member count, caller's role and last message
    GroupDetailSerializer: Adds the member list
    GroupCreateSerializer / GroupUpdateSerializer: Group details
    GroupMembersSerializer: Add or remove members
    MemberRoleSerializer: Change a member's role

    MessageSerializer: Message with soft-delete handling
    MessagePreviewSerializer: Minimal message for list preview
    MessageCreateSerializer: Send a text message to a target
    FileMessageCreateSerializer: Upload an attachment to a target
    MessageUpdateSerializer: Edit text
    FileValidateSerializer: Pre-flight attachment check

Design Decisions:
    - Read and write serializers are separate for clarity
    - Soft-deleted message content is replaced with a placeholder
    - Write serializers for messages resolve conversation_id/group_id into
      a single Target (validated_data["target"])
"""

from __future__ import annotations

from rest_framework import serializers

from authentication.serializers import UserSerializer, UserSummarySerializer
from chat.constants import GROUP_CONFIG, MESSAGE_CONFIG
from chat.models import DirectConversation, Group, GroupMember, GroupRole, Message
from chat.targets import target_from_ids


# =============================================================================
# Message Serializers
# =============================================================================


class MessagePreviewSerializer(serializers.ModelSerializer):
    """
    Minimal message serializer for conversation and group list preview.

    Handles soft-deleted message content replacement.
    """

    content = serializers.CharField(source="get_display_content", read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "sender_id",
            "content",
            "message_type",
            "created_at",
        ]
        read_only_fields = fields


class MessageSerializer(serializers.ModelSerializer):
    """
    Full message serializer for message lists.

    Includes sender details and attachment metadata. Deleted messages
    expose neither their content nor their file.
    """

    sender = UserSummarySerializer(read_only=True)
    content = serializers.CharField(source="get_display_content", read_only=True)
    file_url = serializers.SerializerMethodField(
        help_text="Download URL of the attachment (null if none or deleted)"
    )

    class Meta:
        model = Message
        fields = [
            "id",
            "conversation_id",
            "group_id",
            "sender",
            "content",
            "message_type",
            "file_url",
            "file_name",
            "file_type",
            "file_size",
            "call_duration",
            "is_deleted",
            "edited_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_file_url(self, obj: Message) -> str | None:
        if obj.is_deleted or not obj.file:
            return None
        request = self.context.get("request")
        url = obj.file.url
        return request.build_absolute_uri(url) if request else url


class MessageTargetSerializer(serializers.Serializer):
    """
    Base for serializers addressed to a conversation or a group.

    Exactly one of conversation_id/group_id must be given.
    """

    conversation_id = serializers.UUIDField(required=False, allow_null=True)
    group_id = serializers.UUIDField(required=False, allow_null=True)

    def validate(self, attrs):
        conversation_id = attrs.pop("conversation_id", None)
        group_id = attrs.pop("group_id", None)

        if not conversation_id and not group_id:
            raise serializers.ValidationError("Must specify either conversation_id or group_id")
        if conversation_id and group_id:
            raise serializers.ValidationError("Cannot specify both conversation_id and group_id")

        attrs["target"] = target_from_ids(conversation_id=conversation_id, group_id=group_id)
        return attrs


class MessageCreateSerializer(MessageTargetSerializer):
    """Serializer for sending a text message."""

    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
        help_text="Message content (max 10,000 characters)",
    )


class FileMessageCreateSerializer(MessageTargetSerializer):
    """Serializer for uploading an attachment (multipart)."""

    file = serializers.FileField(help_text="Attachment, max 20MB")
    caption = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )


class MessageUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
        trim_whitespace=False,
    )


class FileValidateSerializer(serializers.Serializer):
    """File metadata sent by the client before uploading."""

    file_name = serializers.CharField(allow_blank=True)
    file_type = serializers.CharField(allow_blank=True)
    file_size = serializers.IntegerField()


class FileValidationResultSerializer(serializers.Serializer):
    valid = serializers.BooleanField()
    errors = serializers.ListField(child=serializers.CharField())


# =============================================================================
# Direct Conversation Serializers
# =============================================================================


class DirectConversationSerializer(serializers.ModelSerializer):
    """
    Direct conversation as seen by one participant.

    Context:
        request: used to pick the other participant
    """

    other_user = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()

    class Meta:
        model = DirectConversation
        fields = [
            "id",
            "other_user",
            "last_message",
            "last_message_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_other_user(self, obj: DirectConversation) -> dict:
        user = self.context["request"].user
        other = obj.user_higher if obj.user_lower_id == user.pk else obj.user_lower
        return UserSerializer(other).data

    def get_last_message(self, obj: DirectConversation) -> dict | None:
        message = obj.messages.order_by("-created_at").first()
        return MessagePreviewSerializer(message).data if message else None


class DirectConversationCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(help_text="User to start a conversation with")


# =============================================================================
# Group Serializers
# =============================================================================


class GroupMemberSerializer(serializers.ModelSerializer):
    """Group member with user details and effective presence."""

    user = UserSerializer(read_only=True)

    class Meta:
        model = GroupMember
        fields = ["user", "role", "joined_at"]
        read_only_fields = fields


class GroupListSerializer(serializers.ModelSerializer):
    """
    Group list entry.

    member_count comes from the GroupService.list_for_user annotation when
    present; my_role is the requesting user's role.
    """

    member_count = serializers.SerializerMethodField()
    my_role = serializers.SerializerMethodField()
    last_message = serializers.SerializerMethodField()

    class Meta:
        model = Group
        fields = [
            "id",
            "name",
            "description",
            "creator_id",
            "member_count",
            "my_role",
            "last_message",
            "last_message_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_member_count(self, obj: Group) -> int:
        annotated = getattr(obj, "member_count", None)
        if annotated is not None:
            return annotated
        return obj.memberships.count()

    def get_my_role(self, obj: Group) -> str | None:
        membership = obj.get_membership(self.context["request"].user)
        return membership.role if membership else None

    def get_last_message(self, obj: Group) -> dict | None:
        message = obj.messages.order_by("-created_at").first()
        return MessagePreviewSerializer(message).data if message else None


class GroupDetailSerializer(GroupListSerializer):
    """Group with its members."""

    members = serializers.SerializerMethodField()

    class Meta(GroupListSerializer.Meta):
        fields = GroupListSerializer.Meta.fields + ["members"]
        read_only_fields = fields

    def get_members(self, obj: Group) -> list:
        memberships = obj.memberships.select_related("user")
        return GroupMemberSerializer(memberships, many=True).data


class GroupCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH)
    description = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_DESCRIPTION_LENGTH,
        required=False,
        allow_blank=True,
        default="",
    )
    member_ids = serializers.ListField(
        child=serializers.IntegerField(),
        required=False,
        default=list,
        help_text="Users to add as members",
    )


class GroupUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=GROUP_CONFIG.MAX_NAME_LENGTH, required=False)
    description = serializers.CharField(
        max_length=GROUP_CONFIG.MAX_DESCRIPTION_LENGTH,
        required=False,
        allow_blank=True,
    )


class GroupMembersSerializer(serializers.Serializer):
    member_ids = serializers.ListField(
        child=serializers.IntegerField(),
        min_length=1,
    )


class MemberRoleSerializer(serializers.Serializer):
    user_id = serializers.IntegerField()
    role = serializers.ChoiceField(choices=GroupRole.choices)


class MemberIdsResponseSerializer(serializers.Serializer):
    member_ids = serializers.ListField(child=serializers.IntegerField())
