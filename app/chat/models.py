"""
Chat system models.

This module defines the data models for:
- Direct (1:1) conversations between exactly two users
- Group chats with admin/member roles
- Messages addressed to exactly one of the two

Models:
    DirectConversation: Canonical pair of users with a shared message stream
    Group: Named multi-user chat
    GroupMember: A user's membership and role in a group
    Message: Text, file, system or call-summary message

Design Decisions:
    - A direct conversation stores its users in canonical order (lower id
      first), so there is exactly one conversation per pair regardless of
      who started it
    - A message targets a conversation XOR a group; the database rejects
      rows with both or neither (see chat.targets for the typed view)
    - Deleting a message is a soft delete; content is hidden in the API
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import F, Q

from chat.constants import ATTACHMENT_CONFIG, MESSAGE_CONFIG
from chat.targets import ConversationTarget, GroupTarget
from core.models import BaseModel, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from authentication.models import User
    from chat.targets import Target


class GroupRole(models.TextChoices):
    """
    Role within a group.

    ADMIN: Can add members, remove anyone, rename the group, change roles
    MEMBER: Can send messages and leave
    """

    ADMIN = "admin", "Admin"
    MEMBER = "member", "Member"


class MessageType(models.TextChoices):
    """
    Type of message content.

    TEXT: User-authored text
    FILE: Attachment with an optional caption
    SYSTEM: Generated event text
    CALL: Call summary ("Call ended - Duration: 3m 5s", "Missed call")
    """

    TEXT = "text", "Text"
    FILE = "file", "File"
    SYSTEM = "system", "System"
    CALL = "call", "Call"


class DirectConversation(UUIDPrimaryKeyMixin, BaseModel):
    """
    A private conversation between two users.

    Fields:
        user_lower: Participant with the lower user id
        user_higher: Participant with the higher user id
        last_message_at: Timestamp of the most recent message (for sorting)

    Constraints:
        - UniqueConstraint(user_lower, user_higher): One conversation per pair
        - CheckConstraint(user_lower_id < user_higher_id): Canonical order,
          which also rules out a conversation with yourself

    Usage:
        lower, higher = DirectConversation.canonical_pair(user_a, user_b)
        conversation, _ = DirectConversation.objects.get_or_create(
            user_lower=lower, user_higher=higher
        )
    """

    user_lower = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the lower id",
    )
    user_higher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
        help_text="Participant with the higher id",
    )
    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message",
    )

    class Meta:
        db_table = "chat_direct_conversation"
        ordering = ["-last_message_at", "-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user_lower", "user_higher"],
                name="unique_direct_conversation_pair",
            ),
            models.CheckConstraint(
                condition=Q(user_lower_id__lt=F("user_higher_id")),
                name="direct_user_lower_less_than_higher",
            ),
        ]

    def __str__(self) -> str:
        return f"Direct({self.user_lower_id}, {self.user_higher_id})"

    @staticmethod
    def canonical_pair(user_a: User, user_b: User) -> tuple[User, User]:
        """Order two users so the lower id comes first."""
        if user_a.pk < user_b.pk:
            return user_a, user_b
        return user_b, user_a

    @property
    def participant_ids(self) -> list:
        return [self.user_lower_id, self.user_higher_id]

    @property
    def target(self) -> ConversationTarget:
        return ConversationTarget(self.pk)

    def has_participant(self, user: User) -> bool:
        return user.pk in self.participant_ids

    def other_participant_id(self, user: User):
        """Id of the participant who is not `user`."""
        if user.pk == self.user_lower_id:
            return self.user_higher_id
        return self.user_lower_id


class Group(UUIDPrimaryKeyMixin, BaseModel):
    """
    A named chat with any number of members.

    Fields:
        name: Display name, never blank
        description: Optional free text
        creator: User who created the group (first admin)
        last_message_at: Timestamp of the most recent message

    Relationships:
        memberships: GroupMember rows
        messages: Messages posted in the group
    """

    name = models.CharField(
        max_length=100,
        help_text="Group display name",
    )
    description = models.TextField(
        blank=True,
        default="",
        help_text="Optional group description",
    )
    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_groups",
        help_text="User who created this group",
    )
    last_message_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp of most recent message",
    )

    class Meta:
        db_table = "chat_group"
        ordering = ["-last_message_at", "-created_at"]

    def __str__(self) -> str:
        return f"Group: {self.name}"

    @property
    def target(self) -> GroupTarget:
        return GroupTarget(self.pk)

    def get_membership(self, user: User) -> GroupMember | None:
        return self.memberships.filter(user=user).first()

    def member_ids(self) -> list:
        return list(self.memberships.values_list("user_id", flat=True))


class GroupMember(BaseModel):
    """
    Membership of a user in a group.

    Fields:
        group: Group the membership belongs to
        user: Member
        role: admin or member
        joined_at: When the user was added

    Constraints:
        - UniqueConstraint(group, user): A user is a member at most once
    """

    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name="memberships",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="group_memberships",
    )
    role = models.CharField(
        max_length=10,
        choices=GroupRole.choices,
        default=GroupRole.MEMBER,
        db_index=True,
    )
    joined_at = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user joined the group",
    )

    class Meta:
        db_table = "chat_group_member"
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["group", "user"],
                name="unique_group_membership",
            ),
        ]

    def __str__(self) -> str:
        return f"GroupMember: {self.user_id} in {self.group_id} ({self.role})"

    @property
    def is_admin(self) -> bool:
        return self.role == GroupRole.ADMIN


class Message(UUIDPrimaryKeyMixin, BaseModel):
    """
    A message in a direct conversation or a group.

    Fields:
        conversation: Direct conversation (set XOR group)
        group: Group (set XOR conversation)
        sender: Author; for call summaries this is the call's initiator
        content: Text, caption or generated summary
        message_type: text, file, system or call
        file: Stored attachment (file messages only)
        file_name: Original file name as uploaded
        file_type: MIME type sniffed from the content
        file_size: Size in bytes
        call_duration: Call length in milliseconds (call messages only)
        is_deleted: Soft delete flag
        edited_at: When the sender last edited the text

    Constraints:
        - CheckConstraint: exactly one of conversation/group is set
    """

    conversation = models.ForeignKey(
        DirectConversation,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
    )
    content = models.TextField(
        blank=True,
        default="",
        help_text="Message text, file caption or call summary",
    )
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        db_index=True,
    )

    file = models.FileField(
        upload_to=ATTACHMENT_CONFIG.UPLOAD_PATH,
        blank=True,
        max_length=255,
    )
    file_name = models.CharField(max_length=255, blank=True, default="")
    file_type = models.CharField(max_length=127, blank=True, default="")
    file_size = models.PositiveBigIntegerField(null=True, blank=True)

    call_duration = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Call duration in milliseconds",
    )

    is_deleted = models.BooleanField(default=False, db_index=True)
    edited_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "chat_message"
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["conversation", "-created_at"],
                name="chat_msg_conv_created_idx",
            ),
            models.Index(
                fields=["group", "-created_at"],
                name="chat_msg_group_created_idx",
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(conversation__isnull=False, group__isnull=True)
                    | Q(conversation__isnull=True, group__isnull=False)
                ),
                name="message_exactly_one_target",
            ),
        ]

    def __str__(self) -> str:
        preview = self.content[:50] + "..." if len(self.content) > 50 else self.content
        deleted = " [deleted]" if self.is_deleted else ""
        return f"{self.message_type} from {self.sender_id}: {preview}{deleted}"

    @property
    def target(self) -> Target:
        if self.conversation_id is not None:
            return ConversationTarget(self.conversation_id)
        return GroupTarget(self.group_id)

    @property
    def is_file_message(self) -> bool:
        return self.message_type == MessageType.FILE

    def get_display_content(self) -> str:
        """Content as shown to clients; deleted messages are masked."""
        if self.is_deleted:
            return MESSAGE_CONFIG.DELETED_PLACEHOLDER
        return self.content
