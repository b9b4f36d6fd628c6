"""
Chat system service layer.

This module provides the business logic for the chat system, encapsulating
all operations on direct conversations, groups and messages.

Services:
    ConversationService: Direct conversation lookup and creation
    GroupService: Group lifecycle and membership (add, remove, roles)
    MessageService: Message operations (send, edit, delete, files, call summaries)

Design Principles:
    - Services are stateless (use class methods)
    - Expected failures return ServiceResult.failure()
    - Unexpected failures raise exceptions
    - Validation and authorization happen before anything is written
    - Notifications and realtime events are sent after commit

Usage:
    from chat.services import ConversationService, GroupService, MessageService

    # Open (or reuse) a direct conversation
    result = ConversationService.get_or_create_direct(user, other_user.id)
    if result.success:
        conversation = result.data

    # Create a group
    result = GroupService.create_group(
        user, name="Project Team", member_ids=[user2.id, user3.id]
    )

    # Send a message
    result = MessageService.send_message(user, conversation.target, "Hello!")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.db import transaction
from django.db.models import Count, Q
from django.db.models.functions import Coalesce
from django.utils import timezone

from authentication.models import User
from chat.attachments import inspect_upload
from chat.authorization import ChatAuthorizationService
from chat.constants import MESSAGE_CONFIG
from chat.models import (
    DirectConversation,
    Group,
    GroupMember,
    GroupRole,
    Message,
    MessageType,
)
from chat.targets import ConversationTarget, GroupTarget
from core.helpers import truncate
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationType
from notifications.services import RealtimeService, notify_many

if TYPE_CHECKING:
    from django.core.files.uploadedfile import UploadedFile
    from django.db.models import QuerySet

    from calls.models import Call
    from chat.targets import Target

logger = logging.getLogger(__name__)


def _not_found(what: str) -> ServiceResult:
    return ServiceResult.failure(f"{what} not found", error_code=ErrorCode.NOT_FOUND)


def _check_target_access(user: User, target: Target) -> ServiceResult | None:
    """
    Failure result when the target is missing or the user cannot see it.

    Returns:
        ServiceResult.failure, or None when access is allowed
    """
    if not ChatAuthorizationService.target_exists(target):
        return _not_found("Conversation" if target.kind == "conversation" else "Group")

    if not ChatAuthorizationService.can_access_target(user, target):
        message = (
            "Not authorized to access this conversation"
            if target.kind == "conversation"
            else "Not a member of this group"
        )
        return ServiceResult.failure(message, error_code=ErrorCode.NOT_AUTHORIZED)

    return None


class ConversationService(BaseService):
    """
    Service for direct (1:1) conversations.

    Methods:
        get_or_create_direct: Return the conversation for a pair, creating it once
        list_for_user: Conversations of a user, most recent activity first
        get_for_user: Single conversation, participants only
    """

    @classmethod
    def get_or_create_direct(
        cls,
        user: User,
        other_user_id,
    ) -> ServiceResult[DirectConversation]:
        """
        Get or create the direct conversation between user and another user.

        Conversations are unique per pair. The pair is stored in canonical
        order, so A->B and B->A resolve to the same row.

        Args:
            user: Caller
            other_user_id: Primary key of the other participant

        Returns:
            ServiceResult with DirectConversation (existing or new)

        Error codes:
            NOT_FOUND: Other user does not exist
            VALIDATION_ERROR: Cannot chat with yourself
        """
        other_user = User.objects.filter(pk=other_user_id, is_active=True).first()
        if other_user is None:
            return _not_found("Other user")

        if other_user.pk == user.pk:
            return ServiceResult.failure(
                "Cannot create a conversation with yourself",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        user_lower, user_higher = DirectConversation.canonical_pair(user, other_user)
        conversation, created = DirectConversation.objects.get_or_create(
            user_lower=user_lower,
            user_higher=user_higher,
        )

        if created:
            cls.get_logger().info(
                f"Created direct conversation {conversation.id} "
                f"between users {user_lower.id} and {user_higher.id}"
            )

        return ServiceResult.success(conversation)

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[DirectConversation]:
        """Conversations of user, ordered by last activity (message or creation)."""
        return (
            DirectConversation.objects.filter(Q(user_lower=user) | Q(user_higher=user))
            .select_related("user_lower", "user_higher")
            .order_by(Coalesce("last_message_at", "created_at").desc())
        )

    @classmethod
    def get_for_user(cls, user: User, conversation_id) -> ServiceResult[DirectConversation]:
        conversation = (
            DirectConversation.objects.select_related("user_lower", "user_higher")
            .filter(pk=conversation_id)
            .first()
        )
        if conversation is None:
            return _not_found("Conversation")

        if not conversation.has_participant(user):
            return ServiceResult.failure(
                "Not authorized to view this conversation",
                error_code=ErrorCode.NOT_AUTHORIZED,
            )

        return ServiceResult.success(conversation)


class GroupService(BaseService):
    """
    Service for group chats and their membership.

    Permission rules:
        - Admin: add members, remove anyone, rename, change roles
        - Member: send messages, remove themselves (leave)
        - A group always keeps at least one admin
    """

    @classmethod
    def _admin_count(cls, group_id) -> int:
        return GroupMember.objects.filter(group_id=group_id, role=GroupRole.ADMIN).count()

    @classmethod
    def _existing_user_ids(cls, user_ids) -> list:
        """Ids from user_ids that belong to active users, de-duplicated, order kept."""
        known = set(
            User.objects.filter(pk__in=set(user_ids), is_active=True).values_list(
                "pk", flat=True
            )
        )
        return [uid for uid in dict.fromkeys(user_ids) if uid in known]

    @classmethod
    def _notify_added(cls, group: Group, added_by: User, user_ids) -> None:
        notify_many(
            user_ids,
            notification_type=NotificationType.GROUP_INVITE,
            title=f"Added to {group.name}",
            body=f"{added_by.display_name} added you to {group.name}",
            reference_id=str(group.id),
            reference_type="group",
            url=f"/group/{group.id}",
        )

    @classmethod
    def create_group(
        cls,
        user: User,
        name: str,
        description: str = "",
        member_ids: list | None = None,
    ) -> ServiceResult[Group]:
        """
        Create a group with the caller as its first admin.

        Unknown and duplicate member ids are ignored; the creator is never
        added twice.

        Args:
            user: Creator (becomes admin)
            name: Group name, required
            description: Optional description
            member_ids: Users to add as members

        Returns:
            ServiceResult with new Group

        Error codes:
            VALIDATION_ERROR: Group name cannot be empty
        """
        invalid = cls.require_text(name, "Group name cannot be empty")
        if invalid is not None:
            return invalid

        member_ids = [
            uid for uid in cls._existing_user_ids(member_ids or []) if uid != user.pk
        ]

        with cls.atomic():
            group = Group.objects.create(
                name=name.strip(),
                description=(description or "").strip(),
                creator=user,
            )
            GroupMember.objects.create(group=group, user=user, role=GroupRole.ADMIN)
            GroupMember.objects.bulk_create(
                [
                    GroupMember(group=group, user_id=uid, role=GroupRole.MEMBER)
                    for uid in member_ids
                ]
            )
            cls._notify_added(group, user, member_ids)

        cls.get_logger().info(
            f"User {user.id} created group {group.id} with {1 + len(member_ids)} members"
        )
        return ServiceResult.success(group)

    @classmethod
    def add_members(cls, user: User, group_id, member_ids: list) -> ServiceResult[list]:
        """
        Add users to a group (admin only).

        Existing members and unknown users are skipped.

        Returns:
            ServiceResult with the ids of users actually added

        Error codes:
            NOT_FOUND: Group does not exist
            NOT_AUTHORIZED: Caller is not an admin
        """
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return _not_found("Group")

        if not ChatAuthorizationService.is_group_admin(user, group.pk):
            return ServiceResult.failure(
                "Only admins can add members", error_code=ErrorCode.NOT_AUTHORIZED
            )

        existing = set(group.member_ids())
        added = [uid for uid in cls._existing_user_ids(member_ids) if uid not in existing]

        with cls.atomic():
            GroupMember.objects.bulk_create(
                [GroupMember(group=group, user_id=uid, role=GroupRole.MEMBER) for uid in added]
            )
            cls._notify_added(group, user, added)

        if added:
            cls.get_logger().info(f"User {user.id} added {added} to group {group.id}")
        return ServiceResult.success(added)

    @classmethod
    def remove_members(cls, user: User, group_id, member_ids: list) -> ServiceResult[list]:
        """
        Remove users from a group.

        Admins can remove anyone; members can only remove themselves, other
        ids in their request are ignored. The last admin cannot leave.

        Returns:
            ServiceResult with the ids of users actually removed

        Error codes:
            NOT_FOUND: Group does not exist
            NOT_AUTHORIZED: Caller is not a member
            VALIDATION_ERROR: Caller is the last admin and tried to leave
        """
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return _not_found("Group")

        with cls.atomic():
            membership = (
                GroupMember.objects.select_for_update()
                .filter(group=group, user=user)
                .first()
            )
            if membership is None:
                return ServiceResult.failure(
                    "Not a member of this group", error_code=ErrorCode.NOT_AUTHORIZED
                )

            allowed = [
                uid for uid in dict.fromkeys(member_ids)
                if membership.is_admin or uid == user.pk
            ]

            if membership.is_admin and user.pk in allowed and cls._admin_count(group.pk) <= 1:
                return ServiceResult.failure(
                    "Cannot remove the last admin. Transfer ownership first.",
                    error_code=ErrorCode.VALIDATION_ERROR,
                )

            removed = list(
                GroupMember.objects.filter(group=group, user_id__in=allowed).values_list(
                    "user_id", flat=True
                )
            )
            GroupMember.objects.filter(group=group, user_id__in=removed).delete()

        if removed:
            cls.get_logger().info(f"User {user.id} removed {removed} from group {group.id}")
        return ServiceResult.success(removed)

    @classmethod
    def update_group(
        cls,
        user: User,
        group_id,
        name: str | None = None,
        description: str | None = None,
    ) -> ServiceResult[Group]:
        """
        Rename a group or change its description (admin only).

        Error codes:
            NOT_FOUND, NOT_AUTHORIZED, VALIDATION_ERROR (blank name)
        """
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return _not_found("Group")

        if not ChatAuthorizationService.is_group_admin(user, group.pk):
            return ServiceResult.failure(
                "Only admins can update group details",
                error_code=ErrorCode.NOT_AUTHORIZED,
            )

        update_fields = ["updated_at"]
        if name is not None:
            invalid = cls.require_text(name, "Group name cannot be empty")
            if invalid is not None:
                return invalid
            group.name = name.strip()
            update_fields.append("name")
        if description is not None:
            group.description = description.strip()
            update_fields.append("description")

        group.save(update_fields=update_fields)
        return ServiceResult.success(group)

    @classmethod
    def update_member_role(
        cls,
        user: User,
        group_id,
        member_user_id,
        role: str,
    ) -> ServiceResult[GroupMember]:
        """
        Promote or demote a member (admin only).

        Error codes:
            NOT_FOUND: Group or membership does not exist
            NOT_AUTHORIZED: Caller is not an admin
            VALIDATION_ERROR: Unknown role, or demoting the last admin
        """
        if role not in GroupRole.values:
            return ServiceResult.failure(
                f"Invalid role '{role}'", error_code=ErrorCode.VALIDATION_ERROR
            )

        if not Group.objects.filter(pk=group_id).exists():
            return _not_found("Group")

        if not ChatAuthorizationService.is_group_admin(user, group_id):
            return ServiceResult.failure(
                "Only admins can change member roles",
                error_code=ErrorCode.NOT_AUTHORIZED,
            )

        with cls.atomic():
            membership = (
                GroupMember.objects.select_for_update()
                .filter(group_id=group_id, user_id=member_user_id)
                .first()
            )
            if membership is None:
                return ServiceResult.failure(
                    "User is not a member of this group", error_code=ErrorCode.NOT_FOUND
                )

            if (
                membership.is_admin
                and role == GroupRole.MEMBER
                and cls._admin_count(group_id) <= 1
            ):
                return ServiceResult.failure(
                    "Cannot demote the last admin", error_code=ErrorCode.VALIDATION_ERROR
                )

            membership.role = role
            membership.save(update_fields=["role", "updated_at"])

        cls.get_logger().info(
            f"User {user.id} set role of {member_user_id} in group {group_id} to {role}"
        )
        return ServiceResult.success(membership)

    @classmethod
    def list_for_user(cls, user: User) -> QuerySet[Group]:
        """Groups the user belongs to, with member_count, most recent activity first."""
        return (
            Group.objects.annotate(member_count=Count("memberships", distinct=True))
            .filter(memberships__user=user)
            .order_by(Coalesce("last_message_at", "created_at").desc())
        )

    @classmethod
    def get_for_user(cls, user: User, group_id) -> ServiceResult[Group]:
        group = Group.objects.filter(pk=group_id).first()
        if group is None:
            return _not_found("Group")

        if not ChatAuthorizationService.can_access_target(user, group.target):
            return ServiceResult.failure(
                "Not a member of this group", error_code=ErrorCode.NOT_AUTHORIZED
            )

        return ServiceResult.success(group)


class MessageService(BaseService):
    """
    Service for message operations.

    Methods:
        send_message: Post a text message to a conversation or group
        send_file_message: Post an attachment
        list_messages: Message history, newest first
        edit_message: Change the text of an own text message
        delete_message: Soft delete an own message
        delete_file: Remove an own attachment from storage
        create_call_message: Call summary posted by the call manager
    """

    @classmethod
    def _create(cls, sender: User, target: Target, **fields) -> Message:
        """Insert a message and bump last_message_at of its target."""
        message = Message.objects.create(sender=sender, **target.model_kwargs(), **fields)

        match target:
            case ConversationTarget(id=conversation_id):
                DirectConversation.objects.filter(pk=conversation_id).update(
                    last_message_at=message.created_at
                )
            case GroupTarget(id=group_id):
                Group.objects.filter(pk=group_id).update(last_message_at=message.created_at)

        cls._publish(message, "message.created")
        return message

    @classmethod
    def _publish(cls, message: Message, event: str) -> None:
        RealtimeService.publish(
            ChatAuthorizationService.get_member_ids(message.target),
            event,
            {
                "id": str(message.id),
                "target_type": message.target.kind,
                "target_id": str(message.target.id),
                "sender_id": message.sender_id,
                "message_type": message.message_type,
                "is_deleted": message.is_deleted,
            },
        )

    @classmethod
    def _notify_recipients(cls, message: Message, preview: str) -> None:
        """Message notification for every member of the target except the sender."""
        sender = message.sender
        target = message.target

        match target:
            case ConversationTarget(id=conversation_id):
                title = f"New message from {sender.display_name}"
                url = f"/conversation/{conversation_id}"
            case GroupTarget(id=group_id):
                group_name = Group.objects.values_list("name", flat=True).get(pk=group_id)
                title = f"New message in {group_name}"
                url = f"/group/{group_id}"

        recipients = [
            uid for uid in ChatAuthorizationService.get_member_ids(target) if uid != sender.pk
        ]
        notify_many(
            recipients,
            notification_type=NotificationType.MESSAGE,
            title=title,
            body=truncate(preview, MESSAGE_CONFIG.PREVIEW_LENGTH),
            reference_id=str(target.id),
            reference_type=target.kind,
            url=url,
        )

    @classmethod
    def send_message(
        cls,
        user: User,
        target: Target,
        content: str,
    ) -> ServiceResult[Message]:
        """
        Send a text message.

        Args:
            user: Sender
            target: Conversation or group
            content: Message text

        Returns:
            ServiceResult with new Message

        Error codes:
            VALIDATION_ERROR: Empty content
            NOT_FOUND: Target does not exist
            NOT_AUTHORIZED: Sender is not a participant/member
        """
        invalid = cls.require_text(content, "Message content cannot be empty")
        if invalid is not None:
            return invalid

        denied = _check_target_access(user, target)
        if denied is not None:
            return denied

        with cls.atomic():
            message = cls._create(user, target, content=content, message_type=MessageType.TEXT)
            cls._notify_recipients(message, content)

        cls.get_logger().debug(
            f"User {user.id} sent message {message.id} to {target.kind} {target.id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def send_file_message(
        cls,
        user: User,
        target: Target,
        upload: UploadedFile,
        caption: str = "",
    ) -> ServiceResult[Message]:
        """
        Store an attachment and post it as a file message.

        The file is checked (type sniffed from content, size, name) before
        the message row is created.

        Error codes:
            VALIDATION_ERROR: Attachment rejected; errors["file"] lists reasons
            NOT_FOUND, NOT_AUTHORIZED: As for send_message
        """
        denied = _check_target_access(user, target)
        if denied is not None:
            return denied

        check = inspect_upload(upload)
        if not check.valid:
            return ServiceResult.failure(
                check.errors[0],
                error_code=ErrorCode.VALIDATION_ERROR,
                errors={"file": check.errors},
            )

        with cls.atomic():
            message = cls._create(
                user,
                target,
                content=(caption or "").strip(),
                message_type=MessageType.FILE,
                file=upload,
                file_name=upload.name,
                file_type=check.mime_type,
                file_size=check.size,
            )
            cls._notify_recipients(message, message.file_name or "Sent a file")

        cls.get_logger().info(
            f"User {user.id} sent file {message.file_name!r} ({check.mime_type}, "
            f"{check.size} bytes) to {target.kind} {target.id}"
        )
        return ServiceResult.success(message)

    @classmethod
    def list_messages(cls, user: User, target: Target) -> ServiceResult[QuerySet[Message]]:
        """
        Message history of a target, newest first.

        Returns:
            ServiceResult with a QuerySet for the view to paginate
        """
        denied = _check_target_access(user, target)
        if denied is not None:
            return denied

        messages = (
            Message.objects.filter(**target.filter_kwargs())
            .select_related("sender")
            .order_by("-created_at")
        )
        return ServiceResult.success(messages)

    @classmethod
    def _get_own_message(cls, user: User, message_id, action: str) -> ServiceResult[Message]:
        message = (
            Message.objects.select_for_update().select_related("sender")
            .filter(pk=message_id)
            .first()
        )
        if message is None:
            return _not_found("Message")

        if message.sender_id != user.pk:
            return ServiceResult.failure(
                f"Only the sender can {action}", error_code=ErrorCode.NOT_AUTHORIZED
            )

        return ServiceResult.success(message)

    @classmethod
    def edit_message(cls, user: User, message_id, content: str) -> ServiceResult[Message]:
        """
        Replace the text of a message (sender only, text messages only).

        Error codes:
            NOT_FOUND, NOT_AUTHORIZED
            VALIDATION_ERROR: Deleted message, non-text message or empty content
        """
        with cls.atomic():
            result = cls._get_own_message(user, message_id, "edit this message")
            if not result:
                return result
            message = result.data

            if message.is_deleted:
                return ServiceResult.failure(
                    "Cannot edit a deleted message", error_code=ErrorCode.VALIDATION_ERROR
                )
            if message.message_type != MessageType.TEXT:
                return ServiceResult.failure(
                    "Can only edit text messages", error_code=ErrorCode.VALIDATION_ERROR
                )
            invalid = cls.require_text(content, "Message content cannot be empty")
            if invalid is not None:
                return invalid

            message.content = content
            message.edited_at = timezone.now()
            message.save(update_fields=["content", "edited_at", "updated_at"])
            cls._publish(message, "message.updated")

        return ServiceResult.success(message)

    @classmethod
    def delete_message(cls, user: User, message_id) -> ServiceResult[Message]:
        """
        Soft delete a message (sender only).

        Deleting an already-deleted message succeeds without changes.
        """
        with cls.atomic():
            result = cls._get_own_message(user, message_id, "delete this message")
            if not result:
                return result
            message = result.data

            if not message.is_deleted:
                message.is_deleted = True
                message.save(update_fields=["is_deleted", "updated_at"])
                cls._publish(message, "message.updated")

        cls.get_logger().info(f"User {user.id} deleted message {message.id}")
        return ServiceResult.success(message)

    @classmethod
    def delete_file(cls, user: User, message_id) -> ServiceResult[Message]:
        """
        Remove an attachment from storage and soft delete its message.

        The stored file is removed once the transaction commits.

        Error codes:
            NOT_FOUND, NOT_AUTHORIZED
            VALIDATION_ERROR: Message is not a file message
        """
        with cls.atomic():
            result = cls._get_own_message(user, message_id, "delete this file")
            if not result:
                return result
            message = result.data

            if not message.is_file_message:
                return ServiceResult.failure(
                    "This message is not a file", error_code=ErrorCode.VALIDATION_ERROR
                )

            if message.file:
                storage, name = message.file.storage, message.file.name
                transaction.on_commit(lambda: storage.delete(name))

            message.is_deleted = True
            message.save(update_fields=["is_deleted", "updated_at"])
            cls._publish(message, "message.updated")

        cls.get_logger().info(f"User {user.id} deleted file of message {message.id}")
        return ServiceResult.success(message)

    @classmethod
    def create_call_message(
        cls,
        call: Call,
        content: str,
        duration: int | None = None,
    ) -> Message:
        """
        Post a call summary into the call's conversation or group.

        The sender is the call's initiator. Must run inside the caller's
        transaction so the summary commits together with the call status.
        """
        return cls._create(
            call.initiator,
            call.target,
            content=content,
            message_type=MessageType.CALL,
            call_duration=duration,
        )
