"""
ViewSets for chat API.

This module provides REST API endpoints for the chat system:
- DirectConversationViewSet: 1:1 conversations and their history
- GroupViewSet: Groups, membership and their history
- MessageViewSet: Sending, editing and deleting messages and files

URL Structure:
    /api/v1/chat/conversations/                   GET, POST
    /api/v1/chat/conversations/{id}/              GET
    /api/v1/chat/conversations/{id}/messages/     GET
    /api/v1/chat/groups/                          GET, POST
    /api/v1/chat/groups/{id}/                     GET, PATCH
    /api/v1/chat/groups/{id}/members/             POST
    /api/v1/chat/groups/{id}/members/remove/      POST
    /api/v1/chat/groups/{id}/members/role/        POST
    /api/v1/chat/groups/{id}/messages/            GET
    /api/v1/chat/messages/                        POST
    /api/v1/chat/messages/{id}/                   PATCH, DELETE
    /api/v1/chat/messages/{id}/file/              DELETE
    /api/v1/chat/messages/files/                  POST (multipart)
    /api/v1/chat/messages/files/validate/         POST

Design Decisions:
    - ViewSets are GenericViewSets; every operation goes through the
      service layer, which does authorization
    - Service failures are mapped to HTTP by core.views.service_error_response
    - Message history uses cursor pagination (newest first)
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from chat.attachments import validate_file
from chat.pagination import MessageCursorPagination
from chat.serializers import (
    DirectConversationCreateSerializer,
    DirectConversationSerializer,
    FileMessageCreateSerializer,
    FileValidateSerializer,
    FileValidationResultSerializer,
    GroupCreateSerializer,
    GroupDetailSerializer,
    GroupListSerializer,
    GroupMembersSerializer,
    GroupUpdateSerializer,
    MemberIdsResponseSerializer,
    MemberRoleSerializer,
    MessageCreateSerializer,
    MessageSerializer,
    MessageUpdateSerializer,
)
from chat.services import ConversationService, GroupService, MessageService
from chat.targets import ConversationTarget, GroupTarget
from core.views import service_error_response

UUID_LOOKUP = "[0-9a-f-]{36}"


class MessageHistoryMixin:
    """Paginated message history for a Target."""

    def message_history(self, request, target):
        result = MessageService.list_messages(request.user, target)
        if not result.success:
            return service_error_response(result)

        paginator = MessageCursorPagination()
        page = paginator.paginate_queryset(result.data, request, view=self)
        serializer = MessageSerializer(page, many=True, context={"request": request})
        return paginator.get_paginated_response(serializer.data)


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List direct conversations",
        description="Most recently active first, with the other participant and last message.",
        tags=["Chat - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get direct conversation",
        responses={
            200: DirectConversationSerializer,
            403: OpenApiResponse(description="Not a participant"),
            404: OpenApiResponse(description="Conversation not found"),
        },
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="open_conversation",
        summary="Get or create direct conversation",
        description="Returns the existing conversation with the user if there is one.",
        request=DirectConversationCreateSerializer,
        responses={200: DirectConversationSerializer},
        tags=["Chat - Conversations"],
    ),
)
class DirectConversationViewSet(MessageHistoryMixin, viewsets.GenericViewSet):
    """
    ViewSet for direct conversations.

    list:
        Conversations of the current user.

    create:
        Open the conversation with another user (idempotent).

    retrieve:
        Conversation details (participants only).

    messages:
        Message history, newest first, cursor paginated.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = DirectConversationSerializer
    lookup_value_regex = UUID_LOOKUP

    def list(self, request):
        conversations = ConversationService.list_for_user(request.user)
        serializer = DirectConversationSerializer(
            conversations, many=True, context={"request": request}
        )
        return Response(serializer.data)

    def create(self, request):
        serializer = DirectConversationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.get_or_create_direct(
            request.user, serializer.validated_data["user_id"]
        )
        if not result.success:
            return service_error_response(result)

        return Response(
            DirectConversationSerializer(result.data, context={"request": request}).data
        )

    def retrieve(self, request, pk=None):
        result = ConversationService.get_for_user(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(
            DirectConversationSerializer(result.data, context={"request": request}).data
        )

    @extend_schema(
        operation_id="list_conversation_messages",
        summary="List conversation messages",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["get"])
    def messages(self, request, pk=None):
        return self.message_history(request, ConversationTarget(pk))


@extend_schema_view(
    list=extend_schema(
        operation_id="list_groups",
        summary="List groups",
        responses={200: GroupListSerializer(many=True)},
        tags=["Chat - Groups"],
    ),
    retrieve=extend_schema(
        operation_id="get_group",
        summary="Get group with members",
        responses={200: GroupDetailSerializer},
        tags=["Chat - Groups"],
    ),
    create=extend_schema(
        operation_id="create_group",
        summary="Create group",
        description="The creator becomes admin. Unknown member ids are ignored.",
        request=GroupCreateSerializer,
        responses={201: GroupDetailSerializer},
        tags=["Chat - Groups"],
    ),
    partial_update=extend_schema(
        operation_id="update_group",
        summary="Update group name or description",
        request=GroupUpdateSerializer,
        responses={200: GroupDetailSerializer},
        tags=["Chat - Groups"],
    ),
)
class GroupViewSet(MessageHistoryMixin, viewsets.GenericViewSet):
    """
    ViewSet for group chats.

    Membership changes are admin-only except removing yourself.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = GroupDetailSerializer
    lookup_value_regex = UUID_LOOKUP

    def _detail_response(self, request, group, status_code=status.HTTP_200_OK):
        serializer = GroupDetailSerializer(group, context={"request": request})
        return Response(serializer.data, status=status_code)

    def list(self, request):
        groups = GroupService.list_for_user(request.user)
        return Response(GroupListSerializer(groups, many=True, context={"request": request}).data)

    def create(self, request):
        serializer = GroupCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.create_group(request.user, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)
        return self._detail_response(request, result.data, status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None):
        result = GroupService.get_for_user(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return self._detail_response(request, result.data)

    def partial_update(self, request, pk=None):
        serializer = GroupUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.update_group(request.user, pk, **serializer.validated_data)
        if not result.success:
            return service_error_response(result)
        return self._detail_response(request, result.data)

    @extend_schema(
        operation_id="add_group_members",
        summary="Add members (admin only)",
        request=GroupMembersSerializer,
        responses={200: MemberIdsResponseSerializer},
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"])
    def members(self, request, pk=None):
        serializer = GroupMembersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.add_members(
            request.user, pk, serializer.validated_data["member_ids"]
        )
        if not result.success:
            return service_error_response(result)
        return Response({"member_ids": result.data})

    @extend_schema(
        operation_id="remove_group_members",
        summary="Remove members",
        description="Admins can remove anyone; members can only remove themselves.",
        request=GroupMembersSerializer,
        responses={200: MemberIdsResponseSerializer},
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"], url_path="members/remove")
    def remove_members(self, request, pk=None):
        serializer = GroupMembersSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.remove_members(
            request.user, pk, serializer.validated_data["member_ids"]
        )
        if not result.success:
            return service_error_response(result)
        return Response({"member_ids": result.data})

    @extend_schema(
        operation_id="update_group_member_role",
        summary="Change a member's role (admin only)",
        request=MemberRoleSerializer,
        responses={200: None},
        tags=["Chat - Groups"],
    )
    @action(detail=True, methods=["post"], url_path="members/role")
    def member_role(self, request, pk=None):
        serializer = MemberRoleSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = GroupService.update_member_role(
            request.user,
            pk,
            serializer.validated_data["user_id"],
            serializer.validated_data["role"],
        )
        if not result.success:
            return service_error_response(result)
        return Response({"user_id": result.data.user_id, "role": result.data.role})

    @extend_schema(
        operation_id="list_group_messages",
        summary="List group messages",
        responses={200: MessageSerializer(many=True)},
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["get"])
    def messages(self, request, pk=None):
        return self.message_history(request, GroupTarget(pk))


@extend_schema_view(
    create=extend_schema(
        operation_id="send_message",
        summary="Send text message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
        tags=["Chat - Messages"],
    ),
    partial_update=extend_schema(
        operation_id="edit_message",
        summary="Edit message text (sender only)",
        request=MessageUpdateSerializer,
        responses={200: MessageSerializer},
        tags=["Chat - Messages"],
    ),
    destroy=extend_schema(
        operation_id="delete_message",
        summary="Delete message (sender only)",
        responses={204: None},
        tags=["Chat - Messages"],
    ),
)
class MessageViewSet(viewsets.GenericViewSet):
    """
    ViewSet for message operations.

    Messages are addressed to a target by conversation_id or group_id in
    the request body.
    """

    permission_classes = [IsAuthenticated]
    serializer_class = MessageSerializer
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    lookup_value_regex = UUID_LOOKUP

    def _message_response(self, request, message, status_code=status.HTTP_200_OK):
        serializer = MessageSerializer(message, context={"request": request})
        return Response(serializer.data, status=status_code)

    def create(self, request):
        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = MessageService.send_message(request.user, data["target"], data["content"])
        if not result.success:
            return service_error_response(result)
        return self._message_response(request, result.data, status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = MessageUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.edit_message(
            request.user, pk, serializer.validated_data["content"]
        )
        if not result.success:
            return service_error_response(result)
        return self._message_response(request, result.data)

    def destroy(self, request, pk=None):
        result = MessageService.delete_message(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="delete_message_file",
        summary="Delete attachment (sender only)",
        responses={204: None},
        tags=["Chat - Files"],
    )
    @action(detail=True, methods=["delete"])
    def file(self, request, pk=None):
        result = MessageService.delete_file(request.user, pk)
        if not result.success:
            return service_error_response(result)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        operation_id="send_file_message",
        summary="Upload attachment",
        description="Max 20MB. The file type is detected from its content.",
        request={"multipart/form-data": FileMessageCreateSerializer},
        responses={201: MessageSerializer},
        tags=["Chat - Files"],
    )
    @action(detail=False, methods=["post"])
    def files(self, request):
        serializer = FileMessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = MessageService.send_file_message(
            request.user, data["target"], data["file"], data.get("caption", "")
        )
        if not result.success:
            return service_error_response(result)
        return self._message_response(request, result.data, status.HTTP_201_CREATED)

    @extend_schema(
        operation_id="validate_file",
        summary="Check a file before uploading",
        request=FileValidateSerializer,
        responses={200: FileValidationResultSerializer},
        tags=["Chat - Files"],
    )
    @action(detail=False, methods=["post"], url_path="files/validate")
    def validate_upload(self, request):
        serializer = FileValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        check = validate_file(data["file_name"], data["file_type"], data["file_size"])
        return Response(check.to_dict())
