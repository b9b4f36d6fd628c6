"""
Call lifecycle service.

CallService owns every status change of a Call:

    create_call  -> RINGING (initiator joined, presence inCall)
    join_call    -> RINGING becomes ACTIVE on first answer
    leave_call   -> last active participant leaving an ACTIVE call ENDS it
    end_call     -> RINGING becomes MISSED, ACTIVE becomes ENDED

Each operation runs in one transaction with the call row locked
(select_for_update), so two participants leaving at the same moment
cannot both miss the "nobody left" check. Exactly one summary message
("Call ended - Duration: ..." or "Missed call") is written per call, in
the same transaction as the terminal transition.

Usage:
    from calls.services import CallService

    result = CallService.create_call(user, conversation.target, CallType.VIDEO)
    if result:
        session = result.data
        session.call, session.room_name, session.media.token
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.db.models import QuerySet
from django.utils import timezone

from authentication.services import PresenceService
from calls.media_tokens import MediaToken, mint_access_token
from calls.models import (
    LIVE_STATUSES,
    Call,
    CallParticipant,
    CallStatus,
    CallType,
)
from chat.authorization import ChatAuthorizationService
from chat.services import MessageService
from core.helpers import epoch_ms, generate_token
from core.services import BaseService, ErrorCode, ServiceResult
from notifications.models import NotificationType
from notifications.services import RealtimeService, notify_many

if TYPE_CHECKING:
    from authentication.models import User
    from chat.targets import Target


ROOM_NAME_PREFIX = "huddleup"
DEFAULT_HISTORY_LIMIT = 20
MISSED_CALL_MESSAGE = "Missed call"


def format_duration(ms: int) -> str:
    """
    Human readable call length.

    Examples:
        format_duration(3_725_000)  # "1h 2m"
        format_duration(185_000)    # "3m 5s"
        format_duration(42_000)     # "42s"
    """
    seconds = ms // 1000
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


def generate_room_name() -> str:
    """Unique media room name: timestamp plus random suffix."""
    return f"{ROOM_NAME_PREFIX}-{epoch_ms()}-{generate_token(4)}"


@dataclass
class CallSession:
    """What a caller needs to connect to the media room."""

    call: Call
    media: MediaToken

    @property
    def room_name(self) -> str:
        return self.call.room_name


class CallService(BaseService):
    """
    Service for the call state machine.

    Methods:
        create_call: Start ringing a conversation or group
        join_call: Answer or re-join a call
        leave_call: Leave; the last one out ends an active call
        end_call: Force-terminate (idempotent on terminal calls)
        expire_ringing_call: Mark an unanswered call as missed
        get_active_call: The call the user is currently in
        get_incoming_calls: Ringing calls the user can answer
        get_call_history: Recent calls of a conversation or group
    """

    # =========================================================================
    # Transitions
    # =========================================================================

    @classmethod
    def create_call(
        cls,
        user: User,
        target: Target | None,
        call_type: str,
    ) -> ServiceResult[CallSession]:
        """
        Start a call in a conversation or group.

        Args:
            user: Initiator
            target: ConversationTarget or GroupTarget (None if the request
                named neither or both)
            call_type: audio or video

        Returns:
            ServiceResult with a CallSession for the initiator
        """
        if target is None:
            return ServiceResult.failure(
                "Must specify either conversation_id or group_id",
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        if call_type not in CallType.values:
            return ServiceResult.failure(
                f"Unknown call type: {call_type}",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        denied = cls._check_access(user, target)
        if denied is not None:
            return denied

        with cls.atomic():
            call = Call.objects.create(
                **target.model_kwargs(),
                initiator=user,
                call_type=call_type,
                room_name=generate_room_name(),
            )
            CallParticipant.objects.create(call=call, user=user, joined_at=call.created_at)
            PresenceService.set_in_call(user)

            recipients = [
                uid for uid in ChatAuthorizationService.get_member_ids(target) if uid != user.pk
            ]
            notify_many(
                recipients,
                notification_type=NotificationType.CALL,
                title=f"Incoming {call_type} call",
                body=f"{user.display_name} is calling you",
                reference_id=str(call.id),
                reference_type="call",
                url="/",
            )
            RealtimeService.publish(recipients, "call.incoming", cls._event_payload(call))
            session = cls._session(call, user)

        cls.get_logger().info(
            f"Call {call.id} ({call_type}) started by user {user.id} in {target.kind} {target.id}"
        )
        return ServiceResult.success(session)

    @classmethod
    def join_call(cls, user: User, call_id) -> ServiceResult[CallSession]:
        """
        Join (or re-join) a call.

        The first join of a ringing call makes it active. A participant
        who left earlier gets their row reactivated.

        Returns:
            ServiceResult with a fresh CallSession for the caller
        """
        with cls.atomic():
            call = cls._lock(call_id)
            if call is None:
                return cls._call_not_found()

            if call.is_terminal:
                return ServiceResult.failure(
                    "Call has already ended", error_code=ErrorCode.ALREADY_TERMINAL
                )

            if not ChatAuthorizationService.can_access_target(user, call.target):
                return ServiceResult.failure(
                    "Not authorized to join this call",
                    error_code=ErrorCode.NOT_AUTHORIZED,
                )

            now = timezone.now()
            participant, created = CallParticipant.objects.get_or_create(
                call=call,
                user=user,
                defaults={"joined_at": now},
            )
            if not created and participant.left_at is not None:
                participant.joined_at = now
                participant.left_at = None
                participant.save(update_fields=["joined_at", "left_at", "updated_at"])

            if call.status == CallStatus.RINGING:
                call.activate(now)
                call.save()
                cls.get_logger().info(f"Call {call.id} answered by user {user.id}")

            PresenceService.set_in_call(user)
            cls._publish_update(call)
            session = cls._session(call, user)

        return ServiceResult.success(session)

    @classmethod
    def leave_call(cls, user: User, call_id) -> ServiceResult[Call]:
        """
        Leave a call.

        Leaving twice, or leaving a call never joined, only restores
        presence. When nobody is left in an active call, it ends and a
        duration summary is posted.
        """
        with cls.atomic():
            call = cls._lock(call_id)
            if call is None:
                return cls._call_not_found()

            now = timezone.now()
            CallParticipant.objects.filter(
                call=call, user=user, left_at__isnull=True
            ).update(left_at=now, updated_at=now)

            PresenceService.restore_after_call([user.pk])

            still_in_call = call.participants.filter(left_at__isnull=True).exists()
            if not still_in_call and call.status == CallStatus.ACTIVE:
                call.end(now)
                call.save()
                MessageService.create_call_message(
                    call,
                    f"Call ended - Duration: {format_duration(call.duration)}",
                    duration=call.duration,
                )
                cls.get_logger().info(
                    f"Call {call.id} ended after last participant left ({call.duration}ms)"
                )
                cls._publish_update(call)

        return ServiceResult.success(call)

    @classmethod
    def end_call(cls, user: User, call_id) -> ServiceResult[Call]:
        """
        Terminate a call for everyone.

        Any authenticated user may end a call. A ringing call becomes
        missed, an active one ended. Ending a call that is already ended
        or missed returns it unchanged.
        """
        with cls.atomic():
            call = cls._lock(call_id)
            if call is None:
                return cls._call_not_found()

            if call.is_terminal:
                return ServiceResult.success(call)

            cls._terminate(call)

        cls.get_logger().info(f"Call {call.id} {call.status} by user {user.id}")
        return ServiceResult.success(call)

    @classmethod
    def expire_ringing_call(cls, call_id) -> bool:
        """
        Mark a call that is still ringing as missed.

        Returns:
            True if the call was expired, False if it was answered or
            finished in the meantime
        """
        with cls.atomic():
            call = cls._lock(call_id)
            if call is None or call.status != CallStatus.RINGING:
                return False
            cls._terminate(call)

        cls.get_logger().info(f"Call {call.id} expired unanswered")
        return True

    # =========================================================================
    # Queries
    # =========================================================================

    @classmethod
    def get_active_call(cls, user: User) -> Call | None:
        """The ringing or active call the user has not left, if any."""
        participation = (
            CallParticipant.objects.filter(
                user=user,
                left_at__isnull=True,
                call__status__in=LIVE_STATUSES,
            )
            .select_related("call", "call__initiator")
            .order_by("-joined_at")
            .first()
        )
        return participation.call if participation else None

    @classmethod
    def get_incoming_calls(cls, user: User) -> QuerySet[Call]:
        """Ringing calls on the user's conversations and groups, not started by them."""
        return (
            Call.objects.filter(status=CallStatus.RINGING)
            .filter(ChatAuthorizationService.accessible_target_q(user))
            .exclude(initiator=user)
            .select_related("initiator")
            .order_by("-created_at")
        )

    @classmethod
    def get_call_history(
        cls,
        user: User,
        target: Target | None,
        limit: int | None = None,
    ) -> list[Call]:
        """
        Most recent calls of a conversation or group, newest first.

        Returns an empty list when the target is missing or the user
        cannot access it.
        """
        if target is None or not ChatAuthorizationService.can_access_target(user, target):
            return []

        return list(
            Call.objects.filter(**target.filter_kwargs())
            .select_related("initiator")
            .order_by("-created_at")[: limit or DEFAULT_HISTORY_LIMIT]
        )

    @classmethod
    def ringing_calls_older_than(cls, seconds: int) -> list:
        cutoff = timezone.now() - timedelta(seconds=seconds)
        return list(
            Call.objects.filter(status=CallStatus.RINGING, created_at__lt=cutoff).values_list(
                "id", flat=True
            )
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    @classmethod
    def _check_access(cls, user: User, target: Target) -> ServiceResult | None:
        if not ChatAuthorizationService.target_exists(target):
            what = "Conversation" if target.kind == "conversation" else "Group"
            return ServiceResult.failure(f"{what} not found", error_code=ErrorCode.NOT_FOUND)
        if not ChatAuthorizationService.can_access_target(user, target):
            return ServiceResult.failure(
                "Not authorized to start a call here",
                error_code=ErrorCode.NOT_AUTHORIZED,
            )
        return None

    @classmethod
    def _lock(cls, call_id) -> Call | None:
        return (
            Call.objects.select_for_update()
            .select_related("initiator")
            .filter(pk=call_id)
            .first()
        )

    @staticmethod
    def _call_not_found() -> ServiceResult:
        return ServiceResult.failure("Call not found", error_code=ErrorCode.NOT_FOUND)

    @classmethod
    def _terminate(cls, call: Call) -> None:
        """
        Move a live call to its terminal state. Caller holds the row lock.

        Every active participant is marked as left and anyone still shown
        as inCall goes back to active.
        """
        now = timezone.now()

        if call.status == CallStatus.RINGING:
            call.miss(now)
            content = MISSED_CALL_MESSAGE
        else:
            call.end(now)
            content = f"Call ended - Duration: {format_duration(call.duration)}"
        call.save()

        participant_ids = list(call.participants.values_list("user_id", flat=True))
        call.participants.filter(left_at__isnull=True).update(left_at=now, updated_at=now)
        PresenceService.restore_after_call(participant_ids, only_if_in_call=True)

        MessageService.create_call_message(call, content, duration=call.duration)
        cls._publish_update(call)

    @classmethod
    def _session(cls, call: Call, user: User) -> CallSession:
        media = mint_access_token(call.room_name, user.email, user.display_name)
        return CallSession(call=call, media=media)

    @staticmethod
    def _event_payload(call: Call) -> dict:
        return {
            "call_id": str(call.id),
            "status": call.status,
            "call_type": call.call_type,
            "room_name": call.room_name,
            "target_type": call.target.kind,
            "target_id": str(call.target.id),
            "initiator_id": call.initiator_id,
        }

    @classmethod
    def _publish_update(cls, call: Call) -> None:
        RealtimeService.publish(
            ChatAuthorizationService.get_member_ids(call.target),
            "call.updated",
            cls._event_payload(call),
        )
