"""
Call models.

Models:
    Call: An audio or video call in a direct conversation or a group
    CallParticipant: A user's presence in a call

State Flow:
    RINGING -> ACTIVE -> ENDED
    RINGING -> MISSED

    ENDED and MISSED are terminal. The status field is a protected
    FSMField, so it can only change through the transitions below.

Usage:
    from calls.models import Call, CallStatus

    call = Call.objects.select_for_update().get(pk=call_id)
    call.activate()
    call.save()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django_fsm import FSMField, transition

from chat.targets import ConversationTarget, GroupTarget
from core.models import BaseModel, UUIDPrimaryKeyMixin

if TYPE_CHECKING:
    from chat.targets import Target


class CallType(models.TextChoices):
    AUDIO = "audio", "Audio"
    VIDEO = "video", "Video"


class CallStatus(models.TextChoices):
    """
    Lifecycle state of a call.

    RINGING: Created, nobody has answered yet
    ACTIVE: At least one other participant joined
    ENDED: Everyone left, or someone ended it while active
    MISSED: Ended while still ringing
    """

    RINGING = "ringing", "Ringing"
    ACTIVE = "active", "Active"
    ENDED = "ended", "Ended"
    MISSED = "missed", "Missed"


TERMINAL_STATUSES = (CallStatus.ENDED, CallStatus.MISSED)
LIVE_STATUSES = (CallStatus.RINGING, CallStatus.ACTIVE)


class Call(UUIDPrimaryKeyMixin, BaseModel):
    """
    A call placed in a conversation or a group.

    Fields:
        conversation: Direct conversation (set XOR group)
        group: Group (set XOR conversation)
        initiator: User who started the call
        call_type: audio or video
        status: Current FSM state
        room_name: Media room identifier, unique per call
        started_at: When the call became active
        ended_at: When the call ended or was missed
        duration: ended_at - started_at in milliseconds (ended calls only)

    Constraints:
        - CheckConstraint: exactly one of conversation/group is set
        - room_name is unique
    """

    conversation = models.ForeignKey(
        "chat.DirectConversation",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="calls",
    )
    group = models.ForeignKey(
        "chat.Group",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="calls",
    )
    initiator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="initiated_calls",
    )
    call_type = models.CharField(
        max_length=10,
        choices=CallType.choices,
        default=CallType.VIDEO,
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=CallStatus.RINGING,
        choices=CallStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the call (managed by FSM)",
    )

    room_name = models.CharField(
        max_length=100,
        unique=True,
        help_text="Media room the participants connect to",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    started_at = models.DateTimeField(null=True, blank=True)
    ended_at = models.DateTimeField(null=True, blank=True)
    duration = models.PositiveBigIntegerField(
        null=True,
        blank=True,
        help_text="Call duration in milliseconds",
    )

    class Meta:
        db_table = "calls_call"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["conversation", "-created_at"], name="call_conv_created_idx"),
            models.Index(fields=["group", "-created_at"], name="call_group_created_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(conversation__isnull=False, group__isnull=True)
                    | Q(conversation__isnull=True, group__isnull=False)
                ),
                name="call_exactly_one_target",
            ),
        ]

    def __str__(self) -> str:
        return f"Call({self.id}, {self.call_type}, {self.status})"

    @property
    def target(self) -> Target:
        if self.conversation_id is not None:
            return ConversationTarget(self.conversation_id)
        return GroupTarget(self.group_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=CallStatus.RINGING, target=CallStatus.ACTIVE)
    def activate(self, now=None):
        """
        Someone answered.

        Transition: RINGING -> ACTIVE
        """
        self.started_at = now or timezone.now()

    @transition(field=status, source=CallStatus.ACTIVE, target=CallStatus.ENDED)
    def end(self, now=None):
        """
        Finish an answered call and record its duration.

        Transition: ACTIVE -> ENDED
        """
        self.ended_at = now or timezone.now()
        if self.started_at:
            elapsed = self.ended_at - self.started_at
            self.duration = max(int(elapsed.total_seconds() * 1000), 0)
        else:
            self.duration = 0

    @transition(field=status, source=CallStatus.RINGING, target=CallStatus.MISSED)
    def miss(self, now=None):
        """
        Nobody answered.

        Transition: RINGING -> MISSED

        No duration is recorded for a missed call.
        """
        self.ended_at = now or timezone.now()
        self.duration = None


class CallParticipant(BaseModel):
    """
    A user's participation in a call.

    A participant is active while left_at is null. Re-joining clears
    left_at on the existing row instead of adding a second one.

    Constraints:
        - UniqueConstraint(call, user)
    """

    call = models.ForeignKey(
        Call,
        on_delete=models.CASCADE,
        related_name="participants",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="call_participations",
    )
    joined_at = models.DateTimeField(default=timezone.now)
    left_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = "calls_participant"
        ordering = ["joined_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["call", "user"],
                name="unique_call_participant",
            ),
        ]

    def __str__(self) -> str:
        state = "left" if self.left_at else "active"
        return f"CallParticipant: {self.user_id} in {self.call_id} ({state})"

    @property
    def is_active(self) -> bool:
        return self.left_at is None
