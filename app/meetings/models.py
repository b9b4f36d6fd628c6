"""
Meeting and calendar models.

Models:
    MeetingRequest: One user proposing a meeting to another
    CalendarEvent: An event on one user's calendar
    MeetingUpdateRequest: A proposed change to a shared meeting

State Flow (MeetingRequest and MeetingUpdateRequest):
    PENDING -> APPROVED
    PENDING -> DENIED

    Both are protected FSMFields; APPROVED and DENIED are terminal.

Linked events:
    Approving a MeetingRequest creates one CalendarEvent per participant,
    both pointing back at the request. Their owners can no longer edit
    them directly; a MeetingUpdateRequest has to be approved by the other
    participant, and at most one may be pending per meeting.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django_fsm import FSMField, transition

from core.models import BaseModel, UUIDPrimaryKeyMixin


class MeetingStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    DENIED = "denied", "Denied"


RESPONSE_STATUSES = (MeetingStatus.APPROVED, MeetingStatus.DENIED)


class NegotiationMixin(models.Model):
    """
    Pending/approved/denied state shared by meeting and update requests.

    Fields:
        status: Current FSM state
        response_message: Optional note from the responder
        responded_at: When the request was approved or denied
    """

    status = FSMField(
        default=MeetingStatus.PENDING,
        choices=MeetingStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current state of the request (managed by FSM)",
    )
    response_message = models.TextField(blank=True, default="")
    responded_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        abstract = True

    @property
    def is_pending(self) -> bool:
        return self.status == MeetingStatus.PENDING

    @transition(field=status, source=MeetingStatus.PENDING, target=MeetingStatus.APPROVED)
    def approve(self, message: str = ""):
        """Transition: PENDING -> APPROVED"""
        self.response_message = message
        self.responded_at = timezone.now()

    @transition(field=status, source=MeetingStatus.PENDING, target=MeetingStatus.DENIED)
    def deny(self, message: str = ""):
        """Transition: PENDING -> DENIED"""
        self.response_message = message
        self.responded_at = timezone.now()

    def respond(self, status: str, message: str = "") -> None:
        if status == MeetingStatus.APPROVED:
            self.approve(message)
        elif status == MeetingStatus.DENIED:
            self.deny(message)
        else:
            raise ValueError(f"Cannot respond with status {status!r}")


class MeetingRequest(UUIDPrimaryKeyMixin, NegotiationMixin, BaseModel):
    """
    A proposal from requester to recipient for a meeting.

    Fields:
        requester: User proposing the meeting
        recipient: User asked to approve it
        title / description: What the meeting is about
        proposed_start_time / proposed_end_time: Proposed slot
        event: The recipient's CalendarEvent, set on approval

    Constraints:
        - CheckConstraint: proposed_end_time > proposed_start_time
        - CheckConstraint: requester != recipient
    """

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_meeting_requests",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_meeting_requests",
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    proposed_start_time = models.DateTimeField()
    proposed_end_time = models.DateTimeField()
    event = models.ForeignKey(
        "meetings.CalendarEvent",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Recipient's calendar event, once approved",
    )

    class Meta:
        db_table = "meetings_meeting_request"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient", "status"], name="meeting_recipient_status_idx"),
            models.Index(fields=["requester", "status"], name="meeting_requester_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(proposed_end_time__gt=F("proposed_start_time")),
                name="meeting_request_end_after_start",
            ),
            models.CheckConstraint(
                condition=~Q(requester=F("recipient")),
                name="meeting_request_not_self",
            ),
        ]

    def __str__(self) -> str:
        return f"MeetingRequest({self.id}, {self.title}, {self.status})"

    @property
    def participant_ids(self) -> list:
        return [self.requester_id, self.recipient_id]

    def other_participant_id(self, user_id):
        if user_id == self.requester_id:
            return self.recipient_id
        return self.requester_id


class CalendarEvent(UUIDPrimaryKeyMixin, BaseModel):
    """
    An event on a user's calendar.

    Fields:
        user: Owner
        title / description: Event details
        start_time / end_time: Time slot, end strictly after start
        is_all_day: Whole-day event
        is_public: Visible to other users (times only, on the public calendar)
        meeting_request: Set on the two events created for an approved
            meeting; such events only change through MeetingUpdateRequest
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="calendar_events",
    )
    title = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    is_all_day = models.BooleanField(default=False)
    is_public = models.BooleanField(default=False)
    meeting_request = models.ForeignKey(
        MeetingRequest,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="events",
    )

    class Meta:
        db_table = "meetings_calendar_event"
        ordering = ["start_time"]
        indexes = [
            models.Index(fields=["user", "start_time"], name="event_user_start_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_time__gt=F("start_time")),
                name="calendar_event_end_after_start",
            ),
        ]

    def __str__(self) -> str:
        return f"CalendarEvent({self.id}, {self.title})"

    @property
    def is_linked(self) -> bool:
        return self.meeting_request_id is not None


class MeetingUpdateRequest(UUIDPrimaryKeyMixin, NegotiationMixin, BaseModel):
    """
    A proposed change to both events of a shared meeting.

    The proposed_* fields hold the complete new values (unchanged fields
    are copied from the event), so approving applies them verbatim to
    both events.

    Constraints:
        - At most one pending row per meeting_request (partial unique)
        - CheckConstraint: proposed_end_time > proposed_start_time
    """

    meeting_request = models.ForeignKey(
        MeetingRequest,
        on_delete=models.CASCADE,
        related_name="update_requests",
    )
    requested_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="+",
    )
    respondent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="meeting_update_requests",
    )
    proposed_title = models.CharField(max_length=200)
    proposed_description = models.TextField(blank=True, default="")
    proposed_start_time = models.DateTimeField()
    proposed_end_time = models.DateTimeField()
    proposed_is_all_day = models.BooleanField(default=False)
    proposed_is_public = models.BooleanField(default=False)

    class Meta:
        db_table = "meetings_update_request"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["respondent", "status"], name="update_respondent_status_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["meeting_request"],
                condition=Q(status=MeetingStatus.PENDING),
                name="one_pending_update_per_meeting",
            ),
            models.CheckConstraint(
                condition=Q(proposed_end_time__gt=F("proposed_start_time")),
                name="update_request_end_after_start",
            ),
        ]

    def __str__(self) -> str:
        return f"MeetingUpdateRequest({self.id}, {self.status})"

    def event_fields(self) -> dict:
        """Proposed values keyed by CalendarEvent field name."""
        return {
            "title": self.proposed_title,
            "description": self.proposed_description,
            "start_time": self.proposed_start_time,
            "end_time": self.proposed_end_time,
            "is_all_day": self.proposed_is_all_day,
            "is_public": self.proposed_is_public,
        }
