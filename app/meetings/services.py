"""
Meeting negotiation services.

Services:
    MeetingRequestService: Propose, approve/deny and cancel meetings
    CalendarEventService: Calendar events; edits to shared meetings become
        update requests instead of being applied
    MeetingUpdateService: Approve or deny a proposed change to a shared meeting

Negotiation rules:
    - Only the recipient answers a meeting request, only while pending
    - Approval creates one linked CalendarEvent per participant
    - A linked event never changes directly: the owner's edit is stored as a
      MeetingUpdateRequest for the other participant, one pending per meeting
    - Approving the update patches both events with the same values

Usage:
    from meetings.services import CalendarEventService, MeetingRequestService

    result = MeetingRequestService.request_meeting(
        ada, grace.id, "Roadmap sync", start, end, description="Q3 planning"
    )
    MeetingRequestService.respond_to_request(grace, result.data.id, "approved")

    result = CalendarEventService.update_event(ada, event.id, start_time=new_start)
    if result.data.requires_approval:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from django.db import IntegrityError, transaction
from django.db.models import QuerySet

from authentication.models import User
from core.services import BaseService, ErrorCode, ServiceResult
from meetings.models import (
    RESPONSE_STATUSES,
    CalendarEvent,
    MeetingRequest,
    MeetingStatus,
    MeetingUpdateRequest,
)
from notifications.models import NotificationType
from notifications.services import RealtimeService, notify

if TYPE_CHECKING:
    from datetime import datetime


EVENT_FIELDS = ("title", "description", "start_time", "end_time", "is_all_day", "is_public")

PENDING_UPDATE_ERROR = (
    "You already have a pending update request for this meeting. "
    "Wait for the other participant to approve or deny it."
)


def _validation(message: str) -> ServiceResult:
    return ServiceResult.failure(message, error_code=ErrorCode.VALIDATION_ERROR)


def validate_slot(title: str | None, start: datetime, end: datetime) -> ServiceResult | None:
    """
    Title and time range checks shared by every calendar write.

    Returns:
        ServiceResult.failure for a blank title or end <= start, else None
    """
    if end <= start:
        return _validation("End time must be after start time")
    if title is None or not title.strip():
        return _validation("Title cannot be empty")
    return None


def _check_response_status(status: str) -> ServiceResult | None:
    if status not in RESPONSE_STATUSES:
        return _validation("Status must be approved or denied")
    return None


@dataclass
class EventUpdateOutcome:
    """
    Result of CalendarEventService.update_event.

    For a solo event the change is applied and requires_approval is False.
    For a linked event nothing changes yet: update_request holds the
    proposal and message tells the caller who has to approve it.
    """

    event: CalendarEvent
    requires_approval: bool = False
    message: str = ""
    update_request: MeetingUpdateRequest | None = None


class MeetingRequestService(BaseService):
    """
    Service for meeting requests between two users.

    Methods:
        request_meeting: Propose a meeting (pending)
        respond_to_request: Approve (creates linked events) or deny
        cancel_request: Requester withdraws a pending request
        list_pending_requests: Requests waiting for the user's answer
        list_sent_requests: Requests the user has sent
    """

    @classmethod
    def request_meeting(
        cls,
        user: User,
        recipient_id,
        title: str,
        proposed_start_time: datetime,
        proposed_end_time: datetime,
        description: str = "",
    ) -> ServiceResult[MeetingRequest]:
        recipient = User.objects.filter(pk=recipient_id, is_active=True).first()
        if recipient is None:
            return ServiceResult.failure("Recipient not found", error_code=ErrorCode.NOT_FOUND)

        if recipient.pk == user.pk:
            return _validation("Cannot request meeting with yourself")

        invalid = validate_slot(title, proposed_start_time, proposed_end_time)
        if invalid is not None:
            return invalid

        with cls.atomic():
            request = MeetingRequest.objects.create(
                requester=user,
                recipient=recipient,
                title=title.strip(),
                description=(description or "").strip(),
                proposed_start_time=proposed_start_time,
                proposed_end_time=proposed_end_time,
            )
            notify(
                recipient_id=recipient.pk,
                notification_type=NotificationType.MEETING_REQUEST,
                title="New meeting request",
                body=f"{user.display_name} requested: {request.title}",
                reference_id=str(request.id),
                reference_type="meeting_request",
                url="/calendar",
            )
            RealtimeService.publish(
                [recipient.pk], "meeting.requested", {"request_id": str(request.id)}
            )

        cls.get_logger().info(
            f"Meeting request {request.id} from user {user.id} to user {recipient.id}"
        )
        return ServiceResult.success(request)

    @classmethod
    def respond_to_request(
        cls,
        user: User,
        request_id,
        status: str,
        message: str = "",
    ) -> ServiceResult[MeetingRequest]:
        """
        Approve or deny a meeting request.

        On approval both participants get a CalendarEvent linked to the
        request, and request.event points at the recipient's copy.
        """
        invalid = _check_response_status(status)
        if invalid is not None:
            return invalid

        with cls.atomic():
            request = (
                MeetingRequest.objects.select_for_update()
                .select_related("requester", "recipient")
                .filter(pk=request_id)
                .first()
            )
            if request is None:
                return ServiceResult.failure(
                    "Meeting request not found", error_code=ErrorCode.NOT_FOUND
                )
            if request.recipient_id != user.pk:
                return ServiceResult.failure(
                    "Not authorized to respond to this request",
                    error_code=ErrorCode.NOT_AUTHORIZED,
                )
            if not request.is_pending:
                return ServiceResult.failure(
                    "Request has already been responded to",
                    error_code=ErrorCode.ALREADY_TERMINAL,
                )

            request.respond(status, (message or "").strip())

            if status == MeetingStatus.APPROVED:
                events = [
                    CalendarEvent.objects.create(
                        user_id=owner_id,
                        title=request.title,
                        description=request.description,
                        start_time=request.proposed_start_time,
                        end_time=request.proposed_end_time,
                        meeting_request=request,
                    )
                    for owner_id in (request.recipient_id, request.requester_id)
                ]
                request.event = events[0]

            request.save()

            verb = "approved" if status == MeetingStatus.APPROVED else "declined"
            notify(
                recipient_id=request.requester_id,
                notification_type=NotificationType.MEETING_RESPONSE,
                title=f"Meeting request {verb}",
                body=f"{user.display_name} {verb}: {request.title}",
                reference_id=str(request.id),
                reference_type="meeting_request",
                url="/calendar",
            )
            RealtimeService.publish(
                request.participant_ids,
                "meeting.responded",
                {"request_id": str(request.id), "status": status},
            )

        cls.get_logger().info(f"Meeting request {request.id} {status} by user {user.id}")
        return ServiceResult.success(request)

    @classmethod
    def cancel_request(cls, user: User, request_id) -> ServiceResult:
        """Delete a pending request. Only its requester may do this."""
        with cls.atomic():
            request = MeetingRequest.objects.select_for_update().filter(pk=request_id).first()
            if request is None:
                return ServiceResult.failure(
                    "Meeting request not found", error_code=ErrorCode.NOT_FOUND
                )
            if request.requester_id != user.pk:
                return ServiceResult.failure(
                    "Not authorized to cancel this request",
                    error_code=ErrorCode.NOT_AUTHORIZED,
                )
            if not request.is_pending:
                return ServiceResult.failure(
                    "Can only cancel pending requests",
                    error_code=ErrorCode.ALREADY_TERMINAL,
                )
            request.delete()

        cls.get_logger().info(f"Meeting request {request_id} cancelled by user {user.id}")
        return ServiceResult.success(request_id)

    @classmethod
    def list_pending_requests(cls, user: User) -> QuerySet[MeetingRequest]:
        return (
            MeetingRequest.objects.filter(recipient=user, status=MeetingStatus.PENDING)
            .select_related("requester")
            .order_by("-created_at")
        )

    @classmethod
    def list_sent_requests(
        cls, user: User, status: str | None = None
    ) -> QuerySet[MeetingRequest]:
        queryset = MeetingRequest.objects.filter(requester=user).select_related("recipient")
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-created_at")


class CalendarEventService(BaseService):
    """
    Service for calendar events.

    Methods:
        create_event: Add a solo event
        update_event: Patch a solo event, or propose a change to a linked one
        delete_event: Owner deletes an event (linked or not)
        list_events: Own events starting within a range
        get_event: Own event, or someone else's public event
        get_public_calendar: Busy slots (times only) of another user
    """

    @classmethod
    def create_event(
        cls,
        user: User,
        title: str,
        start_time: datetime,
        end_time: datetime,
        description: str = "",
        is_all_day: bool = False,
        is_public: bool = False,
    ) -> ServiceResult[CalendarEvent]:
        invalid = validate_slot(title, start_time, end_time)
        if invalid is not None:
            return invalid

        event = CalendarEvent.objects.create(
            user=user,
            title=title.strip(),
            description=(description or "").strip(),
            start_time=start_time,
            end_time=end_time,
            is_all_day=is_all_day,
            is_public=is_public,
        )
        return ServiceResult.success(event)

    @classmethod
    def update_event(cls, user: User, event_id, **changes) -> ServiceResult[EventUpdateOutcome]:
        """
        Change an event.

        Args:
            user: Must own the event
            event_id: Event to change
            **changes: Any of title, description, start_time, end_time,
                is_all_day, is_public; omitted fields keep their values

        Returns:
            ServiceResult with an EventUpdateOutcome. For a linked event
            the outcome has requires_approval=True and the event is unchanged.
        """
        unknown = set(changes) - set(EVENT_FIELDS)
        if unknown:
            return _validation(f"Unknown event fields: {', '.join(sorted(unknown))}")

        with cls.atomic():
            event = CalendarEvent.objects.select_for_update().filter(pk=event_id).first()
            if event is None:
                return ServiceResult.failure("Event not found", error_code=ErrorCode.NOT_FOUND)
            if event.user_id != user.pk:
                return ServiceResult.failure(
                    "Not authorized to update this event",
                    error_code=ErrorCode.NOT_AUTHORIZED,
                )

            merged = cls._merge(event, changes)
            if event.is_linked:
                return cls._propose_update(user, event, merged)

            invalid = validate_slot(merged["title"], merged["start_time"], merged["end_time"])
            if invalid is not None:
                return invalid

            for field, value in merged.items():
                setattr(event, field, value)
            event.save()

        return ServiceResult.success(EventUpdateOutcome(event=event))

    @classmethod
    def delete_event(cls, user: User, event_id) -> ServiceResult:
        """
        Delete an event.

        Linked events are deleted without asking the other participant;
        their copy of the meeting stays on their calendar.
        """
        event = CalendarEvent.objects.filter(pk=event_id).first()
        if event is None:
            return ServiceResult.failure("Event not found", error_code=ErrorCode.NOT_FOUND)
        if event.user_id != user.pk:
            return ServiceResult.failure(
                "Not authorized to delete this event",
                error_code=ErrorCode.NOT_AUTHORIZED,
            )

        event.delete()
        return ServiceResult.success(event_id)

    @classmethod
    def list_events(
        cls, user: User, start: datetime, end: datetime
    ) -> QuerySet[CalendarEvent]:
        """The user's events whose start time lies in [start, end]."""
        return CalendarEvent.objects.filter(
            user=user,
            start_time__gte=start,
            start_time__lte=end,
        ).order_by("start_time")

    @classmethod
    def get_event(cls, user: User, event_id) -> ServiceResult[CalendarEvent]:
        event = CalendarEvent.objects.filter(pk=event_id).first()
        if event is None:
            return ServiceResult.failure("Event not found", error_code=ErrorCode.NOT_FOUND)
        if event.user_id != user.pk and not event.is_public:
            return ServiceResult.failure(
                "Not authorized to view this event",
                error_code=ErrorCode.NOT_AUTHORIZED,
            )
        return ServiceResult.success(event)

    @classmethod
    def get_public_calendar(cls, user_id, start: datetime, end: datetime) -> list[dict]:
        """
        Public events of a user starting in [start, end], times only.

        Titles and descriptions are never exposed here.
        """
        return list(
            CalendarEvent.objects.filter(
                user_id=user_id,
                is_public=True,
                start_time__gte=start,
                start_time__lte=end,
            )
            .order_by("start_time")
            .values("id", "start_time", "end_time", "is_all_day")
        )

    @staticmethod
    def _merge(event: CalendarEvent, changes: dict) -> dict:
        merged = {field: getattr(event, field) for field in EVENT_FIELDS}
        for field, value in changes.items():
            if value is None:
                continue
            merged[field] = value.strip() if field in ("title", "description") else value
        return merged

    @staticmethod
    def _has_pending_update(meeting: MeetingRequest) -> bool:
        return meeting.update_requests.filter(status=MeetingStatus.PENDING).exists()

    @classmethod
    def _propose_update(
        cls, user: User, event: CalendarEvent, merged: dict
    ) -> ServiceResult[EventUpdateOutcome]:
        """Record a pending change for the other participant of a linked event."""
        meeting = (
            MeetingRequest.objects.select_for_update()
            .filter(pk=event.meeting_request_id)
            .first()
        )
        if meeting is None:
            return ServiceResult.failure("Meeting not found", error_code=ErrorCode.NOT_FOUND)

        if cls._has_pending_update(meeting):
            return _validation(PENDING_UPDATE_ERROR)

        invalid = validate_slot(merged["title"], merged["start_time"], merged["end_time"])
        if invalid is not None:
            return invalid

        respondent = User.objects.get(pk=meeting.other_participant_id(user.pk))

        try:
            with transaction.atomic():
                update_request = MeetingUpdateRequest.objects.create(
                    meeting_request=meeting,
                    requested_by=user,
                    respondent=respondent,
                    proposed_title=merged["title"],
                    proposed_description=merged["description"],
                    proposed_start_time=merged["start_time"],
                    proposed_end_time=merged["end_time"],
                    proposed_is_all_day=merged["is_all_day"],
                    proposed_is_public=merged["is_public"],
                )
        except IntegrityError:
            if not cls._has_pending_update(meeting):
                raise
            cls.get_logger().warning(
                f"Concurrent update request for meeting {meeting.id} rejected"
            )
            return _validation(PENDING_UPDATE_ERROR)

        notify(
            recipient_id=respondent.pk,
            notification_type=NotificationType.MEETING_UPDATE_REQUEST,
            title="Meeting change requested",
            body=f"{user.display_name} wants to update: {update_request.proposed_title}",
            reference_id=str(update_request.id),
            reference_type="meeting_update_request",
            url="/calendar",
        )
        RealtimeService.publish(
            [respondent.pk],
            "meeting.update_requested",
            {"update_request_id": str(update_request.id), "request_id": str(meeting.id)},
        )

        cls.get_logger().info(
            f"Update request {update_request.id} for meeting {meeting.id} awaits user {respondent.id}"
        )
        return ServiceResult.success(
            EventUpdateOutcome(
                event=event,
                requires_approval=True,
                message=(
                    f"{respondent.display_name} must approve the change before it "
                    "takes effect. They have been notified."
                ),
                update_request=update_request,
            )
        )


class MeetingUpdateService(BaseService):
    """
    Service for answering proposed changes to shared meetings.

    Methods:
        respond_to_meeting_update: Approve (patch both events) or deny
        list_pending_update_requests: Changes waiting for the user's answer
    """

    @classmethod
    def respond_to_meeting_update(
        cls,
        user: User,
        update_request_id,
        status: str,
        message: str = "",
    ) -> ServiceResult[MeetingUpdateRequest]:
        invalid = _check_response_status(status)
        if invalid is not None:
            return invalid

        with cls.atomic():
            update_request = (
                MeetingUpdateRequest.objects.select_for_update()
                .filter(pk=update_request_id)
                .first()
            )
            if update_request is None:
                return ServiceResult.failure(
                    "Meeting update request not found", error_code=ErrorCode.NOT_FOUND
                )
            if update_request.respondent_id != user.pk:
                return ServiceResult.failure(
                    "Not authorized to respond to this update request",
                    error_code=ErrorCode.NOT_AUTHORIZED,
                )
            if not update_request.is_pending:
                return ServiceResult.failure(
                    "This update request has already been responded to",
                    error_code=ErrorCode.ALREADY_TERMINAL,
                )

            if status == MeetingStatus.APPROVED:
                values = update_request.event_fields()
                invalid = validate_slot(values["title"], values["start_time"], values["end_time"])
                if invalid is not None:
                    return invalid

                events = CalendarEvent.objects.select_for_update().filter(
                    meeting_request_id=update_request.meeting_request_id
                )
                for event in events:
                    for field, value in values.items():
                        setattr(event, field, value)
                    event.save()

            update_request.respond(status, (message or "").strip())
            update_request.save()

            verb = "approved" if status == MeetingStatus.APPROVED else "declined"
            notify(
                recipient_id=update_request.requested_by_id,
                notification_type=NotificationType.MEETING_RESPONSE,
                title=f"Meeting change {verb}",
                body=f"{user.display_name} {verb}: {update_request.proposed_title}",
                reference_id=str(update_request.meeting_request_id),
                reference_type="meeting_request",
                url="/calendar",
            )
            RealtimeService.publish(
                [update_request.requested_by_id, update_request.respondent_id],
                "meeting.updated",
                {
                    "update_request_id": str(update_request.id),
                    "request_id": str(update_request.meeting_request_id),
                    "status": status,
                },
            )

        cls.get_logger().info(f"Update request {update_request.id} {status} by user {user.id}")
        return ServiceResult.success(update_request)

    @classmethod
    def list_pending_update_requests(cls, user: User) -> QuerySet[MeetingUpdateRequest]:
        return (
            MeetingUpdateRequest.objects.filter(respondent=user, status=MeetingStatus.PENDING)
            .select_related("meeting_request", "requested_by")
            .order_by("-created_at")
        )
