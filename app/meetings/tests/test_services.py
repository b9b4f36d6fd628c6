"""
Tests for meeting services.

Test Classes:
    TestValidateSlot: Title and time range checks
    TestRequestMeeting: Proposing a meeting
    TestRespondToRequest: Approve creates linked events, deny does not
    TestCancelRequest: Requester withdraws a pending request
    TestCalendarEvents: Solo event CRUD, visibility and public calendar
    TestLinkedEventUpdates: Edits to shared meetings need approval
    TestRespondToMeetingUpdate: Approve patches both events, deny changes nothing
"""

from datetime import timedelta
from unittest.mock import patch

import pytest
from django.db import IntegrityError

from core.services import ErrorCode
from meetings.models import CalendarEvent, MeetingRequest, MeetingStatus, MeetingUpdateRequest
from meetings.services import (
    PENDING_UPDATE_ERROR,
    CalendarEventService,
    MeetingRequestService,
    MeetingUpdateService,
    validate_slot,
)
from meetings.tests.factories import (
    CalendarEventFactory,
    MeetingRequestFactory,
    MeetingUpdateRequestFactory,
)
from notifications.models import Notification, NotificationType


def event_times(request):
    return set(
        CalendarEvent.objects.filter(meeting_request=request).values_list(
            "title", "start_time", "end_time"
        )
    )


class TestValidateSlot:
    def test_valid(self, slot):
        start, end = slot

        assert validate_slot("Standup", start, end) is None

    def test_end_before_start_checked_first(self, slot):
        start, end = slot

        result = validate_slot("", end, start)

        assert result.error == "End time must be after start time"

    def test_equal_times_rejected(self, slot):
        start, _ = slot

        assert validate_slot("Standup", start, start).error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.parametrize("title", ["", "   ", None])
    def test_blank_title(self, slot, title):
        start, end = slot

        assert validate_slot(title, start, end).error == "Title cannot be empty"


@pytest.mark.django_db
class TestRequestMeeting:
    """Tests for MeetingRequestService.request_meeting()."""

    def test_creates_pending_request(self, user, other_user, slot):
        start, end = slot

        result = MeetingRequestService.request_meeting(
            user, other_user.pk, "  Roadmap sync ", start, end, description="Q3"
        )

        assert result.success
        request = MeetingRequest.objects.get(pk=result.data.pk)
        assert request.status == MeetingStatus.PENDING
        assert request.title == "Roadmap sync"
        assert request.requester == user
        assert request.recipient == other_user
        assert not CalendarEvent.objects.exists()

    def test_notifies_recipient(self, user, other_user, slot, django_capture_on_commit_callbacks):
        start, end = slot

        with django_capture_on_commit_callbacks(execute=True):
            result = MeetingRequestService.request_meeting(user, other_user.pk, "Roadmap sync", start, end)

        notification = Notification.objects.get(recipient=other_user)
        assert notification.notification_type == NotificationType.MEETING_REQUEST
        assert notification.title == "New meeting request"
        assert notification.body == "Ada Lovelace requested: Roadmap sync"
        assert notification.reference_id == str(result.data.id)

    def test_unknown_recipient(self, user, slot):
        start, end = slot

        result = MeetingRequestService.request_meeting(user, 999_999, "Sync", start, end)

        assert result.error_code == ErrorCode.NOT_FOUND
        assert result.error == "Recipient not found"

    def test_cannot_request_self(self, user, slot):
        start, end = slot

        result = MeetingRequestService.request_meeting(user, user.pk, "Sync", start, end)

        assert result.error == "Cannot request meeting with yourself"

    def test_blank_title(self, user, other_user, slot):
        start, end = slot

        result = MeetingRequestService.request_meeting(user, other_user.pk, "", start, end)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.error == "Title cannot be empty"
        assert not MeetingRequest.objects.exists()

    def test_invalid_slot(self, user, other_user, slot):
        start, end = slot

        result = MeetingRequestService.request_meeting(user, other_user.pk, "Sync", end, start)

        assert result.error == "End time must be after start time"
        assert not MeetingRequest.objects.exists()


@pytest.mark.django_db
class TestRespondToRequest:
    """Tests for MeetingRequestService.respond_to_request()."""

    def test_approve_creates_two_linked_events(self, pending_request, user, other_user):
        """
        Given a pending request from Ada to Grace
        When Grace approves it
        Then each of them has an event with the proposed times, linked to the request
        """
        result = MeetingRequestService.respond_to_request(
            other_user, pending_request.pk, MeetingStatus.APPROVED, "Works for me"
        )

        assert result.success
        request = MeetingRequest.objects.get(pk=pending_request.pk)
        assert request.status == MeetingStatus.APPROVED
        assert request.response_message == "Works for me"
        events = CalendarEvent.objects.filter(meeting_request=request)
        assert {event.user_id for event in events} == {user.pk, other_user.pk}
        assert event_times(request) == {
            ("Roadmap sync", pending_request.proposed_start_time, pending_request.proposed_end_time)
        }
        assert request.event.user == other_user

    def test_deny_creates_no_events(self, pending_request, other_user):
        result = MeetingRequestService.respond_to_request(
            other_user, pending_request.pk, MeetingStatus.DENIED
        )

        assert result.success
        assert MeetingRequest.objects.get(pk=pending_request.pk).status == MeetingStatus.DENIED
        assert not CalendarEvent.objects.exists()

    def test_only_recipient_may_respond(self, pending_request, user):
        result = MeetingRequestService.respond_to_request(
            user, pending_request.pk, MeetingStatus.APPROVED
        )

        assert result.error_code == ErrorCode.NOT_AUTHORIZED
        assert MeetingRequest.objects.get(pk=pending_request.pk).is_pending

    def test_cannot_respond_twice(self, pending_request, other_user):
        MeetingRequestService.respond_to_request(other_user, pending_request.pk, MeetingStatus.DENIED)

        result = MeetingRequestService.respond_to_request(
            other_user, pending_request.pk, MeetingStatus.APPROVED
        )

        assert result.error_code == ErrorCode.ALREADY_TERMINAL
        assert result.error == "Request has already been responded to"
        assert not CalendarEvent.objects.exists()

    def test_rejects_pending_as_answer(self, pending_request, other_user):
        result = MeetingRequestService.respond_to_request(
            other_user, pending_request.pk, MeetingStatus.PENDING
        )

        assert result.error == "Status must be approved or denied"
        assert MeetingRequest.objects.get(pk=pending_request.pk).status == MeetingStatus.PENDING

    def test_unknown_request(self, other_user):
        result = MeetingRequestService.respond_to_request(
            other_user, "00000000-0000-0000-0000-000000000000", MeetingStatus.APPROVED
        )

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_notifies_requester(self, pending_request, user, other_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            MeetingRequestService.respond_to_request(
                other_user, pending_request.pk, MeetingStatus.DENIED
            )

        notification = Notification.objects.get(recipient=user)
        assert notification.notification_type == NotificationType.MEETING_RESPONSE
        assert notification.title == "Meeting request declined"
        assert notification.body == "Grace Hopper declined: Roadmap sync"

    def test_publishes_to_both(self, pending_request, user, other_user, django_capture_on_commit_callbacks):
        with patch("notifications.tasks.broadcast_user_event.delay") as mock_delay:
            with django_capture_on_commit_callbacks(execute=True):
                MeetingRequestService.respond_to_request(
                    other_user, pending_request.pk, MeetingStatus.APPROVED
                )

        responded = [
            call.kwargs["user_id"]
            for call in mock_delay.call_args_list
            if call.kwargs["event"] == "meeting.responded"
        ]
        assert sorted(responded) == sorted([user.pk, other_user.pk])


@pytest.mark.django_db
class TestCancelRequest:
    def test_requester_cancels(self, pending_request, user):
        result = MeetingRequestService.cancel_request(user, pending_request.pk)

        assert result.success
        assert not MeetingRequest.objects.filter(pk=pending_request.pk).exists()

    def test_recipient_cannot_cancel(self, pending_request, other_user):
        result = MeetingRequestService.cancel_request(other_user, pending_request.pk)

        assert result.error == "Not authorized to cancel this request"

    def test_answered_request_cannot_be_cancelled(self, user, other_user):
        request = MeetingRequestFactory(requester=user, recipient=other_user, status=MeetingStatus.DENIED)

        result = MeetingRequestService.cancel_request(user, request.pk)

        assert result.error_code == ErrorCode.ALREADY_TERMINAL
        assert result.error == "Can only cancel pending requests"


@pytest.mark.django_db
class TestRequestLists:
    def test_pending_for_recipient_only(self, pending_request, user, other_user):
        MeetingRequestFactory(requester=user, recipient=other_user, status=MeetingStatus.APPROVED)

        assert list(MeetingRequestService.list_pending_requests(other_user)) == [pending_request]
        assert not MeetingRequestService.list_pending_requests(user).exists()

    def test_sent_filtered_by_status(self, pending_request, user, other_user):
        denied = MeetingRequestFactory(requester=user, recipient=other_user, status=MeetingStatus.DENIED)

        assert set(MeetingRequestService.list_sent_requests(user)) == {pending_request, denied}
        assert list(MeetingRequestService.list_sent_requests(user, MeetingStatus.DENIED)) == [denied]


@pytest.mark.django_db
class TestCalendarEvents:
    """Tests for CalendarEventService on solo events."""

    def test_create(self, user, slot):
        start, end = slot

        result = CalendarEventService.create_event(user, " Gym ", start, end, is_public=True)

        assert result.success
        event = CalendarEvent.objects.get(pk=result.data.pk)
        assert event.title == "Gym"
        assert event.is_public
        assert not event.is_linked

    def test_create_rejects_reversed_times(self, user, slot):
        start, end = slot

        result = CalendarEventService.create_event(user, "Gym", end, start)

        assert result.error == "End time must be after start time"
        assert not CalendarEvent.objects.exists()

    def test_update_solo_event_applies_directly(self, user):
        event = CalendarEventFactory(user=user, title="Gym")
        new_start = event.start_time + timedelta(hours=3)

        result = CalendarEventService.update_event(
            user, event.pk, title="Swim", start_time=new_start, end_time=new_start + timedelta(hours=1)
        )

        assert result.success
        assert not result.data.requires_approval
        event.refresh_from_db()
        assert event.title == "Swim"
        assert event.start_time == new_start

    def test_update_ignores_none_values(self, user):
        event = CalendarEventFactory(user=user, title="Gym", description="Legs")

        CalendarEventService.update_event(user, event.pk, title=None, description="Arms")

        event.refresh_from_db()
        assert (event.title, event.description) == ("Gym", "Arms")

    def test_update_validates_merged_range(self, user):
        event = CalendarEventFactory(user=user)

        result = CalendarEventService.update_event(
            user, event.pk, start_time=event.end_time + timedelta(minutes=5)
        )

        assert result.error == "End time must be after start time"

    def test_update_reversed_range_leaves_event_unchanged(self, user):
        event = CalendarEventFactory(user=user, title="Gym")

        result = CalendarEventService.update_event(
            user, event.pk, title="Swim", start_time=event.end_time, end_time=event.start_time
        )

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert result.error == "End time must be after start time"
        unchanged = CalendarEvent.objects.get(pk=event.pk)
        assert (unchanged.title, unchanged.start_time) == ("Gym", event.start_time)

    def test_update_unknown_field(self, user):
        event = CalendarEventFactory(user=user)

        result = CalendarEventService.update_event(user, event.pk, user_id=5)

        assert result.error_code == ErrorCode.VALIDATION_ERROR

    def test_update_other_users_event(self, user, other_user):
        event = CalendarEventFactory(user=other_user)

        result = CalendarEventService.update_event(user, event.pk, title="Mine now")

        assert result.error == "Not authorized to update this event"

    def test_delete_own_event(self, user):
        event = CalendarEventFactory(user=user)

        assert CalendarEventService.delete_event(user, event.pk).success
        assert not CalendarEvent.objects.exists()

    def test_delete_linked_event_keeps_other_copy(self, meeting, user):
        request, (grace_event, ada_event) = meeting

        result = CalendarEventService.delete_event(user, ada_event.pk)

        assert result.success
        assert list(CalendarEvent.objects.filter(meeting_request=request)) == [grace_event]

    def test_cannot_delete_others_event(self, user, other_user):
        event = CalendarEventFactory(user=other_user)

        result = CalendarEventService.delete_event(user, event.pk)

        assert result.error_code == ErrorCode.NOT_AUTHORIZED
        assert CalendarEvent.objects.filter(pk=event.pk).exists()

    def test_list_events_in_range(self, user, other_user):
        inside = CalendarEventFactory(user=user)
        later = inside.start_time + timedelta(days=10)
        CalendarEventFactory(user=user, start_time=later, end_time=later + timedelta(hours=1))
        CalendarEventFactory(user=other_user, start_time=inside.start_time, end_time=inside.end_time)

        events = CalendarEventService.list_events(
            user, inside.start_time - timedelta(hours=1), inside.start_time + timedelta(days=1)
        )

        assert list(events) == [inside]

    def test_get_event_visibility(self, user, other_user):
        private = CalendarEventFactory(user=other_user)
        public = CalendarEventFactory(user=other_user, is_public=True)

        assert CalendarEventService.get_event(user, public.pk).data == public
        assert CalendarEventService.get_event(other_user, private.pk).success
        result = CalendarEventService.get_event(user, private.pk)
        assert result.error == "Not authorized to view this event"

    def test_public_calendar_exposes_times_only(self, user, other_user):
        public = CalendarEventFactory(user=other_user, title="Therapy", is_public=True)
        CalendarEventFactory(user=other_user, start_time=public.start_time, end_time=public.end_time)

        slots = CalendarEventService.get_public_calendar(
            other_user.pk, public.start_time - timedelta(hours=1), public.end_time
        )

        assert slots == [
            {
                "id": public.id,
                "start_time": public.start_time,
                "end_time": public.end_time,
                "is_all_day": False,
            }
        ]


@pytest.mark.django_db
class TestLinkedEventUpdates:
    """Edits to events of an approved meeting."""

    def test_edit_creates_update_request_and_leaves_events(self, meeting, user, other_user):
        """
        Given an approved meeting between Ada and Grace
        When Ada moves her copy by two hours
        Then neither event changes and Grace has a pending update request
        """
        request, (grace_event, ada_event) = meeting
        new_start = ada_event.start_time + timedelta(hours=2)

        result = CalendarEventService.update_event(
            user, ada_event.pk, start_time=new_start, end_time=new_start + timedelta(hours=1)
        )

        assert result.success
        outcome = result.data
        assert outcome.requires_approval
        assert outcome.message == (
            "Grace Hopper must approve the change before it takes effect. "
            "They have been notified."
        )
        update_request = MeetingUpdateRequest.objects.get()
        assert update_request == outcome.update_request
        assert update_request.respondent == other_user
        assert update_request.requested_by == user
        assert update_request.proposed_start_time == new_start
        assert update_request.proposed_title == "Design review"
        assert event_times(request) == {
            ("Design review", request.proposed_start_time, request.proposed_end_time)
        }

    def test_second_edit_while_pending_is_rejected(self, meeting, user, other_user):
        """
        Given a pending update request for a meeting
        When either participant tries another edit
        Then it is rejected and nothing changes
        """
        request, (grace_event, ada_event) = meeting
        CalendarEventService.update_event(user, ada_event.pk, title="Renamed")

        first = CalendarEventService.update_event(user, ada_event.pk, title="Renamed again")
        second = CalendarEventService.update_event(other_user, grace_event.pk, title="Other name")

        assert first.error == PENDING_UPDATE_ERROR
        assert second.error == PENDING_UPDATE_ERROR
        assert MeetingUpdateRequest.objects.count() == 1
        assert CalendarEvent.objects.get(pk=ada_event.pk).title == "Design review"

    def test_invalid_edit_creates_no_request(self, meeting, user):
        _, (_, ada_event) = meeting

        result = CalendarEventService.update_event(user, ada_event.pk, title="  ")

        assert result.error == "Title cannot be empty"
        assert not MeetingUpdateRequest.objects.exists()

    def test_reversed_range_edit_reports_time_error(self, meeting, user):
        _, (_, ada_event) = meeting

        result = CalendarEventService.update_event(
            user, ada_event.pk, start_time=ada_event.end_time, end_time=ada_event.start_time
        )

        assert result.error == "End time must be after start time"
        assert not MeetingUpdateRequest.objects.exists()

    def test_pending_error_wins_over_invalid_edit(self, meeting, user):
        """
        Given a pending update request for a meeting
        When Ada submits an edit with a blank title
        Then she is told about the pending request, not the title
        """
        _, (_, ada_event) = meeting
        CalendarEventService.update_event(user, ada_event.pk, title="Renamed")

        result = CalendarEventService.update_event(user, ada_event.pk, title=" ")

        assert result.error == PENDING_UPDATE_ERROR

    def test_concurrent_insert_maps_to_pending_error(self, meeting, user):
        """
        Given no pending proposal when Ada starts her edit
        When another proposal commits first and her insert hits the constraint
        Then she gets the pending error
        """
        _, (_, ada_event) = meeting

        with (
            patch.object(
                CalendarEventService, "_has_pending_update", side_effect=[False, True]
            ),
            patch(
                "meetings.services.MeetingUpdateRequest.objects.create",
                side_effect=IntegrityError("duplicate"),
            ),
        ):
            result = CalendarEventService.update_event(user, ada_event.pk, title="Race")

        assert result.error == PENDING_UPDATE_ERROR

    def test_other_integrity_errors_propagate(self, meeting, user):
        _, (_, ada_event) = meeting

        with patch(
            "meetings.services.MeetingUpdateRequest.objects.create",
            side_effect=IntegrityError("CHECK constraint failed"),
        ):
            with pytest.raises(IntegrityError):
                CalendarEventService.update_event(user, ada_event.pk, title="Race")

    def test_notifies_other_participant(self, meeting, user, other_user, django_capture_on_commit_callbacks):
        _, (_, ada_event) = meeting

        with django_capture_on_commit_callbacks(execute=True):
            CalendarEventService.update_event(user, ada_event.pk, title="Design review v2")

        notification = Notification.objects.get(recipient=other_user)
        assert notification.notification_type == NotificationType.MEETING_UPDATE_REQUEST
        assert notification.body == "Ada Lovelace wants to update: Design review v2"


@pytest.mark.django_db
class TestRespondToMeetingUpdate:
    """Tests for MeetingUpdateService.respond_to_meeting_update()."""

    @pytest.fixture
    def proposal(self, meeting, user):
        _, (_, ada_event) = meeting
        new_start = ada_event.start_time + timedelta(days=1)
        result = CalendarEventService.update_event(
            user,
            ada_event.pk,
            title="Design review (moved)",
            start_time=new_start,
            end_time=new_start + timedelta(minutes=30),
        )
        return result.data.update_request

    def test_approve_patches_both_events_identically(self, meeting, proposal, other_user):
        request, _ = meeting

        result = MeetingUpdateService.respond_to_meeting_update(
            other_user, proposal.pk, MeetingStatus.APPROVED
        )

        assert result.success
        assert MeetingUpdateRequest.objects.get(pk=proposal.pk).status == MeetingStatus.APPROVED
        assert event_times(request) == {
            (
                "Design review (moved)",
                proposal.proposed_start_time,
                proposal.proposed_end_time,
            )
        }
        assert CalendarEvent.objects.filter(meeting_request=request).count() == 2

    def test_deny_changes_nothing(self, meeting, proposal, other_user):
        request, _ = meeting

        result = MeetingUpdateService.respond_to_meeting_update(
            other_user, proposal.pk, MeetingStatus.DENIED, "Can't make it"
        )

        assert result.success
        denied = MeetingUpdateRequest.objects.get(pk=proposal.pk)
        assert denied.status == MeetingStatus.DENIED
        assert denied.response_message == "Can't make it"
        assert event_times(request) == {
            ("Design review", request.proposed_start_time, request.proposed_end_time)
        }

    def test_new_edit_allowed_after_answer(self, meeting, proposal, user, other_user):
        _, (_, ada_event) = meeting
        MeetingUpdateService.respond_to_meeting_update(other_user, proposal.pk, MeetingStatus.DENIED)

        result = CalendarEventService.update_event(user, ada_event.pk, title="Another try")

        assert result.data.requires_approval

    def test_requester_cannot_answer_own_proposal(self, proposal, user):
        result = MeetingUpdateService.respond_to_meeting_update(
            user, proposal.pk, MeetingStatus.APPROVED
        )

        assert result.error_code == ErrorCode.NOT_AUTHORIZED

    def test_cannot_answer_twice(self, proposal, other_user):
        MeetingUpdateService.respond_to_meeting_update(other_user, proposal.pk, MeetingStatus.DENIED)

        result = MeetingUpdateService.respond_to_meeting_update(
            other_user, proposal.pk, MeetingStatus.APPROVED
        )

        assert result.error_code == ErrorCode.ALREADY_TERMINAL
        assert result.error == "This update request has already been responded to"

    def test_notifies_requester(self, proposal, user, other_user, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True):
            MeetingUpdateService.respond_to_meeting_update(
                other_user, proposal.pk, MeetingStatus.APPROVED
            )

        notification = Notification.objects.get(recipient=user)
        assert notification.title == "Meeting change approved"
        assert notification.body == "Grace Hopper approved: Design review (moved)"

    def test_pending_list(self, proposal, user, other_user):
        assert list(MeetingUpdateService.list_pending_update_requests(other_user)) == [proposal]
        assert not MeetingUpdateService.list_pending_update_requests(user).exists()

    def test_factory_built_proposal(self, meeting, other_user):
        request, _ = meeting
        update_request = MeetingUpdateRequestFactory(meeting_request=request)

        MeetingUpdateService.respond_to_meeting_update(
            other_user, update_request.pk, MeetingStatus.APPROVED
        )

        assert event_times(request) == {
            (request.title, update_request.proposed_start_time, update_request.proposed_end_time)
        }

    def test_blank_title_proposal_cannot_be_approved(self, meeting, other_user):
        request, (grace_event, ada_event) = meeting
        update_request = MeetingUpdateRequestFactory(meeting_request=request, proposed_title="")

        result = MeetingUpdateService.respond_to_meeting_update(
            other_user, update_request.pk, MeetingStatus.APPROVED
        )

        assert result.error == "Title cannot be empty"
        assert set(
            CalendarEvent.objects.filter(meeting_request=request).values_list("title", flat=True)
        ) == {"Design review"}
        assert MeetingUpdateRequest.objects.get(pk=update_request.pk).is_pending
