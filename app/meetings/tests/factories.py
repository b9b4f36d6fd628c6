"""
Factory Boy factories for meeting models.

Usage:
    from meetings.tests.factories import (
        CalendarEventFactory,
        MeetingRequestFactory,
        MeetingUpdateRequestFactory,
        approved_meeting,
    )

    event = CalendarEventFactory(user=ada)
    request = MeetingRequestFactory(requester=ada, recipient=grace)
    request, (recipient_event, requester_event) = approved_meeting(ada, grace)
"""

from datetime import timedelta

import factory
from django.utils import timezone

from authentication.tests.factories import UserFactory
from meetings.models import CalendarEvent, MeetingRequest, MeetingStatus, MeetingUpdateRequest


def _tomorrow_at(hour: int):
    now = timezone.now()
    return (now + timedelta(days=1)).replace(hour=hour, minute=0, second=0, microsecond=0)


class MeetingRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MeetingRequest

    requester = factory.SubFactory(UserFactory)
    recipient = factory.SubFactory(UserFactory)
    title = factory.Sequence(lambda n: f"Meeting {n}")
    proposed_start_time = factory.LazyFunction(lambda: _tomorrow_at(10))
    proposed_end_time = factory.LazyAttribute(lambda o: o.proposed_start_time + timedelta(hours=1))
    status = MeetingStatus.PENDING


class CalendarEventFactory(factory.django.DjangoModelFactory):
    """Solo one-hour event tomorrow morning."""

    class Meta:
        model = CalendarEvent

    user = factory.SubFactory(UserFactory)
    title = factory.Sequence(lambda n: f"Event {n}")
    start_time = factory.LazyFunction(lambda: _tomorrow_at(9))
    end_time = factory.LazyAttribute(lambda o: o.start_time + timedelta(hours=1))


class MeetingUpdateRequestFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = MeetingUpdateRequest

    meeting_request = factory.SubFactory(MeetingRequestFactory, status=MeetingStatus.APPROVED)
    requested_by = factory.LazyAttribute(lambda o: o.meeting_request.requester)
    respondent = factory.LazyAttribute(lambda o: o.meeting_request.recipient)
    proposed_title = factory.LazyAttribute(lambda o: o.meeting_request.title)
    proposed_start_time = factory.LazyAttribute(
        lambda o: o.meeting_request.proposed_start_time + timedelta(hours=2)
    )
    proposed_end_time = factory.LazyAttribute(lambda o: o.proposed_start_time + timedelta(hours=1))
    status = MeetingStatus.PENDING


def approved_meeting(requester, recipient, **kwargs):
    """
    An approved MeetingRequest with both linked events, built without the service.

    Returns:
        (request, (recipient_event, requester_event))
    """
    request = MeetingRequestFactory(
        requester=requester,
        recipient=recipient,
        status=MeetingStatus.APPROVED,
        **kwargs,
    )
    events = tuple(
        CalendarEventFactory(
            user=owner,
            title=request.title,
            start_time=request.proposed_start_time,
            end_time=request.proposed_end_time,
            meeting_request=request,
        )
        for owner in (recipient, requester)
    )
    MeetingRequest.objects.filter(pk=request.pk).update(event=events[0])
    return request, events
