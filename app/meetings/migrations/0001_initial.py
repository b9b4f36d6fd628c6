import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models

STATUS_CHOICES = [("pending", "Pending"), ("approved", "Approved"), ("denied", "Denied")]


def _uuid_pk():
    return (
        "id",
        models.UUIDField(
            default=uuid.uuid4,
            editable=False,
            help_text="Unique identifier for this record",
            primary_key=True,
            serialize=False,
        ),
    )


def _negotiation():
    return [
        (
            "status",
            django_fsm.FSMField(
                choices=STATUS_CHOICES,
                db_index=True,
                default="pending",
                help_text="Current state of the request (managed by FSM)",
                max_length=50,
                protected=True,
            ),
        ),
        ("response_message", models.TextField(blank=True, default="")),
        ("responded_at", models.DateTimeField(blank=True, null=True)),
    ]


def _timestamps():
    return [
        (
            "created_at",
            models.DateTimeField(
                auto_now_add=True,
                db_index=True,
                help_text="Timestamp when this record was created",
            ),
        ),
        (
            "updated_at",
            models.DateTimeField(
                auto_now=True,
                help_text="Timestamp when this record was last modified",
            ),
        ),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="MeetingRequest",
            fields=[
                _uuid_pk(),
                *_negotiation(),
                *_timestamps(),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("proposed_start_time", models.DateTimeField()),
                ("proposed_end_time", models.DateTimeField()),
                (
                    "requester",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_meeting_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_meeting_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "meetings_meeting_request",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["recipient", "status"], name="meeting_recipient_status_idx"),
                    models.Index(fields=["requester", "status"], name="meeting_requester_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("proposed_end_time__gt", models.F("proposed_start_time"))),
                        name="meeting_request_end_after_start",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("requester", models.F("recipient")), _negated=True),
                        name="meeting_request_not_self",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CalendarEvent",
            fields=[
                _uuid_pk(),
                *_timestamps(),
                ("title", models.CharField(max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("is_all_day", models.BooleanField(default=False)),
                ("is_public", models.BooleanField(default=False)),
                (
                    "meeting_request",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="events",
                        to="meetings.meetingrequest",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="calendar_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "meetings_calendar_event",
                "ordering": ["start_time"],
                "indexes": [
                    models.Index(fields=["user", "start_time"], name="event_user_start_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_time__gt", models.F("start_time"))),
                        name="calendar_event_end_after_start",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="meetingrequest",
            name="event",
            field=models.ForeignKey(
                blank=True,
                help_text="Recipient's calendar event, once approved",
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="+",
                to="meetings.calendarevent",
            ),
        ),
        migrations.CreateModel(
            name="MeetingUpdateRequest",
            fields=[
                _uuid_pk(),
                *_negotiation(),
                *_timestamps(),
                ("proposed_title", models.CharField(max_length=200)),
                ("proposed_description", models.TextField(blank=True, default="")),
                ("proposed_start_time", models.DateTimeField()),
                ("proposed_end_time", models.DateTimeField()),
                ("proposed_is_all_day", models.BooleanField(default=False)),
                ("proposed_is_public", models.BooleanField(default=False)),
                (
                    "meeting_request",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="update_requests",
                        to="meetings.meetingrequest",
                    ),
                ),
                (
                    "requested_by",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "respondent",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="meeting_update_requests",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "meetings_update_request",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["respondent", "status"], name="update_respondent_status_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status", "pending")),
                        fields=("meeting_request",),
                        name="one_pending_update_per_meeting",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("proposed_end_time__gt", models.F("proposed_start_time"))),
                        name="update_request_end_after_start",
                    ),
                ],
            },
        ),
    ]
