import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


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


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DirectConversation",
            fields=[
                _uuid_pk(),
                *_timestamps(),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Timestamp of most recent message",
                        null=True,
                    ),
                ),
                (
                    "user_lower",
                    models.ForeignKey(
                        help_text="Participant with the lower id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "user_higher",
                    models.ForeignKey(
                        help_text="Participant with the higher id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_direct_conversation",
                "ordering": ["-last_message_at", "-created_at"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("user_lower", "user_higher"),
                        name="unique_direct_conversation_pair",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("user_lower_id__lt", models.F("user_higher_id"))),
                        name="direct_user_lower_less_than_higher",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Group",
            fields=[
                _uuid_pk(),
                *_timestamps(),
                ("name", models.CharField(help_text="Group display name", max_length=100)),
                (
                    "description",
                    models.TextField(blank=True, default="", help_text="Optional group description"),
                ),
                (
                    "last_message_at",
                    models.DateTimeField(
                        blank=True,
                        db_index=True,
                        help_text="Timestamp of most recent message",
                        null=True,
                    ),
                ),
                (
                    "creator",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who created this group",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_groups",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_group",
                "ordering": ["-last_message_at", "-created_at"],
            },
        ),
        migrations.CreateModel(
            name="GroupMember",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                *_timestamps(),
                (
                    "role",
                    models.CharField(
                        choices=[("admin", "Admin"), ("member", "Member")],
                        db_index=True,
                        default="member",
                        max_length=10,
                    ),
                ),
                (
                    "joined_at",
                    models.DateTimeField(auto_now_add=True, help_text="When the user joined the group"),
                ),
                (
                    "group",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="memberships",
                        to="chat.group",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="group_memberships",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_group_member",
                "ordering": ["joined_at"],
                "constraints": [
                    models.UniqueConstraint(fields=("group", "user"), name="unique_group_membership"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                _uuid_pk(),
                *_timestamps(),
                (
                    "content",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Message text, file caption or call summary",
                    ),
                ),
                (
                    "message_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("file", "File"),
                            ("system", "System"),
                            ("call", "Call"),
                        ],
                        db_index=True,
                        default="text",
                        max_length=10,
                    ),
                ),
                ("file", models.FileField(blank=True, max_length=255, upload_to="chat/attachments/%Y/%m/")),
                ("file_name", models.CharField(blank=True, default="", max_length=255)),
                ("file_type", models.CharField(blank=True, default="", max_length=127)),
                ("file_size", models.PositiveBigIntegerField(blank=True, null=True)),
                (
                    "call_duration",
                    models.PositiveBigIntegerField(
                        blank=True, help_text="Call duration in milliseconds", null=True
                    ),
                ),
                ("is_deleted", models.BooleanField(db_index=True, default=False)),
                ("edited_at", models.DateTimeField(blank=True, null=True)),
                (
                    "conversation",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.directconversation",
                    ),
                ),
                (
                    "group",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="messages",
                        to="chat.group",
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["conversation", "-created_at"], name="chat_msg_conv_created_idx"),
                    models.Index(fields=["group", "-created_at"], name="chat_msg_group_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(("conversation__isnull", False), ("group__isnull", True)),
                            models.Q(("conversation__isnull", True), ("group__isnull", False)),
                            _connector="OR",
                        ),
                        name="message_exactly_one_target",
                    ),
                ],
            },
        ),
    ]
