"""
Django admin configuration for calls.

Calls are read-only here: the status field is a protected FSM field and
only changes through CallService.
"""

from django.contrib import admin

from calls.models import Call, CallParticipant


class CallParticipantInline(admin.TabularInline):
    model = CallParticipant
    extra = 0
    readonly_fields = ["user", "joined_at", "left_at"]
    can_delete = False


@admin.register(Call)
class CallAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "call_type",
        "status",
        "initiator",
        "conversation",
        "group",
        "duration",
        "created_at",
    ]
    list_filter = ["status", "call_type", "created_at"]
    search_fields = ["id", "room_name", "initiator__email"]
    readonly_fields = [
        "status",
        "room_name",
        "started_at",
        "ended_at",
        "duration",
        "created_at",
        "updated_at",
    ]
    raw_id_fields = ["conversation", "group", "initiator"]
    inlines = [CallParticipantInline]
    ordering = ["-created_at"]
