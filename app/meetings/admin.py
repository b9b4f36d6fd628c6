"""
Django admin configuration for meetings.
"""

from django.contrib import admin

from meetings.models import CalendarEvent, MeetingRequest, MeetingUpdateRequest


@admin.register(CalendarEvent)
class CalendarEventAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "user", "start_time", "end_time", "is_public", "meeting_request"]
    list_filter = ["is_public", "is_all_day"]
    search_fields = ["title", "user__email"]
    raw_id_fields = ["user", "meeting_request"]
    ordering = ["-start_time"]


@admin.register(MeetingRequest)
class MeetingRequestAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "requester", "recipient", "status", "proposed_start_time"]
    list_filter = ["status", "created_at"]
    search_fields = ["title", "requester__email", "recipient__email"]
    readonly_fields = ["status", "responded_at", "created_at", "updated_at"]
    raw_id_fields = ["requester", "recipient", "event"]


@admin.register(MeetingUpdateRequest)
class MeetingUpdateRequestAdmin(admin.ModelAdmin):
    list_display = ["id", "meeting_request", "requested_by", "respondent", "status", "created_at"]
    list_filter = ["status"]
    readonly_fields = ["status", "responded_at", "created_at", "updated_at"]
    raw_id_fields = ["meeting_request", "requested_by", "respondent"]
