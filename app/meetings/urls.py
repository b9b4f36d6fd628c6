"""
URL configuration for the meetings API.

All URLs are prefixed with /api/v1/meetings/ in the main URL configuration.
See meetings/views.py for the endpoint list.
"""

from rest_framework.routers import SimpleRouter

from meetings.views import (
    CalendarEventViewSet,
    MeetingRequestViewSet,
    MeetingUpdateRequestViewSet,
)

router = SimpleRouter()
router.register(r"events", CalendarEventViewSet, basename="event")
router.register(r"requests", MeetingRequestViewSet, basename="meeting-request")
router.register(r"update-requests", MeetingUpdateRequestViewSet, basename="update-request")

app_name = "meetings"

urlpatterns = router.urls
