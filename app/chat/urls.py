"""
URL configuration for chat API.

URL Structure:
    Conversations:
        /conversations/                     GET, POST
        /conversations/{id}/                GET
        /conversations/{id}/messages/       GET

    Groups:
        /groups/                            GET, POST
        /groups/{id}/                       GET, PATCH
        /groups/{id}/members/               POST
        /groups/{id}/members/remove/        POST
        /groups/{id}/members/role/          POST
        /groups/{id}/messages/              GET

    Messages:
        /messages/                          POST
        /messages/{id}/                     PATCH, DELETE
        /messages/{id}/file/                DELETE
        /messages/files/                    POST
        /messages/files/validate/           POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from rest_framework.routers import SimpleRouter

from chat.views import DirectConversationViewSet, GroupViewSet, MessageViewSet

router = SimpleRouter()
router.register(r"conversations", DirectConversationViewSet, basename="conversation")
router.register(r"groups", GroupViewSet, basename="group")
router.register(r"messages", MessageViewSet, basename="message")

app_name = "chat"

urlpatterns = router.urls
