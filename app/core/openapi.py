"""
OpenAPI schema customizations for drf-spectacular.

dj-rest-auth views carry no tags or summaries of their own, so their
operations end up ungrouped in ReDoc. The postprocessing hook below puts
them under "Auth" with readable summaries and declares descriptions for
the tags used by the app views.

Tag naming follows the pattern: [App Name] - [Group Name]
"""

DJ_REST_AUTH_SUMMARIES = {
    "auth_login_create": ("Log in", "Authenticate with email and password to receive JWT tokens."),
    "auth_logout_create": ("Log out", "Blacklist the refresh token."),
    "auth_token_refresh_create": ("Refresh access token", "Exchange a refresh token for a new access token."),
    "auth_token_verify_create": ("Verify token", "Check that a JWT is valid."),
    "auth_password_change_create": ("Change password", None),
    "auth_password_reset_create": ("Request password reset", "Email a password reset link."),
    "auth_password_reset_confirm_create": ("Confirm password reset", None),
    "auth_registration_create": ("Register", "Create an account with email and password."),
}

TAG_DESCRIPTIONS = [
    ("Auth", "Login, logout, registration, password and token management."),
    ("Users", "Profiles, user search and presence."),
    ("Chat - Conversations", "One-to-one conversations."),
    ("Chat - Groups", "Group chats and their membership."),
    ("Chat - Messages", "Sending, editing and deleting messages."),
    ("Chat - Files", "Attachments and pre-upload validation."),
    ("Calls", "Audio and video calls and their media tokens."),
    ("Meetings - Requests", "Proposing and answering meetings."),
    ("Meetings - Events", "Calendar events and public availability."),
    ("Meetings - Update Requests", "Changes to shared meetings awaiting approval."),
    ("Notifications", "In-app notification inbox."),
    ("Notifications - Push", "Web push subscriptions."),
]


def group_auth_endpoints(result, generator, request, public):
    """
    Postprocessing hook: tag and summarize dj-rest-auth operations.

    Registered in SPECTACULAR_SETTINGS["POSTPROCESSING_HOOKS"].
    """
    for methods in result.get("paths", {}).values():
        for operation in methods.values():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")
            if not operation_id.startswith("auth_"):
                continue

            operation["tags"] = ["Auth"]
            if operation_id in DJ_REST_AUTH_SUMMARIES:
                summary, description = DJ_REST_AUTH_SUMMARIES[operation_id]
                operation["summary"] = summary
                if description:
                    operation["description"] = description

    result["tags"] = [{"name": name, "description": text} for name, text in TAG_DESCRIPTIONS]
    return result
