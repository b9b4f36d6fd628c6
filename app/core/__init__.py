"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (authentication, chat,
calls, meetings, notifications). Nothing in here knows about calls or
meetings.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling
    - ErrorCode: Shared failure codes (NOT_FOUND, NOT_AUTHORIZED, ...)

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ExternalServiceError: Third-party service failures
    - api_exception_handler: DRF exception handler

Views (import from core.views):
    - health_check: Liveness/readiness endpoint
    - service_error_response: ServiceResult failure -> DRF Response
"""
