"""
Custom exception classes for the PawMatch application.
Every domain rule violation has its own machine-readable error code so callers
can tell them apart without parsing messages.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes shared with the frontend"""

    # Authentication errors (401)
    AUTH_NOT_AUTHENTICATED = "AUTH_NOT_AUTHENTICATED"
    AUTH_TOKEN_INVALID = "AUTH_TOKEN_INVALID"

    # Authorization errors (403)
    AUTHZ_FORBIDDEN = "AUTHZ_FORBIDDEN"
    AUTHZ_NOT_OWNER = "AUTHZ_NOT_OWNER"
    AUTHZ_NOT_PARTICIPANT = "AUTHZ_NOT_PARTICIPANT"
    AUTHZ_FORBIDDEN_OUTCOME = "AUTHZ_FORBIDDEN_OUTCOME"

    # Resource errors (404, 409)
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"
    MATCH_REQUEST_EXISTS = "MATCH_REQUEST_EXISTS"
    MATCH_INVALID_TRANSITION = "MATCH_INVALID_TRANSITION"

    # Validation errors (422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_INVALID_INPUT = "VALIDATION_INVALID_INPUT"
    VALIDATION_UNSUPPORTED_STATUS = "VALIDATION_UNSUPPORTED_STATUS"
    VALIDATION_INVALID_OUTCOME = "VALIDATION_INVALID_OUTCOME"
    VALIDATION_INVALID_LITTER_SIZE = "VALIDATION_INVALID_LITTER_SIZE"
    VALIDATION_NOTES_REQUIRED = "VALIDATION_NOTES_REQUIRED"
    OWNER_RESOLUTION_FAILED = "OWNER_RESOLUTION_FAILED"

    # Rate limiting (429)
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"

    # Server errors (500+)
    SERVER_ERROR = "SERVER_ERROR"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"


class AppException(Exception):
    """
    Base exception class for application errors.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SERVER_ERROR,
        status_code: int = 500,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.field = field
        self.metadata = metadata or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to response dictionary"""
        response = {
            "detail": self.message,
            "code": self.code.value,
        }
        if self.field:
            response["field"] = self.field
        if self.metadata:
            response["metadata"] = self.metadata
        return response


# Authentication Errors (401)


class UnauthenticatedError(AppException):
    """Caller could not be identified"""

    def __init__(
        self,
        message: str = "Not authenticated",
        code: ErrorCode = ErrorCode.AUTH_NOT_AUTHENTICATED,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=401,
        )


class TokenInvalidError(UnauthenticatedError):
    """JWT token is invalid or expired"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message=message, code=ErrorCode.AUTH_TOKEN_INVALID)


# Authorization Errors (403)


class AuthorizationError(AppException):
    """Base authorization error"""

    def __init__(
        self,
        message: str = "You are not allowed to perform this action",
        code: ErrorCode = ErrorCode.AUTHZ_FORBIDDEN,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=403,
            field=field,
            metadata=metadata,
        )


class NotOwnerError(AuthorizationError):
    """Acting user does not own the dog"""

    def __init__(self, message: str = "You can only submit outcomes for your own dog"):
        super().__init__(message=message, code=ErrorCode.AUTHZ_NOT_OWNER, field="dog_id")


class NotParticipantError(AuthorizationError):
    """Dog or user is not part of the match"""

    def __init__(self, message: str = "Selected dog is not part of this match"):
        super().__init__(message=message, code=ErrorCode.AUTHZ_NOT_PARTICIPANT)


class ForbiddenOutcomeError(AuthorizationError):
    """Outcome not permitted for the verifying dog's role"""

    def __init__(
        self,
        message: str = "Male dog's owner may only submit the 'Didn't show up' outcome",
    ):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHZ_FORBIDDEN_OUTCOME,
            field="outcome",
        )


# Resource Errors (404, 409)


class NotFoundError(AppException):
    """Resource not found"""

    def __init__(
        self,
        message: str = "Requested resource was not found",
        resource: str | None = None,
    ):
        metadata = {"resource": resource} if resource else None
        super().__init__(
            message=message,
            code=ErrorCode.RESOURCE_NOT_FOUND,
            status_code=404,
            metadata=metadata,
        )


class ConflictError(AppException):
    """Resource conflict"""

    def __init__(
        self,
        message: str = "Resource is in a conflicting state",
        code: ErrorCode = ErrorCode.RESOURCE_CONFLICT,
        field: str | None = None,
        metadata: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            field=field,
            metadata=metadata,
        )


class ActiveRequestConflictError(ConflictError):
    """An active breeding request already exists in this conversation"""

    def __init__(
        self,
        active_request: Any,
        message: str = "A breeding request is already awaiting a response in this chat.",
    ):
        self.active_request = active_request
        super().__init__(
            message=message,
            code=ErrorCode.MATCH_REQUEST_EXISTS,
            metadata={
                "active_request_id": str(active_request.id),
                "active_request_status": active_request.status,
            },
        )


class InvalidTransitionError(ConflictError):
    """Status change not allowed from the current status"""

    def __init__(
        self,
        current_status: str | None,
        new_status: str,
        message: str | None = None,
    ):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            message=message or f"Cannot move match from '{current_status}' to '{new_status}'",
            code=ErrorCode.MATCH_INVALID_TRANSITION,
            field="status",
            metadata={"current_status": current_status, "new_status": new_status},
        )


# Validation Errors (422)


class ValidationError(AppException):
    """Validation error"""

    def __init__(
        self,
        message: str = "Please check the submitted data",
        field: str | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=422,
            field=field,
        )


class InvalidInputError(ValidationError):
    """Missing or malformed input"""

    def __init__(self, message: str = "Invalid input", field: str | None = None):
        super().__init__(message=message, field=field, code=ErrorCode.VALIDATION_INVALID_INPUT)


class ResolutionError(ValidationError):
    """Owner of the requested dog could not be determined"""

    def __init__(
        self,
        message: str = "Unable to determine the other owner. Please refresh and try again.",
    ):
        super().__init__(
            message=message,
            field="requested_user_id",
            code=ErrorCode.OWNER_RESOLUTION_FAILED,
        )


class UnsupportedStatusError(ValidationError):
    """Status value is not one of the known match statuses"""

    def __init__(self, status: Any, message: str = "Unsupported match status"):
        self.status = status
        super().__init__(
            message=message,
            field="status",
            code=ErrorCode.VALIDATION_UNSUPPORTED_STATUS,
        )


class InvalidOutcomeError(ValidationError):
    """Outcome value is not one of success, failed, no_show"""

    def __init__(self, message: str = "Invalid outcome"):
        super().__init__(
            message=message,
            field="outcome",
            code=ErrorCode.VALIDATION_INVALID_OUTCOME,
        )


class InvalidLitterSizeError(ValidationError):
    """Litter size missing or below one for a successful breeding"""

    def __init__(self, message: str = "For success, litter size must be at least 1"):
        super().__init__(
            message=message,
            field="litter_size",
            code=ErrorCode.VALIDATION_INVALID_LITTER_SIZE,
        )


class NotesRequiredError(ValidationError):
    """Notes are mandatory for this outcome"""

    def __init__(self, message: str = "Notes are required for this outcome"):
        super().__init__(
            message=message,
            field="notes",
            code=ErrorCode.VALIDATION_NOTES_REQUIRED,
        )


# Server Errors (500)


class PersistenceError(AppException):
    """Storage collaborator failed; wraps the original error"""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(
            message=message,
            code=ErrorCode.PERSISTENCE_ERROR,
            status_code=500,
        )
