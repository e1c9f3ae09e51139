"""Access-control error types and user-facing error classification."""

from enum import Enum

from pydantic import BaseModel


class AccessDeniedError(PermissionError):
    """Base class for outcomes that must surface as access denied."""


class PermissionDeniedError(AccessDeniedError):
    """Raised when an explicit action is not allowed for the requesting user."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Permission denied: {action}")


class ForbiddenError(AccessDeniedError):
    """Raised when a role may not read a person's data."""

    def __init__(self, message: str = "You do not have access to this person") -> None:
        super().__init__(message)


class CyclicDependencyError(ValueError):
    """Raised when proposed condition targets would close a dependency cycle."""

    def __init__(self, cycle_path: list[str], readable_path: str = "") -> None:
        self.cycle_path = cycle_path
        self.readable_path = readable_path or " → ".join(cycle_path)
        super().__init__(f"Circular dependency detected: {self.readable_path}")


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    # Access errors
    ERR_PERMISSION_DENIED = "ERR_PERMISSION_DENIED"
    ERR_FORBIDDEN = "ERR_FORBIDDEN"

    # Dependency errors
    ERR_CIRCULAR_DEPENDENCY = "ERR_CIRCULAR_DEPENDENCY"

    # Lookup and validation errors
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_INVALID_REQUEST = "ERR_INVALID_REQUEST"

    # Generic errors
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while handling a request

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    if isinstance(exception, PermissionDeniedError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message=f"You don't have permission to {exception.action.lower().replace('_', ' ')}.",
            suggestion="Ask the owner of this family or classroom to raise your access level.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, ForbiddenError):
        return ErrorResponse(
            code=ErrorCode.ERR_FORBIDDEN,
            message=str(exception),
            suggestion="Ask the person's owner to share them with you.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, AccessDeniedError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERMISSION_DENIED,
            message="You don't have permission for this action.",
            suggestion="Contact the owner if you think this is an error.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, CyclicDependencyError):
        return ErrorResponse(
            code=ErrorCode.ERR_CIRCULAR_DEPENDENCY,
            message=str(exception),
            suggestion="Remove one of the conditions in this chain before adding the new one.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, KeyError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message="The requested record was not found.",
            suggestion="Check the id and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ValueError):
        return ErrorResponse(
            code=ErrorCode.ERR_INVALID_REQUEST,
            message=str(exception),
            suggestion="Fix the request and try again.",
            severity=ErrorSeverity.LOW,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later. If the problem persists, contact support.",
        severity=ErrorSeverity.MEDIUM,
    )
