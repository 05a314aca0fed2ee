"""
Domain error taxonomy.

Services raise these; the exception handlers in ``responses`` turn each one
into its HTTP status plus a stable ``error_code``.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NO_TOKEN = "NO_TOKEN"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"
    FORBIDDEN_OPERATION = "FORBIDDEN_OPERATION"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    STORAGE_ERROR = "STORAGE_ERROR"


class HeartspaceError(Exception):
    """Base error with code, user-safe message and HTTP status."""

    status_code = 500
    code = ErrorCode.STORAGE_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(HeartspaceError):
    """Malformed or missing input."""

    status_code = 400
    code = ErrorCode.VALIDATION_ERROR


class AuthenticationError(HeartspaceError):
    """Missing or unusable credential."""

    status_code = 401
    code = ErrorCode.NO_TOKEN


class MissingTokenError(AuthenticationError):
    def __init__(self):
        super().__init__("Access denied. No token provided.")


class InvalidTokenError(AuthenticationError):
    status_code = 403
    code = ErrorCode.INVALID_TOKEN

    def __init__(self):
        super().__init__("Invalid token")


class AuthorizationError(HeartspaceError):
    """Authenticated, but not allowed to do this."""

    status_code = 403
    code = ErrorCode.FORBIDDEN


class ForbiddenOperationError(AuthorizationError):
    """An operation the state machine never allows, such as a creator leaving."""

    status_code = 400
    code = ErrorCode.FORBIDDEN_OPERATION


class NotFoundError(HeartspaceError):
    status_code = 404
    code = ErrorCode.NOT_FOUND

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource


class ConflictError(HeartspaceError):
    """Request clashes with existing state (duplicates, capacity)."""

    status_code = 400
    code = ErrorCode.ALREADY_EXISTS


class AlreadyMemberError(ConflictError):
    code = ErrorCode.ALREADY_MEMBER

    def __init__(self):
        super().__init__("Already joined this session")


class CapacityExceededError(ConflictError):
    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self):
        super().__init__("Session is full")


class StorageError(HeartspaceError):
    """The relation store or object store failed underneath us."""

    status_code = 500
    code = ErrorCode.STORAGE_ERROR
