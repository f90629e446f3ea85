"""
exceptions.py — Error taxonomy for the habit tracker core.

Every lookup is scoped to the calling user, so "not owned" and "absent" are
both reported as NotFoundError. AI failures are represented by
ExternalServiceError but never leave the report writer.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


class HabitTrackerError(Exception):
    """Base class for all domain errors. Carries structured context for logs and API bodies."""

    status_code = 500

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class NotFoundError(HabitTrackerError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Any = None, **kwargs):
        self.resource = resource
        self.resource_id = resource_id
        message = f"{resource} not found" if resource_id is None else f"{resource} {resource_id} not found"
        super().__init__(message, context={"resource": resource, "resource_id": str(resource_id)}, **kwargs)


class InvalidStateError(HabitTrackerError):
    """Raised on an illegal state transition, e.g. accepting a declined revision."""

    status_code = 409

    def __init__(self, resource: str, current_state: str, attempted: str, **kwargs):
        self.current_state = current_state
        self.attempted = attempted
        super().__init__(
            f"Cannot {attempted} {resource} in state '{current_state}'",
            context={"resource": resource, "current_state": current_state, "attempted": attempted},
            **kwargs,
        )


class ValidationError(HabitTrackerError):
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None, **kwargs):
        self.field = field
        self.value = value
        super().__init__(message, context={"field": field, "value": repr(value)}, **kwargs)


class ExternalServiceError(HabitTrackerError):
    status_code = 503

    def __init__(self, service: str, message: str, **kwargs):
        self.service = service
        super().__init__(f"{service}: {message}", context={"service": service}, **kwargs)


class PersistenceError(HabitTrackerError):
    """Database failure after rollback. Retries are the database driver's concern."""

    status_code = 500

    def __init__(self, operation: str, cause: Exception, **kwargs):
        super().__init__(f"Database error during {operation}", operation=operation, cause=cause, **kwargs)
        logger.error(f"PersistenceError in {operation}: {cause}")


class ConflictError(HabitTrackerError):
    """Raised when a unique value is already taken, e.g. a username."""

    status_code = 409

    def __init__(self, resource: str, field: str, value: Any, **kwargs):
        super().__init__(
            f"{resource} with {field} '{value}' already exists",
            context={"resource": resource, "field": field},
            **kwargs,
        )


class AuthenticationError(HabitTrackerError):
    status_code = 401

    def __init__(self, message: str = "Invalid username or password", **kwargs):
        super().__init__(message, **kwargs)
