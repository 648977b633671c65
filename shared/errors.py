"""
Shared error handling for the Visibility Logic service.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class VisibilityLogicException(Exception):
    """Base exception for the Visibility Logic service."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConditionRegistrationError(VisibilityLogicException):
    """Condition module registration errors."""

    def __init__(self, message: str = "Condition module registration failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONDITION_REGISTRATION_ERROR", message, details)


class ValidationError(VisibilityLogicException):
    """Invalid configuration or input."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class MigrationError(VisibilityLogicException):
    """Migration step errors."""

    def __init__(self, message: str = "Migration failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("MIGRATION_ERROR", message, details)


class MigrationLockedError(VisibilityLogicException):
    """Raised when another migration run holds the lock."""

    def __init__(self, message: str = "Migration already in progress", details: Optional[Dict[str, Any]] = None):
        super().__init__("MIGRATION_LOCKED", message, details)


class TreeDepthError(VisibilityLogicException):
    """Content tree nested deeper than allowed."""

    def __init__(self, max_depth: int, details: Optional[Dict[str, Any]] = None):
        super().__init__("TREE_DEPTH_EXCEEDED", f"Content tree deeper than {max_depth} levels", details)


class PersistenceError(VisibilityLogicException):
    """Persistence layer errors."""

    def __init__(self, backend: str, message: str = "Persistence error", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_ERROR", f"{backend}: {message}", details)
