"""Custom exceptions and helpers for consistent error responses."""

import json
from typing import Any, Dict, Optional


class AppError(Exception):
    """Base class for application errors."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(AppError):
    """Raised when a requested resource is missing."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, status_code=422)


class GroupTypeError(ValidationError):
    """Raised when an operation does not apply to the group's type."""

    def __init__(self, message: str = "Wrong group type"):
        super().__init__(message)
        self.status_code = 409


class SnapshotFetchError(AppError):
    """Raised when a cached billing collection cannot be read."""

    def __init__(self, collection: str, cause: Optional[BaseException] = None):
        message = f"Failed to fetch {collection} snapshot"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message, status_code=502)
        self.collection = collection


def to_response(error: AppError) -> Dict[str, Any]:
    """Convert an AppError into a Lambda proxy integration response."""
    return {
        "statusCode": error.status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps({"message": str(error), "status": "error"}),
    }
