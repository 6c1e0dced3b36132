"""
Domain error kinds raised by the task core.

Every error carries a stable code, a human readable message and the HTTP
status the API boundary renders it with. Errors propagate unchanged from the
service to the exception handler registered in main.py.
"""
from __future__ import annotations

from typing import Any, Dict


class TaskError(Exception):
    """Base class for all task-domain errors."""

    code: str = "TaskError"
    http_status: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_response(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class BadRequestError(TaskError):
    """Structurally valid but semantically invalid input (e.g. blank title)."""

    code = "BadRequest"
    http_status = 400


class NotFoundError(TaskError):
    """Referenced task does not exist."""

    code = "NotFound"
    http_status = 404


class ForbiddenError(TaskError):
    """Task exists but belongs to another user."""

    code = "Forbidden"
    http_status = 403


class ConflictError(TaskError):
    """Optimistic-concurrency version mismatch."""

    code = "Conflict"
    http_status = 409
