from __future__ import annotations


class TaskTrackerError(Exception):
    """Base error carrying the HTTP status it maps to at the API boundary."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskTrackerError):
    status_code = 400


class NotFound(TaskTrackerError):
    status_code = 404

    def __init__(self, message: str = "Task not found") -> None:
        super().__init__(message)


class StoreError(TaskTrackerError):
    """Any failure of the underlying persistence layer."""

    status_code = 500


class ApiUnavailable(StoreError):
    """Client side: the HTTP API could not be reached or answered garbage."""


def error_for_status(status_code: int, message: str) -> TaskTrackerError:
    if status_code == 400 or status_code == 422:
        return ValidationError(message)
    if status_code == 404:
        return NotFound(message)
    return StoreError(message)


__all__ = [
    "TaskTrackerError",
    "ValidationError",
    "NotFound",
    "StoreError",
    "ApiUnavailable",
    "error_for_status",
]
