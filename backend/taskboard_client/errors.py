# taskboard_client/errors.py — Client-side error taxonomy
from typing import Optional


class TaskboardError(Exception):
    """Base class for every failure the client reports"""


class TransportError(TaskboardError):
    """The request never produced an HTTP response"""


class ApiError(TaskboardError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationError(ApiError):
    """Rejected input, either by a local check or a 422 from the API"""


class NotFoundError(ApiError):
    pass


class ConflictError(ApiError):
    pass


class AuthError(ApiError):
    pass


class StorageQuotaError(TaskboardError):
    """The local session record could not be written"""


def error_for_status(status_code: int, message: str) -> ApiError:
    if status_code in (401, 403):
        return AuthError(message, status_code)
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code == 409:
        return ConflictError(message, status_code)
    if status_code in (400, 413, 422):
        return ValidationError(message, status_code)
    return ApiError(message, status_code)
