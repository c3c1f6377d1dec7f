"""Async client for the Taskboard API and the board-screen state it drives."""
from taskboard_client.api import AuthResult, TaskboardAPI
from taskboard_client.config import ClientSettings
from taskboard_client.controller import BoardController
from taskboard_client.errors import (
    ApiError, AuthError, ConflictError, NotFoundError, StorageQuotaError,
    TaskboardError, TransportError, ValidationError,
)
from taskboard_client.models import Attachment, Board, Column, Comment, Session, Subtask, Task, User
from taskboard_client.notifications import Notifier, Toast, ToastType
from taskboard_client.state import AppState

__all__ = [
    "ApiError", "AppState", "Attachment", "AuthError", "AuthResult", "Board", "BoardController",
    "ClientSettings", "Column", "Comment", "ConflictError", "NotFoundError", "Notifier", "Session",
    "StorageQuotaError", "Subtask", "Task", "TaskboardAPI", "TaskboardError", "Toast", "ToastType",
    "TransportError", "User", "ValidationError",
]
