# taskboard_client/notifications.py — Transient toast messages
import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, List, Optional

logger = logging.getLogger("taskboard.client.notifications")

HISTORY_SIZE = 50


class ToastType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Toast:
    message: str
    type: ToastType = ToastType.SUCCESS
    shown_at: float = field(default_factory=time.monotonic)


class Notifier:
    """Holds at most one visible toast; each new toast replaces the last and
    dismisses itself after ``dismiss_after`` seconds."""

    def __init__(self, dismiss_after: float = 3.0):
        self.dismiss_after = dismiss_after
        self.current: Optional[Toast] = None
        self.history: Deque[Toast] = deque(maxlen=HISTORY_SIZE)
        self._listeners: List[Callable[[Optional[Toast]], None]] = []
        self._timer: Optional[asyncio.TimerHandle] = None

    def subscribe(self, listener: Callable[[Optional[Toast]], None]) -> None:
        self._listeners.append(listener)

    def show(self, message: str, type: ToastType = ToastType.SUCCESS) -> Toast:
        toast = Toast(message=message, type=ToastType(type))
        if toast.type is ToastType.ERROR:
            logger.warning(f"Toast: {message}")
        self.current = toast
        self.history.append(toast)
        self._schedule_dismiss(toast)
        self._emit()
        return toast

    def error(self, message: str) -> Toast:
        return self.show(message, ToastType.ERROR)

    def dismiss(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self.current is not None:
            self.current = None
            self._emit()

    def _schedule_dismiss(self, toast: Toast) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop: the toast stays until replaced or dismissed
            return
        self._timer = loop.call_later(self.dismiss_after, self._expire, toast)

    def _expire(self, toast: Toast) -> None:
        self._timer = None
        if self.current is toast:
            self.current = None
            self._emit()

    def _emit(self) -> None:
        for listener in self._listeners:
            listener(self.current)
