# taskboard_client/sync.py — Optimistic mutations against the API
import inspect
import logging
import secrets
import time
from typing import Any, Awaitable, Callable, Optional

from taskboard_client.errors import TaskboardError
from taskboard_client.notifications import Notifier
from taskboard_client.state import AppState

logger = logging.getLogger("taskboard.client.sync")


_last_stamp = 0


def temp_id(entity: str) -> str:
    """Client-side id ``<entity>-<ms timestamp>-<hex>``.

    Boards and tasks keep this id on the server, so the random suffix keeps two
    clients creating in the same millisecond from colliding there.
    """
    global _last_stamp
    _last_stamp = max(int(time.time() * 1000), _last_stamp + 1)
    return f"{entity}-{_last_stamp}-{secrets.token_hex(3)}"


async def _call(fn: Callable[..., Any], *args) -> None:
    outcome = fn(*args)
    if inspect.isawaitable(outcome):
        await outcome


class SyncController:
    """Apply a change locally, then confirm it with the server.

    On failure an error toast is shown. With ``rollback_on_failure`` the
    handler's ``undo`` puts back the one entity it changed; without it the
    local change is kept and stays out of step with the server until the next
    load. Undo is skipped after a logout, and for board-scoped changes also
    after a board switch, since the state it would repair is gone.
    """

    def __init__(self, state: AppState, notifier: Notifier, rollback_on_failure: bool = True):
        self.state = state
        self.notifier = notifier
        self.rollback_on_failure = rollback_on_failure

    async def run(
        self,
        apply: Callable[[], None],
        request: Callable[[], Awaitable[Any]],
        *,
        failure: str,
        undo: Optional[Callable[[], Any]] = None,
        board_scoped: bool = True,
        success: Optional[str] = None,
        on_success: Optional[Callable[[Any], Any]] = None,
    ) -> bool:
        mark = self.state.mark()
        apply()
        try:
            result = await request()
        except TaskboardError as e:
            logger.error(f"{failure}: {e}")
            if self.rollback_on_failure and undo is not None:
                still_valid = self.state.same_board(mark) if board_scoped else self.state.same_session(mark)
                if still_valid:
                    await _call(undo)
                else:
                    logger.info(f"Skipped rollback of '{failure}': state changed while in flight")
            self.notifier.error(failure)
            return False

        if not self.state.same_session(mark):
            logger.info("Signed out while a change was in flight; ignoring the response")
            return True
        if on_success is not None:
            await _call(on_success, result)
        if success:
            self.notifier.show(success)
        return True
