# tests/test_client_sync.py — Optimistic updates, rollback and toasts
import asyncio
import json

import httpx
import pytest

from taskboard_client.api import TaskboardAPI
from taskboard_client.config import ClientSettings
from taskboard_client.controller import BoardController
from taskboard_client.errors import ApiError, ConflictError, NotFoundError, TransportError
from taskboard_client.models import Board, Column, Task, User
from taskboard_client.notifications import Notifier, ToastType
from taskboard_client.state import AppState
from taskboard_client.sync import SyncController, temp_id

SERVER_ERROR = (0, 500, {"detail": "Internal server error"})


def _failing_api(status=500):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json={"detail": "Internal server error"})
    return TaskboardAPI(client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test"))


def _echo(request: httpx.Request):
    return json.loads(request.content)


def _scripted_api(routes):
    """Answer ``(method, path)`` with ``(delay, status, body)``; anything else is a 500."""
    async def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        delay, status, body = routes.get((request.method, path), SERVER_ERROR)
        await asyncio.sleep(delay)
        return httpx.Response(status, json=body(request) if callable(body) else body)
    return TaskboardAPI(client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test"))


def _loaded_controller(api, tmp_path, **settings):
    ctl = BoardController(api, ClientSettings(session_path=tmp_path / "s.json", min_board_load_seconds=0, **settings))
    board = Board(id="b1", title="Board")
    ctl.state.user = User(id="u1", email="ann@taskboard.dev", name="Ann")
    ctl.state.boards = [board]
    ctl.state.current_board = board
    ctl.state.columns = [Column(id="c1", board_id="b1", title="TO DO", order=0),
                         Column(id="c2", board_id="b1", title="DONE", order=1)]
    ctl.state.tasks = [Task(id="t1", column_id="c1", title="One"), Task(id="t2", column_id="c1", title="Two")]
    return ctl


def test_temp_id_shape():
    entity, stamp, suffix = temp_id("col").split("-")
    assert entity == "col"
    assert stamp.isdigit()
    assert len(suffix) == 6
    assert temp_id("task").startswith("task-")


def test_temp_ids_do_not_repeat():
    assert len({temp_id("task") for _ in range(200)}) == 200


@pytest.mark.asyncio
class TestSyncController:
    async def test_success_shows_toast(self):
        state, notifier = AppState(), Notifier()
        sync = SyncController(state, notifier)

        async def ok():
            return "server"

        seen = []
        assert await sync.run(lambda: None, ok, success="Saved", failure="Nope", on_success=seen.append)
        assert seen == ["server"]
        assert notifier.current.message == "Saved"

    async def test_failure_rolls_back(self):
        state, notifier = AppState(), Notifier()
        before = Board(id="b1", title="Before")
        state.boards = [before]
        sync = SyncController(state, notifier, rollback_on_failure=True)

        async def boom():
            raise ApiError("nope", 500)

        ok = await sync.run(
            lambda: state.replace_board(Board(id="b1", title="After")), boom,
            undo=lambda: state.replace_board(before), failure="Failed to rename board",
        )
        assert not ok
        assert state.boards[0].title == "Before"
        assert notifier.current.type is ToastType.ERROR
        assert notifier.current.message == "Failed to rename board"

    async def test_failure_without_rollback_keeps_local_change(self):
        state, notifier = AppState(), Notifier()
        sync = SyncController(state, notifier, rollback_on_failure=False)

        async def boom():
            raise TransportError("offline")

        await sync.run(
            lambda: setattr(state, "boards", [Board(id="b1", title="After")]), boom,
            undo=lambda: setattr(state, "boards", []), failure="x",
        )
        assert state.boards[0].title == "After"

    async def test_undo_skipped_after_board_switch(self):
        state, notifier = AppState(), Notifier()
        sync = SyncController(state, notifier)
        undone = []

        async def switch_then_fail():
            state.begin_board_switch(Board(id="b2", title="Two"))
            raise ApiError("nope", 500)

        assert not await sync.run(lambda: None, switch_then_fail, undo=lambda: undone.append("board"), failure="x")
        assert not await sync.run(
            lambda: None, switch_then_fail, undo=lambda: undone.append("workspace"), board_scoped=False, failure="x",
        )
        assert undone == ["workspace"]
        assert notifier.current.message == "x"

    async def test_nothing_applied_after_logout(self):
        state, notifier = AppState(), Notifier()
        sync = SyncController(state, notifier)
        calls = []

        async def logout_then_fail():
            state.logout()
            raise ApiError("nope", 500)

        async def logout_then_succeed():
            state.logout()
            return "server"

        await sync.run(lambda: None, logout_then_fail, undo=lambda: calls.append("undo"), board_scoped=False, failure="x")
        assert await sync.run(lambda: None, logout_then_succeed, failure="x", on_success=calls.append)
        assert calls == []


@pytest.mark.asyncio
class TestControllerFailures:
    async def test_move_failure_rolls_back(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path)
        assert not await ctl.move_task("t1", "c2", 0)
        assert [(t.id, t.column_id) for t in ctl.state.tasks] == [("t1", "c1"), ("t2", "c1")]
        assert ctl.notifier.current.message == "Failed to sync task position"

    async def test_move_failure_without_rollback(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path, rollback_on_failure=False)
        await ctl.move_task("t1", "c2", 0)
        assert ctl.state.find_task("t1").column_id == "c2"

    async def test_delete_task_failure_restores_task(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path)
        assert not await ctl.delete_task("t2")
        assert ctl.state.find_task("t2") is not None
        assert ctl.notifier.current.message == "Failed to delete task"

    async def test_add_column_failure_removes_temp(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path)
        assert await ctl.add_column("Review") is None
        assert [c.id for c in ctl.state.columns] == ["c1", "c2"]
        assert ctl.notifier.current.message == "Failed to add list"

    async def test_non_empty_column_not_deleted(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path)
        assert not await ctl.delete_column("c1")
        assert len(ctl.state.columns) == 2
        assert ctl.notifier.current.message == "Please delete all cards in this list first."

    async def test_share_unknown_user(self, tmp_path):
        ctl = _loaded_controller(_failing_api(404), tmp_path)
        assert not await ctl.share_board("ghost@nowhere.dev")
        assert ctl.notifier.current.message == "User not found"

    async def test_failed_board_load_empties_board(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path)
        await ctl.switch_board(Board(id="b2", title="Other"))
        assert ctl.state.current_board.id == "b2"
        assert ctl.state.columns == [] and ctl.state.tasks == []
        assert not ctl.state.is_board_loading
        assert ctl.notifier.current.message == "Failed to load board"


@pytest.mark.asyncio
class TestInFlightChanges:
    async def test_failed_move_during_board_switch_keeps_new_board(self, tmp_path):
        api = _scripted_api({
            ("POST", "/tasks/t1/reorder"): (0.05, 500, {"detail": "Internal server error"}),
            ("GET", "/boards/b2/columns"): (0.15, 200, [{"id": "k1", "boardId": "b2", "title": "Backlog", "order": 0}]),
            ("GET", "/boards/b2/tasks"): (0.15, 200, [{"id": "z1", "columnId": "k1", "title": "Other"}]),
        })
        ctl = _loaded_controller(api, tmp_path)
        second = Board(id="b2", title="Second")
        ctl.state.boards = [*ctl.state.boards, second]

        moved, _ = await asyncio.gather(ctl.move_task("t1", "c2", 0), ctl.switch_board(second))
        assert not moved
        assert ctl.state.current_board.id == "b2"
        assert {c.board_id for c in ctl.state.columns} == {"b2"}
        assert [(t.id, t.column_id) for t in ctl.state.tasks] == [("z1", "k1")]
        assert ctl.notifier.current.message == "Failed to sync task position"

    async def test_failed_delete_keeps_task_created_meanwhile(self, tmp_path):
        api = _scripted_api({
            ("DELETE", "/tasks/t2"): (0.05, 500, {"detail": "Internal server error"}),
            ("POST", "/tasks"): (0.01, 201, _echo),
        })
        ctl = _loaded_controller(api, tmp_path)

        deleted, created = await asyncio.gather(ctl.delete_task("t2"), ctl.add_task("c1", "Three"))
        assert not deleted
        assert created is not None
        assert [t.title for t in ctl.state.tasks] == ["One", "Two", "Three"]

    async def test_failed_delete_after_logout_restores_nothing(self, tmp_path):
        api = _scripted_api({
            ("DELETE", "/tasks/t1"): (0.05, 500, {"detail": "Internal server error"}),
            ("POST", "/auth/logout"): (0, 200, {"detail": "Logged out"}),
        })
        ctl = _loaded_controller(api, tmp_path)

        deleted, _ = await asyncio.gather(ctl.delete_task("t1"), ctl.logout())
        assert not deleted
        assert ctl.state.user is None
        assert ctl.state.current_board is None
        assert ctl.state.boards == [] and ctl.state.columns == [] and ctl.state.tasks == []

    async def test_board_created_after_logout_is_not_opened(self, tmp_path):
        api = _scripted_api({
            ("POST", "/boards"): (0.05, 201, _echo),
            ("POST", "/auth/logout"): (0, 200, {"detail": "Logged out"}),
        })
        ctl = _loaded_controller(api, tmp_path)

        board, _ = await asyncio.gather(ctl.create_board("Late"), ctl.logout())
        assert board is None
        assert ctl.state.boards == []
        assert ctl.state.current_board is None

    async def test_failed_board_delete_reopens_board(self, tmp_path):
        ctl = _loaded_controller(_failing_api(), tmp_path)
        assert not await ctl.delete_board("delete")
        assert [b.id for b in ctl.state.boards] == ["b1"]
        assert ctl.state.current_board.id == "b1"
        assert ctl.notifier.current.message == "Failed to delete board"


@pytest.mark.asyncio
class TestErrorMapping:
    async def test_status_codes(self):
        with pytest.raises(NotFoundError):
            await _failing_api(404).me()
        with pytest.raises(ConflictError):
            await _failing_api(409).me()

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)
        api = TaskboardAPI(client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test"))
        with pytest.raises(TransportError):
            await api.list_boards()
