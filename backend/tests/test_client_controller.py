# tests/test_client_controller.py — Board screen actions end to end against the API
import pytest
import pytest_asyncio

from taskboard_client.api import TaskboardAPI
from taskboard_client.config import ClientSettings
from taskboard_client.controller import BoardController
from taskboard_client.errors import ConflictError
from taskboard_client.models import Board
from taskboard_client.ordering import tasks_in_column
from taskboard_client.session import SessionStore
from tests.conftest import TEST_PASSWORD, api_for


def _settings(tmp_path, **overrides):
    return ClientSettings(
        session_path=tmp_path / "session.json",
        min_board_load_seconds=0,
        search_debounce_seconds=0.01,
        **overrides,
    )


@pytest_asyncio.fixture
async def controller(client, test_user, tmp_path):
    ctl = BoardController(TaskboardAPI(client=client), _settings(tmp_path))
    assert await ctl.login(test_user.email, TEST_PASSWORD)
    return ctl


@pytest.mark.asyncio
class TestSignIn:
    async def test_login_saves_session_and_welcomes(self, controller, tmp_path):
        assert controller.notifier.history[0].message == "Welcome back, Test User!"
        stored = SessionStore(tmp_path / "session.json").load()
        assert stored.user.email == "testuser@taskboard.dev"
        assert stored.access_token

    async def test_bad_login(self, client, test_user, tmp_path):
        ctl = BoardController(TaskboardAPI(client=client), _settings(tmp_path))
        assert not await ctl.login(test_user.email, "WrongPassword9")
        assert ctl.notifier.current.message == "Invalid credentials"
        assert ctl.state.user is None

    async def test_restore_session(self, controller, client, tmp_path):
        board = await controller.create_board("Kept")
        fresh = BoardController(TaskboardAPI(client=client), _settings(tmp_path))
        assert await fresh.restore_session()
        assert fresh.state.user.name == "Test User"
        assert fresh.state.current_board.id == board.id

    async def test_logout_clears_everything(self, controller, tmp_path):
        await controller.create_board("Temp")
        await controller.logout()
        assert controller.state.user is None
        assert controller.state.boards == []
        assert not (tmp_path / "session.json").exists()

    async def test_oversized_avatar_warns(self, client, test_user, tmp_path):
        ctl = BoardController(TaskboardAPI(client=client), _settings(tmp_path, session_max_bytes=2048))
        await ctl.login(test_user.email, TEST_PASSWORD)
        assert await ctl.update_profile(avatar_url="data:image/png;base64," + "A" * 4096)
        assert any(t.message == "Warning: Image too large for local session." for t in ctl.notifier.history)
        assert ctl.state.user.avatar_url.startswith("data:image/png")


@pytest.mark.asyncio
class TestBoardFlow:
    async def test_create_board_opens_it_with_default_columns(self, controller):
        board = await controller.create_board("Product Launch")
        assert board is not None
        assert controller.state.current_board.id == board.id
        assert [c.title for c in controller.state.columns] == ["TO DO", "IN PROGRESS", "COMPLETE"]
        assert "Project created successfully!" in [t.message for t in controller.notifier.history]

    async def test_column_and_task_lifecycle(self, controller):
        await controller.create_board("Flow")
        col = await controller.add_column("Review")
        assert col is not None and not col.id.startswith("col-")
        assert controller.state.columns[-1].id == col.id
        assert col.order == 3

        todo = controller.state.columns[0].id
        task = await controller.add_task(todo, "Write tests")
        assert task.title == "Write tests"
        assert task.created_at

        assert not await controller.delete_column(todo)
        assert controller.notifier.current.message == "Please delete all cards in this list first."

        assert await controller.delete_task(task.id)
        assert await controller.delete_column(todo)
        assert todo not in [c.id for c in controller.state.columns]

    async def test_move_persists_across_reload(self, controller):
        await controller.create_board("Moves")
        c1, c2 = controller.state.columns[0].id, controller.state.columns[1].id
        for title in ("A", "B", "C"):
            await controller.add_task(c1, title)
        ids = {t.title: t.id for t in controller.state.tasks}

        assert await controller.move_task(ids["C"], c1, 0)
        assert await controller.move_task(ids["A"], c2, 0)
        assert [t.title for t in tasks_in_column(controller.state.tasks, c1)] == ["C", "B"]

        await controller.switch_board(controller.state.current_board, force=True)
        assert [t.title for t in tasks_in_column(controller.state.tasks, c1)] == ["C", "B"]
        assert [t.title for t in tasks_in_column(controller.state.tasks, c2)] == ["A"]

    async def test_save_task_and_comment(self, controller):
        await controller.create_board("Edit")
        task = await controller.add_task(controller.state.columns[0].id, "Draft")
        updated = task.model_copy(update={"priority": "high", "description": "Details"})
        assert await controller.save_task(updated)
        assert controller.notifier.current.message == "Task updated"

        assert await controller.add_comment(task.id, "Nice")
        assert controller.state.find_task(task.id).comments[0].text == "Nice"
        assert controller.state.find_task(task.id).priority == "high"

    async def test_attachments(self, controller):
        await controller.create_board("Files")
        task = await controller.add_task(controller.state.columns[0].id, "Docs")
        assert await controller.upload_attachment(task.id, "a.txt", b"hi", "text/plain")
        att = controller.state.find_task(task.id).attachments[0]
        assert att.file_name == "a.txt"
        assert await controller.delete_attachment(task.id, att.id)
        assert controller.state.find_task(task.id).attachments == []

    async def test_delete_board_needs_confirmation(self, controller):
        first = await controller.create_board("Keep")
        second = await controller.create_board("Drop")
        assert controller.state.current_board.id == second.id

        assert not await controller.delete_board("nope")
        assert await controller.delete_board("DELETE")
        assert [b.id for b in controller.state.boards] == [first.id]
        assert controller.state.current_board.id == first.id

    async def test_share_and_member_sees_board(self, controller, client, other_user, tmp_path):
        board = await controller.create_board("Team")
        assert await controller.share_board(other_user.email)
        assert not await controller.share_board("ghost@nowhere.dev")
        assert controller.notifier.current.message == "User not found"

        boards = await api_for(client, other_user).list_boards()
        assert [b.id for b in boards] == [board.id]

    async def test_search_and_open_result(self, controller):
        first = await controller.create_board("Product Launch")
        await controller.add_task(controller.state.columns[0].id, "Design System Draft")
        await controller.create_board("Elsewhere")

        controller.on_search_input("desi")
        await controller.search.wait()
        results = controller.state.search_results
        assert [r.title for r in results] == ["Design System Draft"]
        assert results[0].board_title == "Product Launch"

        opened = await controller.open_search_result(results[0])
        assert controller.state.current_board.id == first.id
        assert opened.title == "Design System Draft"
        assert controller.state.search_results == []

    async def test_ai_helpers_use_stub(self, controller):
        await controller.create_board("AI")
        task = await controller.add_task(controller.state.columns[0].id, "Plan launch")
        assert "Plan launch" in await controller.suggest_description(task)
        assert len(await controller.suggest_subtasks(task)) == 3


@pytest.mark.asyncio
class TestApiSurface:
    async def test_members_and_lookup(self, client, test_user, other_user):
        api = api_for(client, test_user)
        board = await api.create_board(Board(id="board-42", title="Shared"))
        await api.share_board(board.id, other_user.email)
        members = await api.list_members(board.id)
        assert sorted(u.id for u in members) == sorted([test_user.id, other_user.id])
        assert (await api.lookup_user(other_user.email)).name == "Other Person"

    async def test_change_password_and_conflict(self, client, test_user):
        api = api_for(client, test_user)
        await api.change_password(TEST_PASSWORD, "Another456")
        relogin = await api.login(test_user.email, "Another456")
        assert relogin.user.id == test_user.id

        await api.create_board(Board(id="board-dup", title="One"))
        with pytest.raises(ConflictError):
            await api.create_board(Board(id="board-dup", title="Two"))
