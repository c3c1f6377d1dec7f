# taskboard_client/controller.py — User actions on the board screen
import asyncio
from datetime import datetime, timezone
import logging
from typing import List, Optional

from taskboard_client.api import AuthResult, TaskboardAPI
from taskboard_client.config import ClientSettings
from taskboard_client.confirmation import matches
from taskboard_client.errors import (
    AuthError, NotFoundError, StorageQuotaError, TaskboardError, ValidationError,
)
from taskboard_client.models import Board, Column, Session, Subtask, Task, User
from taskboard_client.notifications import Notifier
from taskboard_client.ordering import index_in_column, reorder, tasks_in_column
from taskboard_client.search import DebouncedSearch
from taskboard_client.session import SessionStore
from taskboard_client.state import AppState
from taskboard_client.sync import SyncController, temp_id

logger = logging.getLogger("taskboard.client")

COLUMN_NOT_EMPTY = "Please delete all cards in this list first."
SESSION_TOO_LARGE = "Warning: Image too large for local session."


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class BoardController:
    """Owns the application state and turns user actions into optimistic
    updates plus API calls."""

    def __init__(
        self,
        api: TaskboardAPI,
        settings: Optional[ClientSettings] = None,
        *,
        state: Optional[AppState] = None,
        notifier: Optional[Notifier] = None,
        session_store: Optional[SessionStore] = None,
    ):
        self.api = api
        self.settings = settings or ClientSettings()
        self.state = state or AppState()
        self.notifier = notifier or Notifier(self.settings.toast_seconds)
        self.sessions = session_store or SessionStore(self.settings.session_path, self.settings.session_max_bytes)
        self.sync = SyncController(self.state, self.notifier, self.settings.rollback_on_failure)
        self.search = DebouncedSearch(self.api.search, self._set_search_results, self.settings.search_debounce_seconds)
        self._tokens: Optional[AuthResult] = None

    @classmethod
    def from_env(cls) -> "BoardController":
        settings = ClientSettings.from_env()
        return cls(TaskboardAPI(settings.api_url, timeout=settings.request_timeout), settings)

    # ============================================================
    # SESSION LIFECYCLE
    # ============================================================

    async def restore_session(self) -> bool:
        """Start-up: resume the stored session if there is one."""
        session = self.sessions.load()
        if session is None:
            return False
        self._tokens = AuthResult({
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "user": session.user.to_wire(),
        })
        self.api.set_token(session.access_token)
        try:
            self.state.user = await self.api.me()
        except AuthError:
            if not session.refresh_token:
                self._forget_session()
                return False
            try:
                tokens = await self.api.refresh(session.refresh_token)
            except TaskboardError:
                self._forget_session()
                return False
            self._tokens = tokens
            self.api.set_token(tokens.access_token)
            self.state.user = tokens.user
            self._save_session()
        except TaskboardError as e:
            # Offline: keep the stored profile
            logger.warning(f"Could not verify session: {e}")
            self.state.user = session.user
        await self.load_workspace()
        return True

    async def register(self, name: str, email: str, password: str) -> bool:
        try:
            tokens = await self.api.register(name, email, password)
        except TaskboardError as e:
            logger.error(f"Registration failed: {e}")
            self.notifier.error(getattr(e, "message", None) or "Registration failed")
            return False
        await self._signed_in(tokens)
        return True

    async def login(self, email: str, password: str) -> bool:
        try:
            tokens = await self.api.login(email, password)
        except TaskboardError as e:
            logger.error(f"Login failed: {e}")
            self.notifier.error("Invalid credentials" if isinstance(e, AuthError) else "Login failed")
            return False
        await self._signed_in(tokens)
        return True

    async def logout(self) -> None:
        """Teardown: revoke the token, forget the session and all state."""
        self.search.cancel()
        try:
            await self.api.logout()
        except TaskboardError as e:
            logger.warning(f"Logout request failed: {e}")
        self._forget_session()

    async def _signed_in(self, tokens: AuthResult) -> None:
        self._tokens = tokens
        self.api.set_token(tokens.access_token)
        self.state.user = tokens.user
        self._save_session()
        self.notifier.show(f"Welcome back, {tokens.user.name}!")
        await self.load_workspace()

    def _save_session(self) -> None:
        if self.state.user is None:
            return
        session = Session(
            user=self.state.user,
            access_token=self._tokens.access_token if self._tokens else "",
            refresh_token=self._tokens.refresh_token if self._tokens else None,
        )
        try:
            self.sessions.save(session)
        except StorageQuotaError as e:
            logger.error(f"Session not persisted: {e}")
            self.notifier.error(SESSION_TOO_LARGE)

    def _forget_session(self) -> None:
        self.sessions.clear()
        self.api.set_token(None)
        self._tokens = None
        self.state.logout()

    async def update_profile(self, name: Optional[str] = None, avatar_url: Optional[str] = None) -> bool:
        user = self.state.user
        if user is None:
            return False
        try:
            updated = await self.api.update_user(user.id, name=name, avatar_url=avatar_url)
        except TaskboardError as e:
            logger.error(f"Failed to update user: {e}")
            self.notifier.error("Failed to update profile")
            return False
        self.state.user = updated
        self.state.users = [updated if u.id == updated.id else u for u in self.state.users]
        self._save_session()
        self.notifier.show("Profile updated successfully!")
        return True

    # ============================================================
    # LOADING
    # ============================================================

    async def load_workspace(self) -> None:
        """Boards and the user directory; opens the first board."""
        self.state.is_loading = True
        try:
            boards, users = await asyncio.gather(self.api.list_boards(), self.api.list_users())
            self.state.boards = boards
            self.state.users = users
        except TaskboardError as e:
            logger.error(f"Failed to load initial data: {e}")
            self.notifier.error("Failed to load your boards")
            return
        finally:
            self.state.is_loading = False
        if self.state.boards:
            await self.switch_board(self.state.boards[0])

    async def switch_board(self, board: Board, force: bool = False) -> None:
        if not force and self.state.current_board and self.state.current_board.id == board.id:
            return
        token = self.state.begin_board_switch(board)
        try:
            columns, tasks, _ = await asyncio.gather(
                self.api.list_columns(board.id),
                self.api.list_tasks(board.id),
                asyncio.sleep(self.settings.min_board_load_seconds),
            )
        except TaskboardError as e:
            logger.error(f"Failed to load board details: {e}")
            self.notifier.error("Failed to load board")
            self.state.finish_board_load(token, [], [])
            return
        self.state.finish_board_load(token, columns, tasks)

    # ============================================================
    # BOARDS
    # ============================================================

    async def create_board(self, title: str, background: str = "") -> Optional[Board]:
        title = title.strip()
        if not title or self.state.user is None:
            return None
        board = Board(id=temp_id("board"), title=title, background=background, owner_id=self.state.user.id)

        def apply():
            self.state.boards = [*self.state.boards, board]

        def undo():
            self.state.boards = [b for b in self.state.boards if b.id != board.id]

        created: List[Board] = []

        def confirm(server_board: Board):
            created.append(server_board)
            self.state.replace_board(server_board)

        ok = await self.sync.run(
            apply, lambda: self.api.create_board(board), undo=undo, board_scoped=False,
            success="Project created successfully!", failure="Failed to create project", on_success=confirm,
        )
        if not ok or not created:
            return None
        await self.switch_board(created[0])
        return created[0]

    async def rename_board(self, title: str) -> bool:
        board = self.state.current_board
        title = title.strip()
        if board is None or not title or title == board.title:
            return False
        renamed = board.model_copy(update={"title": title})
        return await self.sync.run(
            lambda: self.state.replace_board(renamed),
            lambda: self.api.rename_board(board.id, title),
            undo=lambda: self.state.replace_board(board), board_scoped=False,
            failure="Failed to rename board",
        )

    async def delete_board(self, confirmation_text: str) -> bool:
        """Delete the current board once the typed confirmation matches."""
        board = self.state.current_board
        if board is None or not matches(confirmation_text):
            return False
        index = next((i for i, b in enumerate(self.state.boards) if b.id == board.id), len(self.state.boards))

        def apply():
            self.state.boards = [b for b in self.state.boards if b.id != board.id]
            self.state.begin_board_switch(None)

        async def undo():
            self.state.reinsert_board(board, index)
            # Reopen it only if nothing else was opened meanwhile
            if self.state.current_board is None:
                await self.switch_board(board)

        async def after():
            if self.state.boards:
                await self.switch_board(self.state.boards[0])

        return await self.sync.run(
            apply, lambda: self.api.delete_board(board.id), undo=undo, board_scoped=False,
            success="Board deleted successfully", failure="Failed to delete board",
            on_success=lambda _: after(),
        )

    async def share_board(self, email: str) -> bool:
        board = self.state.current_board
        if board is None or not email.strip():
            return False
        try:
            await self.api.share_board(board.id, email.strip())
        except NotFoundError:
            self.notifier.error("User not found")
            return False
        except TaskboardError as e:
            logger.error(f"Failed to share board: {e}")
            self.notifier.error("Failed to share board")
            return False
        self.notifier.show(f"Board shared with {email.strip()}")
        return True

    # ============================================================
    # COLUMNS
    # ============================================================

    async def add_column(self, title: str, kind: Optional[str] = None) -> Optional[Column]:
        board = self.state.current_board
        title = title.strip()
        if board is None or not title:
            return None
        temp = Column(id=temp_id("col"), board_id=board.id, title=title, order=len(self.state.columns), kind=kind or "other")
        created: List[Column] = []

        def reconcile(server_col: Column):
            created.append(server_col)
            self.state.columns = [server_col if c.id == temp.id else c for c in self.state.columns]

        ok = await self.sync.run(
            lambda: setattr(self.state, "columns", [*self.state.columns, temp]),
            lambda: self.api.create_column(board.id, title, kind),
            undo=lambda: setattr(self.state, "columns", [c for c in self.state.columns if c.id != temp.id]),
            success="List added!", failure="Failed to add list", on_success=reconcile,
        )
        return created[0] if ok and created else None

    async def rename_column(self, column_id: str, title: str) -> bool:
        title = title.strip()
        column = self.state.find_column(column_id)
        if not title or column is None:
            return False

        def undo():
            local = self.state.find_column(column_id)
            if local is not None:
                self.state.replace_column(local.model_copy(update={"title": column.title}))

        return await self.sync.run(
            lambda: self.state.replace_column(column.model_copy(update={"title": title})),
            lambda: self.api.update_column(column_id, title=title),
            undo=undo, failure="Failed to update list title",
        )

    async def delete_column(self, column_id: str) -> bool:
        """Only empty columns can go; otherwise nothing changes."""
        if tasks_in_column(self.state.tasks, column_id):
            self.notifier.error(COLUMN_NOT_EMPTY)
            return False
        column = self.state.find_column(column_id)
        return await self.sync.run(
            lambda: setattr(self.state, "columns", [c for c in self.state.columns if c.id != column_id]),
            lambda: self.api.delete_column(column_id),
            undo=(lambda: self.state.reinsert_column(column)) if column else None,
            success="List deleted successfully", failure="Failed to delete list",
        )

    # ============================================================
    # TASKS
    # ============================================================

    async def add_task(self, column_id: str, title: str) -> Optional[Task]:
        title = title.strip()
        if not title or self.state.find_column(column_id) is None:
            return None
        task = Task(id=temp_id("task"), column_id=column_id, title=title, created_at=_now_iso())

        def confirm(server_task: Task):
            # Keep whatever column the task was dragged to meanwhile
            local = self.state.find_task(task.id)
            if local is not None:
                self.state.replace_task(server_task.model_copy(update={"column_id": local.column_id}))

        ok = await self.sync.run(
            lambda: setattr(self.state, "tasks", [*self.state.tasks, task]),
            lambda: self.api.create_task(task),
            undo=lambda: setattr(self.state, "tasks", [t for t in self.state.tasks if t.id != task.id]),
            failure="Failed to add card", on_success=confirm,
        )
        return self.state.find_task(task.id) if ok else None

    async def save_task(self, task: Task) -> bool:
        previous = self.state.find_task(task.id)

        def undo():
            if previous is not None and self.state.find_task(task.id) is not None:
                self.state.replace_task(previous)

        return await self.sync.run(
            lambda: self.state.replace_task(task),
            lambda: self.api.update_task(task),
            undo=undo, success="Task updated", failure="Failed to update task",
        )

    async def delete_task(self, task_id: str) -> bool:
        task = self.state.find_task(task_id)
        index = self.state.tasks.index(task) if task is not None else 0
        return await self.sync.run(
            lambda: setattr(self.state, "tasks", [t for t in self.state.tasks if t.id != task_id]),
            lambda: self.api.delete_task(task_id),
            undo=(lambda: self.state.reinsert_task(task, index)) if task else None,
            success="Task deleted successfully", failure="Failed to delete task",
        )

    async def move_task(self, task_id: str, target_column_id: str, new_index: int) -> bool:
        """Drop handler: reorder locally, then persist the move."""
        task = self.state.find_task(task_id)
        if task is None:
            return False
        origin_column = task.column_id
        origin_index = index_in_column(self.state.tasks, task_id)
        index = new_index if self.settings.persist_positions else None

        def undo():
            # Put the card back in its old slot; other cards keep their current order
            if self.state.find_task(task_id) is not None:
                self.state.tasks = reorder(self.state.tasks, task_id, origin_column, origin_index)

        return await self.sync.run(
            lambda: setattr(self.state, "tasks", reorder(self.state.tasks, task_id, target_column_id, new_index)),
            lambda: self.api.reorder_task(task_id, target_column_id, index),
            undo=undo, failure="Failed to sync task position",
        )

    async def add_comment(self, task_id: str, text: str) -> bool:
        text = text.strip()
        if not text or self.state.find_task(task_id) is None:
            return False
        try:
            updated = await self.api.add_comment(task_id, text)
        except TaskboardError as e:
            logger.error(f"Failed to add comment: {e}")
            self.notifier.error("Failed to add comment")
            return False
        local = self.state.find_task(task_id)
        if local is not None:
            self.state.replace_task(local.model_copy(update={"comments": updated.comments}))
        return True

    async def upload_attachment(
        self, task_id: str, file_name: str, content: bytes, content_type: str = "application/octet-stream",
    ) -> bool:
        try:
            attachment = await self.api.upload_attachment(task_id, file_name, content, content_type)
        except ValidationError as e:
            self.notifier.error(e.message or "Failed to upload file")
            return False
        except TaskboardError as e:
            logger.error(f"Failed to upload attachment: {e}")
            self.notifier.error("Failed to upload file")
            return False
        local = self.state.find_task(task_id)
        if local is not None:
            self.state.replace_task(local.model_copy(update={"attachments": [*local.attachments, attachment]}))
        return True

    async def delete_attachment(self, task_id: str, attachment_id: str) -> bool:
        local = self.state.find_task(task_id)
        if local is None:
            return False
        trimmed = local.model_copy(update={"attachments": [a for a in local.attachments if a.id != attachment_id]})

        def undo():
            current = self.state.find_task(task_id)
            if current is not None:
                self.state.replace_task(current.model_copy(update={"attachments": local.attachments}))

        return await self.sync.run(
            lambda: self.state.replace_task(trimmed),
            lambda: self.api.delete_attachment(task_id, attachment_id),
            undo=undo, failure="Failed to delete attachment",
        )

    # ============================================================
    # AI ASSIST
    # ============================================================

    async def suggest_description(self, task: Task) -> Optional[str]:
        try:
            return await self.api.generate_description(task.title, task.description)
        except TaskboardError as e:
            logger.error(f"Description generation failed: {e}")
            self.notifier.error("Failed to generate description")
            return None

    async def suggest_subtasks(self, task: Task) -> List[Subtask]:
        try:
            return await self.api.generate_subtasks(task.title)
        except TaskboardError as e:
            logger.error(f"Subtask generation failed: {e}")
            return []

    # ============================================================
    # SEARCH
    # ============================================================

    def on_search_input(self, query: str) -> None:
        self.search.update(query)

    def _set_search_results(self, results: List[Task]) -> None:
        self.state.search_results = results

    async def open_search_result(self, result: Task) -> Optional[Task]:
        """The loaded task behind a search hit, switching boards if needed."""
        self.search.cancel()
        self.state.search_results = []
        current = self.state.current_board
        if not (current and result.board_id == current.id):
            board = next((b for b in self.state.boards if b.id == result.board_id), None)
            if board is None:
                return None
            await self.switch_board(board)
        return self.state.find_task(result.id)

    @property
    def users_by_id(self) -> dict:
        return {u.id: u for u in self.state.users}

    def assignees(self, task: Task) -> List[User]:
        lookup = self.users_by_id
        return [lookup[uid] for uid in task.assignee_ids if uid in lookup]
