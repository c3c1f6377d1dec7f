# taskboard_client/state.py — Application state for one signed-in user
from typing import List, NamedTuple, Optional

from taskboard_client.models import Board, Column, Task, User


class StateMark(NamedTuple):
    """Which sign-in and which board load a pending change was made under."""
    session: int
    board_load: int


class AppState:
    """Everything the board screen renders. Handlers replace list items
    instead of mutating them in place."""

    def __init__(self):
        self.user: Optional[User] = None
        self.boards: List[Board] = []
        self.current_board: Optional[Board] = None
        self.columns: List[Column] = []
        self.tasks: List[Task] = []
        self.users: List[User] = []
        self.is_loading = False
        self.is_board_loading = False
        self.search_results: List[Task] = []
        self._load_generation = 0
        self._session_generation = 0

    # --- Pending changes ---
    def mark(self) -> StateMark:
        return StateMark(self._session_generation, self._load_generation)

    def same_session(self, mark: StateMark) -> bool:
        return mark.session == self._session_generation

    def same_board(self, mark: StateMark) -> bool:
        """True while neither a logout nor a board switch happened since ``mark``."""
        return self.same_session(mark) and mark.board_load == self._load_generation

    # --- Board switching ---
    def begin_board_switch(self, board: Optional[Board]) -> int:
        """Make ``board`` current and drop the old board's content right away.

        Returns a token; only the load holding the latest token may fill in
        columns and tasks.
        """
        self._load_generation += 1
        self.current_board = board
        self.columns = []
        self.tasks = []
        self.is_board_loading = board is not None
        return self._load_generation

    def finish_board_load(self, token: int, columns: List[Column], tasks: List[Task]) -> bool:
        if token != self._load_generation:
            return False
        self.columns = sorted(columns, key=lambda c: c.order)
        self.tasks = list(tasks)
        self.is_board_loading = False
        return True

    # --- Lookups ---
    def find_task(self, task_id: str) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_column(self, column_id: str) -> Optional[Column]:
        return next((c for c in self.columns if c.id == column_id), None)

    def replace_task(self, task: Task) -> None:
        self.tasks = [task if t.id == task.id else t for t in self.tasks]

    def replace_column(self, column: Column) -> None:
        self.columns = [column if c.id == column.id else c for c in self.columns]

    def replace_board(self, board: Board) -> None:
        self.boards = [board if b.id == board.id else b for b in self.boards]
        if self.current_board and self.current_board.id == board.id:
            self.current_board = board

    # --- Undo helpers: each touches one entity and leaves the rest alone ---
    def reinsert_task(self, task: Task, index: int) -> None:
        if self.find_task(task.id) is None:
            self.tasks = [*self.tasks[:index], task, *self.tasks[index:]]

    def reinsert_column(self, column: Column) -> None:
        if self.find_column(column.id) is None:
            self.columns = sorted([*self.columns, column], key=lambda c: c.order)

    def reinsert_board(self, board: Board, index: int) -> None:
        if all(b.id != board.id for b in self.boards):
            self.boards = [*self.boards[:index], board, *self.boards[index:]]

    def logout(self) -> None:
        """Forget everything. Loads and rollbacks still in flight are invalidated."""
        load, session = self._load_generation + 1, self._session_generation + 1
        self.__init__()
        self._load_generation = load
        self._session_generation = session
