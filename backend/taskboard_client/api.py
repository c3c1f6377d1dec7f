# taskboard_client/api.py — Async HTTP client for the Taskboard API
import logging
from typing import Any, Dict, List, Optional

import httpx

from taskboard_client.errors import TransportError, error_for_status
from taskboard_client.models import Attachment, Board, Column, Subtask, Task, User

logger = logging.getLogger("taskboard.client.api")

API_PREFIX = "/api/v1"


class AuthResult:
    def __init__(self, data: Dict[str, Any]):
        self.access_token: str = data["access_token"]
        self.refresh_token: Optional[str] = data.get("refresh_token")
        self.user = User.model_validate(data["user"])


def _detail(resp: httpx.Response) -> str:
    try:
        detail = resp.json().get("detail")
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(detail, list):
        return "; ".join(str(d.get("msg", d)) if isinstance(d, dict) else str(d) for d in detail)
    return str(detail) if detail else resp.reason_phrase


class TaskboardAPI:
    """Thin typed wrapper over the REST surface. Raises TaskboardError subclasses."""

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        *,
        token: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._token = token

    async def __aenter__(self) -> "TaskboardAPI":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            resp = await self._client.request(method, f"{API_PREFIX}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise TransportError(str(e) or type(e).__name__) from e
        if resp.status_code >= 400:
            raise error_for_status(resp.status_code, _detail(resp))
        if not resp.content:
            return None
        return resp.json()

    # --- Auth ---
    async def register(self, name: str, email: str, password: str) -> AuthResult:
        data = await self._request("POST", "/auth/register", json={"name": name, "email": email, "password": password})
        return AuthResult(data)

    async def login(self, email: str, password: str) -> AuthResult:
        data = await self._request("POST", "/auth/login", json={"email": email, "password": password})
        return AuthResult(data)

    async def refresh(self, refresh_token: str) -> AuthResult:
        return AuthResult(await self._request("POST", "/auth/refresh", json={"refresh_token": refresh_token}))

    async def logout(self) -> None:
        await self._request("POST", "/auth/logout")

    async def me(self) -> User:
        return User.model_validate(await self._request("GET", "/auth/me"))

    async def change_password(self, current_password: str, new_password: str) -> None:
        await self._request(
            "POST", "/auth/change-password",
            json={"current_password": current_password, "new_password": new_password},
        )

    # --- Boards ---
    async def list_boards(self) -> List[Board]:
        return [Board.model_validate(b) for b in await self._request("GET", "/boards")]

    async def create_board(self, board: Board) -> Board:
        body = {"id": board.id, "title": board.title, "background": board.background}
        return Board.model_validate(await self._request("POST", "/boards", json=body))

    async def rename_board(self, board_id: str, title: str) -> Board:
        return Board.model_validate(await self._request("PUT", f"/boards/{board_id}", json={"title": title}))

    async def delete_board(self, board_id: str) -> None:
        await self._request("DELETE", f"/boards/{board_id}")

    async def share_board(self, board_id: str, email: str) -> None:
        await self._request("POST", f"/boards/{board_id}/share", json={"email": email})

    async def list_members(self, board_id: str) -> List[User]:
        return [User.model_validate(u) for u in await self._request("GET", f"/boards/{board_id}/members")]

    # --- Columns ---
    async def list_columns(self, board_id: str) -> List[Column]:
        return [Column.model_validate(c) for c in await self._request("GET", f"/boards/{board_id}/columns")]

    async def create_column(self, board_id: str, title: str, kind: Optional[str] = None) -> Column:
        body = {"boardId": board_id, "title": title}
        if kind:
            body["kind"] = kind
        return Column.model_validate(await self._request("POST", "/columns", json=body))

    async def update_column(self, column_id: str, title: Optional[str] = None, kind: Optional[str] = None) -> Column:
        body = {k: v for k, v in {"title": title, "kind": kind}.items() if v is not None}
        return Column.model_validate(await self._request("PUT", f"/columns/{column_id}", json=body))

    async def delete_column(self, column_id: str) -> None:
        await self._request("DELETE", f"/columns/{column_id}")

    # --- Tasks ---
    async def list_tasks(self, board_id: str) -> List[Task]:
        return [Task.model_validate(t) for t in await self._request("GET", f"/boards/{board_id}/tasks")]

    async def create_task(self, task: Task) -> Task:
        body = task.to_wire()
        for server_owned in ("position", "comments", "attachments", "createdAt", "boardId", "boardTitle"):
            body.pop(server_owned, None)
        return Task.model_validate(await self._request("POST", "/tasks", json=body))

    async def update_task(self, task: Task) -> Task:
        body = {
            "title": task.title,
            "description": task.description,
            "priority": task.priority,
            "subtasks": [s.to_wire() for s in task.subtasks],
            "assigneeIds": task.assignee_ids,
            "startDate": task.start_date,
            "dueDate": task.due_date,
        }
        return Task.model_validate(await self._request("PUT", f"/tasks/{task.id}", json=body))

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/tasks/{task_id}")

    async def reorder_task(self, task_id: str, target_column_id: str, new_index: Optional[int] = None) -> Task:
        body: Dict[str, Any] = {"targetColumnId": target_column_id}
        if new_index is not None:
            body["newIndex"] = new_index
        return Task.model_validate(await self._request("POST", f"/tasks/{task_id}/reorder", json=body))

    async def add_comment(self, task_id: str, text: str) -> Task:
        return Task.model_validate(await self._request("POST", f"/tasks/{task_id}/comments", json={"text": text}))

    async def upload_attachment(
        self, task_id: str, file_name: str, content: bytes, content_type: str = "application/octet-stream",
    ) -> Attachment:
        files = {"file": (file_name, content, content_type)}
        return Attachment.model_validate(await self._request("POST", f"/tasks/{task_id}/attachments", files=files))

    async def delete_attachment(self, task_id: str, attachment_id: str) -> Task:
        return Task.model_validate(await self._request("DELETE", f"/tasks/{task_id}/attachments/{attachment_id}"))

    async def search(self, query: str) -> List[Task]:
        return [Task.model_validate(t) for t in await self._request("GET", "/search", params={"q": query})]

    # --- Users ---
    async def list_users(self) -> List[User]:
        return [User.model_validate(u) for u in await self._request("GET", "/users")]

    async def lookup_user(self, email: str) -> User:
        return User.model_validate(await self._request("GET", "/users/lookup", params={"email": email}))

    async def update_user(self, user_id: str, name: Optional[str] = None, avatar_url: Optional[str] = None) -> User:
        body = {k: v for k, v in {"name": name, "avatarUrl": avatar_url}.items() if v is not None}
        return User.model_validate(await self._request("PUT", f"/users/{user_id}", json=body))

    # --- AI ---
    async def generate_description(self, title: str, description: str = "") -> str:
        data = await self._request("POST", "/ai/description", json={"title": title, "description": description})
        return data["description"]

    async def generate_subtasks(self, title: str) -> List[Subtask]:
        data = await self._request("POST", "/ai/subtasks", json={"title": title})
        return [Subtask.model_validate(s) for s in data["subtasks"]]
