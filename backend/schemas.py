# schemas.py — Wire models shared by the routers (camelCase on the wire)
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models import Board, BoardColumn, Task, User


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _ts(dt) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat() if isinstance(dt, datetime) else str(dt)


# --- Embedded task documents ---
class Subtask(ApiModel):
    id: str
    title: str = Field(..., min_length=1, max_length=500)
    completed: bool = False


class Comment(ApiModel):
    id: str
    text: str
    author: str
    created_at: str


class Attachment(ApiModel):
    id: str
    file_name: str
    file_type: str
    file_url: str
    uploaded_at: str


# --- Outputs ---
class UserOut(ApiModel):
    id: str
    email: str
    name: str
    initials: str
    avatar_url: Optional[str] = None


class BoardOut(ApiModel):
    id: str
    title: str
    background: str
    owner_id: Optional[str] = None
    created_at: Optional[str] = None


class ColumnOut(ApiModel):
    id: str
    board_id: str
    title: str
    order: int
    kind: str


class TaskOut(ApiModel):
    id: str
    column_id: str
    title: str
    description: str = ""
    priority: str
    position: float
    subtasks: List[Subtask] = []
    comments: List[Comment] = []
    assignee_ids: List[str] = []
    attachments: List[Attachment] = []
    start_date: Optional[str] = None
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    # Set on search results only
    board_id: Optional[str] = None
    board_title: Optional[str] = None


def user_to_out(u: User) -> UserOut:
    return UserOut(id=u.id, email=u.email, name=u.name or "", initials=u.initials or "", avatar_url=u.avatar_url)


def board_to_out(b: Board) -> BoardOut:
    return BoardOut(id=b.id, title=b.title, background=b.background or "", owner_id=b.owner_id, created_at=_ts(b.created_at))


def column_to_out(c: BoardColumn) -> ColumnOut:
    return ColumnOut(
        id=c.id, board_id=c.board_id, title=c.title, order=c.order,
        kind=c.kind.value if hasattr(c.kind, "value") else str(c.kind),
    )


def task_to_out(t: Task, board_id: Optional[str] = None, board_title: Optional[str] = None) -> TaskOut:
    return TaskOut(
        id=t.id,
        column_id=t.column_id,
        title=t.title,
        description=t.description or "",
        priority=t.priority.value if hasattr(t.priority, "value") else str(t.priority),
        position=t.position or 0.0,
        subtasks=t.subtasks or [],
        comments=t.comments or [],
        assignee_ids=t.assignee_ids or [],
        attachments=t.attachments or [],
        start_date=_ts(t.start_date),
        due_date=_ts(t.due_date),
        created_at=_ts(t.created_at),
        board_id=board_id,
        board_title=board_title,
    )
