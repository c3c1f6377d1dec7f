# taskboard_client/models.py — Client-side views of API resources
from typing import Optional, List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ClientModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class Subtask(ClientModel):
    id: str
    title: str
    completed: bool = False


class Comment(ClientModel):
    id: str
    text: str
    author: str
    created_at: str


class Attachment(ClientModel):
    id: str
    file_name: str
    file_type: str
    file_url: str
    uploaded_at: str


class User(ClientModel):
    id: str
    email: str
    name: str
    initials: str = ""
    avatar_url: Optional[str] = None


class Board(ClientModel):
    id: str
    title: str
    background: str = ""
    owner_id: Optional[str] = None


class Column(ClientModel):
    id: str
    board_id: str
    title: str
    order: int = 0
    kind: str = "other"


class Task(ClientModel):
    id: str
    column_id: str
    title: str
    description: str = ""
    priority: str = "medium"
    position: float = 0.0
    subtasks: List[Subtask] = []
    comments: List[Comment] = []
    assignee_ids: List[str] = []
    attachments: List[Attachment] = []
    start_date: Optional[str] = None
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    # Present on search results
    board_id: Optional[str] = None
    board_title: Optional[str] = None


class Session(ClientModel):
    """What the local session record holds"""
    user: User
    access_token: str
    refresh_token: Optional[str] = None
