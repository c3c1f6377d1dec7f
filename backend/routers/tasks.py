# routers/tasks.py — Task cards: CRUD, reorder between columns, comments
import uuid
import logging
from datetime import datetime
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from board_access import get_column, get_task
from board_rules import position_for_index, rebalanced_positions
from database import get_db_session
from models import Task, TaskPriority, utcnow
from routers.attachments import remove_stored_files
from telemetry import span
from schemas import ApiModel, Comment, Subtask, TaskOut, task_to_out

logger = logging.getLogger("taskboard.tasks")

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])


# ============================================================
# SCHEMAS
# ============================================================

class TaskCreate(ApiModel):
    id: Optional[str] = Field(None, min_length=1, max_length=100)
    column_id: str
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    subtasks: List[Subtask] = Field(default_factory=list)
    assignee_ids: List[str] = Field(default_factory=list)
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None


class TaskUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    subtasks: Optional[List[Subtask]] = None
    assignee_ids: Optional[List[str]] = None
    start_date: Optional[datetime] = None
    due_date: Optional[datetime] = None


class TaskReorder(ApiModel):
    target_column_id: str
    new_index: Optional[int] = Field(None, ge=0)


class CommentCreate(ApiModel):
    text: str = Field(..., min_length=1, max_length=10000)


# ============================================================
# HELPERS
# ============================================================

async def _column_tasks(db: AsyncSession, column_id: str, exclude_id: Optional[str] = None) -> List[Task]:
    stmt = select(Task).where(Task.column_id == column_id)
    if exclude_id:
        stmt = stmt.where(Task.id != exclude_id)
    stmt = stmt.order_by(Task.position, Task.created_at)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def _position_at(db: AsyncSession, column_id: str, index: Optional[int] = None, exclude_id: Optional[str] = None) -> float:
    """Rank for slot ``index`` of a column (end when None), rebalancing the column if it ran out of room."""
    siblings = await _column_tasks(db, column_id, exclude_id)
    if index is None:
        index = len(siblings)
    position = position_for_index([t.position for t in siblings], index)
    if position is None:
        logger.info(f"Rebalancing positions in column {column_id}")
        for t, p in zip(siblings, rebalanced_positions(len(siblings))):
            t.position = p
        position = position_for_index([t.position for t in siblings], index)
    return position


# ============================================================
# TASK ENDPOINTS
# ============================================================

@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    data: TaskCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a task at the end of its column"""
    await get_column(data.column_id, user.id, db)
    if data.id and await db.get(Task, data.id):
        raise HTTPException(status_code=409, detail="Task id already in use")

    task = Task(
        column_id=data.column_id,
        title=data.title.strip(),
        description=data.description,
        priority=data.priority,
        subtasks=[s.model_dump() for s in data.subtasks],
        comments=[],
        assignee_ids=list(dict.fromkeys(data.assignee_ids)),
        attachments=[],
        start_date=data.start_date,
        due_date=data.due_date,
        position=await _position_at(db, data.column_id),
    )
    if data.id:
        task.id = data.id
    db.add(task)
    await db.commit()
    await db.refresh(task)
    return task_to_out(task)


@router.get("/{task_id}", response_model=TaskOut)
async def get_task_detail(
    task_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    task = await get_task(task_id, user.id, db)
    return task_to_out(task)


@router.put("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    data: TaskUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Update task fields. Column and position only change through reorder."""
    task = await get_task(task_id, user.id, db)
    fields = data.model_fields_set

    if data.title is not None:
        task.title = data.title.strip()
    if data.description is not None:
        task.description = data.description
    if data.priority is not None:
        task.priority = data.priority
    if data.subtasks is not None:
        task.subtasks = [s.model_dump() for s in data.subtasks]
    if data.assignee_ids is not None:
        task.assignee_ids = list(dict.fromkeys(data.assignee_ids))
    # Dates may be cleared explicitly with null
    if "start_date" in fields:
        task.start_date = data.start_date
    if "due_date" in fields:
        task.due_date = data.due_date

    await db.commit()
    await db.refresh(task)
    return task_to_out(task)


@router.delete("/{task_id}")
async def delete_task(
    task_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    task = await get_task(task_id, user.id, db)
    attachments = list(task.attachments or [])
    await db.delete(task)
    await db.commit()
    remove_stored_files(attachments)
    return {"status": "deleted", "task_id": task_id}


@router.post("/{task_id}/reorder", response_model=TaskOut)
async def reorder_task(
    task_id: str,
    data: TaskReorder,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Move a task to a column. With ``newIndex`` the task's rank follows the drop slot."""
    task = await get_task(task_id, user.id, db)
    source = await get_column(task.column_id, user.id, db)
    target = await get_column(data.target_column_id, user.id, db)
    if target.board_id != source.board_id:
        raise HTTPException(status_code=400, detail="Target column belongs to another board")

    with span("task.reorder", task_id=task.id, target_column_id=target.id):
        if data.new_index is not None:
            task.position = await _position_at(db, target.id, data.new_index, exclude_id=task.id)
        task.column_id = target.id

    await db.commit()
    await db.refresh(task)
    return task_to_out(task)


@router.post("/{task_id}/comments", response_model=TaskOut, status_code=201)
async def add_comment(
    task_id: str,
    data: CommentCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    task = await get_task(task_id, user.id, db)
    comment = Comment(
        id=uuid.uuid4().hex,
        text=data.text,
        author=user.name or user.email,
        created_at=utcnow().isoformat(),
    )
    task.comments = [*(task.comments or []), comment.model_dump()]
    await db.commit()
    await db.refresh(task)
    return task_to_out(task)
