# routers/search.py — Cross-board task search
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from board_access import accessible_board_ids
from database import get_db_session
from models import Board, BoardColumn, Task
from schemas import TaskOut, task_to_out

router = APIRouter(prefix="/api/v1/search", tags=["Search"])

SEARCH_LIMIT = 20


def _like_pattern(q: str) -> str:
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@router.get("", response_model=List[TaskOut])
async def search_tasks(
    q: str = Query("", max_length=200),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Substring match on task title or description, annotated with the owning board"""
    q = q.strip()
    if not q:
        return []

    pattern = _like_pattern(q)
    stmt = (
        select(Task, Board.id, Board.title)
        .join(BoardColumn, Task.column_id == BoardColumn.id)
        .join(Board, BoardColumn.board_id == Board.id)
        .where(
            Board.id.in_(accessible_board_ids(user.id)),
            or_(
                Task.title.ilike(pattern, escape="\\"),
                Task.description.ilike(pattern, escape="\\"),
            ),
        )
        .order_by(Task.created_at.desc())
        .limit(SEARCH_LIMIT)
    )
    result = await db.execute(stmt)
    return [task_to_out(t, board_id=bid, board_title=btitle) for t, bid, btitle in result.all()]
