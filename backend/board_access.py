# board_access.py — Who can see which board, and lookups scoped to that
from fastapi import HTTPException
from sqlalchemy import select, or_, cast, String
from sqlalchemy.ext.asyncio import AsyncSession

from models import Board, BoardMember, BoardColumn, Task


def assigned_board_ids(user_id: str):
    """Boards holding a task the user is assigned to."""
    return (
        select(BoardColumn.board_id)
        .join(Task, Task.column_id == BoardColumn.id)
        .where(cast(Task.assignee_ids, String).like(f'%"{user_id}"%'))
    )


def accessible_board_ids(user_id: str):
    """Owned, shared with, or holding an assigned task."""
    member_ids = select(BoardMember.board_id).where(BoardMember.user_id == user_id)
    return select(Board.id).where(
        or_(
            Board.owner_id == user_id,
            Board.id.in_(member_ids),
            Board.id.in_(assigned_board_ids(user_id)),
        )
    )


async def get_board(board_id: str, user_id: str, db: AsyncSession) -> Board:
    stmt = select(Board).where(Board.id == board_id, Board.id.in_(accessible_board_ids(user_id)))
    result = await db.execute(stmt)
    board = result.scalar_one_or_none()
    if not board:
        raise HTTPException(status_code=404, detail="Board not found")
    return board


async def get_column(column_id: str, user_id: str, db: AsyncSession) -> BoardColumn:
    stmt = select(BoardColumn).where(
        BoardColumn.id == column_id,
        BoardColumn.board_id.in_(accessible_board_ids(user_id)),
    )
    result = await db.execute(stmt)
    column = result.scalar_one_or_none()
    if not column:
        raise HTTPException(status_code=404, detail="Column not found")
    return column


async def get_task(task_id: str, user_id: str, db: AsyncSession) -> Task:
    stmt = (
        select(Task)
        .join(BoardColumn, Task.column_id == BoardColumn.id)
        .where(Task.id == task_id, BoardColumn.board_id.in_(accessible_board_ids(user_id)))
    )
    result = await db.execute(stmt)
    task = result.scalar_one_or_none()
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task
