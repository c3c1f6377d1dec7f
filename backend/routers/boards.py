# routers/boards.py — Boards, sharing and per-board listings
import logging
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import EmailStr, Field
from sqlalchemy import select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from board_access import accessible_board_ids, get_board
from board_rules import DEFAULT_COLUMNS
from database import get_db_session
from models import Board, BoardColumn, BoardMember, MemberRole, Task, User
from routers.attachments import remove_stored_files
from schemas import (
    ApiModel, BoardOut, ColumnOut, TaskOut, UserOut,
    board_to_out, column_to_out, task_to_out, user_to_out,
)

logger = logging.getLogger("taskboard.boards")

router = APIRouter(prefix="/api/v1/boards", tags=["Boards"])


# ============================================================
# SCHEMAS
# ============================================================

class BoardCreate(ApiModel):
    id: Optional[str] = Field(None, min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=200)
    background: str = ""


class BoardUpdate(ApiModel):
    title: str = Field(..., min_length=1, max_length=200)


class ShareRequest(ApiModel):
    email: EmailStr


# ============================================================
# BOARD ENDPOINTS
# ============================================================

@router.get("", response_model=List[BoardOut])
async def list_boards(
    user_id: Optional[str] = Query(None, alias="userId"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Boards the caller owns, is a member of, or has an assigned task on"""
    if user_id and user_id != user.id:
        raise HTTPException(status_code=403, detail="Cannot list boards of another user")
    stmt = (
        select(Board)
        .where(Board.id.in_(accessible_board_ids(user.id)))
        .order_by(Board.created_at)
    )
    result = await db.execute(stmt)
    return [board_to_out(b) for b in result.scalars().all()]


@router.post("", response_model=BoardOut, status_code=201)
async def create_board(
    data: BoardCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a board with the three default columns"""
    if data.id:
        existing = await db.get(Board, data.id)
        if existing:
            raise HTTPException(status_code=409, detail="Board id already in use")

    board = Board(title=data.title.strip(), background=data.background, owner_id=user.id)
    if data.id:
        board.id = data.id
    db.add(board)
    await db.flush()

    for order, col in enumerate(DEFAULT_COLUMNS):
        db.add(BoardColumn(board_id=board.id, title=col["title"], kind=col["kind"], order=order))

    await db.commit()
    await db.refresh(board)
    logger.info(f"Board {board.id} created by {user.id}")
    return board_to_out(board)


@router.put("/{board_id}", response_model=BoardOut)
async def update_board(
    board_id: str,
    data: BoardUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    board = await get_board(board_id, user.id, db)
    board.title = data.title.strip()
    await db.commit()
    await db.refresh(board)
    return board_to_out(board)


@router.delete("/{board_id}")
async def delete_board(
    board_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete a board with its columns and tasks (owner only)"""
    board = await get_board(board_id, user.id, db)
    if board.owner_id != user.id:
        raise HTTPException(status_code=403, detail="Only the board owner can delete it")

    stmt = (
        select(Task.attachments)
        .join(BoardColumn, Task.column_id == BoardColumn.id)
        .where(BoardColumn.board_id == board_id)
    )
    result = await db.execute(stmt)
    attachments = [a for row in result.scalars().all() for a in (row or [])]

    await db.delete(board)
    await db.commit()
    remove_stored_files(attachments)
    logger.info(f"Board {board_id} deleted by {user.id}")
    return {"status": "deleted", "board_id": board_id}


@router.post("/{board_id}/share")
async def share_board(
    board_id: str,
    data: ShareRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Add the user with this email as a member. Re-sharing is a no-op."""
    await get_board(board_id, user.id, db)

    result = await db.execute(select(User).where(User.email == data.email.lower()))
    target = result.scalar_one_or_none()
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    values = {"board_id": board_id, "user_id": target.id, "role": MemberRole.MEMBER}
    if db.get_bind().dialect.name == "postgresql":
        stmt = pg_insert(BoardMember).values(**values).on_conflict_do_nothing()
    else:
        stmt = sqlite_insert(BoardMember).values(**values).on_conflict_do_nothing()
    await db.execute(stmt)
    await db.commit()
    return {"status": "shared", "message": "User added to board", "user_id": target.id}


@router.get("/{board_id}/members", response_model=List[UserOut])
async def list_members(
    board_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    board = await get_board(board_id, user.id, db)
    member_ids = select(BoardMember.user_id).where(BoardMember.board_id == board_id)
    stmt = select(User).where((User.id == board.owner_id) | User.id.in_(member_ids)).order_by(User.name)
    result = await db.execute(stmt)
    return [user_to_out(u) for u in result.scalars().all()]


@router.get("/{board_id}/columns", response_model=List[ColumnOut])
async def list_columns(
    board_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Columns of a board ordered by rank"""
    await get_board(board_id, user.id, db)
    stmt = (
        select(BoardColumn)
        .where(BoardColumn.board_id == board_id)
        .order_by(BoardColumn.order, BoardColumn.created_at)
    )
    result = await db.execute(stmt)
    return [column_to_out(c) for c in result.scalars().all()]


@router.get("/{board_id}/tasks", response_model=List[TaskOut])
async def list_tasks(
    board_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Flat task list of a board, sorted by position"""
    await get_board(board_id, user.id, db)
    stmt = (
        select(Task)
        .join(BoardColumn, Task.column_id == BoardColumn.id)
        .where(BoardColumn.board_id == board_id)
        .order_by(Task.position, Task.created_at)
    )
    result = await db.execute(stmt)
    return [task_to_out(t) for t in result.scalars().all()]
