# routers/columns.py — Column create / rename / delete
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, CurrentUser
from board_access import get_board, get_column
from board_rules import suggest_column_kind
from database import get_db_session
from models import BoardColumn, ColumnKind, Task
from schemas import ApiModel, ColumnOut, column_to_out

logger = logging.getLogger("taskboard.columns")

router = APIRouter(prefix="/api/v1/columns", tags=["Columns"])

NOT_EMPTY_MESSAGE = "Please delete all cards in this list first."


class ColumnCreate(ApiModel):
    board_id: str
    title: str = Field(..., min_length=1, max_length=100)
    kind: Optional[ColumnKind] = None


class ColumnUpdate(ApiModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    kind: Optional[ColumnKind] = None


@router.post("", response_model=ColumnOut, status_code=201)
async def create_column(
    data: ColumnCreate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Append a column. Its rank is the board's current column count."""
    await get_board(data.board_id, user.id, db)

    count_stmt = select(func.count(BoardColumn.id)).where(BoardColumn.board_id == data.board_id)
    count = (await db.execute(count_stmt)).scalar() or 0

    title = data.title.strip()
    column = BoardColumn(
        board_id=data.board_id,
        title=title,
        order=count,
        kind=data.kind or suggest_column_kind(title),
    )
    db.add(column)
    await db.commit()
    await db.refresh(column)
    return column_to_out(column)


@router.put("/{column_id}", response_model=ColumnOut)
async def update_column(
    column_id: str,
    data: ColumnUpdate,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    column = await get_column(column_id, user.id, db)
    if data.title is not None:
        column.title = data.title.strip()
    if data.kind is not None:
        column.kind = data.kind
    await db.commit()
    await db.refresh(column)
    return column_to_out(column)


@router.delete("/{column_id}")
async def delete_column(
    column_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete an empty column. Remaining ranks are left as they are."""
    column = await get_column(column_id, user.id, db)

    count_stmt = select(func.count(Task.id)).where(Task.column_id == column_id)
    if ((await db.execute(count_stmt)).scalar() or 0) > 0:
        raise HTTPException(status_code=409, detail=NOT_EMPTY_MESSAGE)

    await db.delete(column)
    await db.commit()
    return {"status": "deleted", "column_id": column_id}
