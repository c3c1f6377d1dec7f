#!/usr/bin/env python3
"""
Taskboard — Demo data loader
Creates a demo account with one sample board so a fresh install has
something to look at.

Usage:
    python -m seed
    python -m seed --email demo@example.com --password demo-pass-1
"""

import argparse
import asyncio
import logging

from sqlalchemy import select

from auth import AuthService, make_initials
from board_rules import POSITION_STEP, suggest_column_kind
from database import close_db, get_db_context, init_db
from models import Board, BoardColumn, Task, TaskPriority, User, new_uuid

logger = logging.getLogger("taskboard.seed")

SAMPLE_BOARD = "Product Launch 🚀"
SAMPLE_COLUMNS = ["To Do", "In Progress", "Review", "Done"]

# (column index, title, priority, description, subtasks)
SAMPLE_TASKS = [
    (0, "Design System Draft", TaskPriority.HIGH,
     "Create initial color palette and typography.",
     [("Pick primary colors", True), ("Select font family", False)]),
    (0, "Setup Database Schema", TaskPriority.HIGH,
     "Define tables for users, boards, columns and tasks.", []),
    (1, "Gemini Integration", TaskPriority.MEDIUM,
     "Connect the AI assistant for descriptions and subtasks.", []),
]


async def seed(email: str, password: str, name: str) -> bool:
    """Insert the demo user and board. Returns False if the user already exists."""
    await init_db()
    async with get_db_context() as db:
        existing = await db.execute(select(User).where(User.email == email.lower()))
        if existing.scalar_one_or_none():
            logger.info(f"Demo user {email} already present, nothing to do")
            return False

        user = User(
            email=email.lower(),
            name=name,
            initials=make_initials(name),
            password_hash=AuthService.hash_password(password),
        )
        db.add(user)
        await db.flush()

        board = Board(title=SAMPLE_BOARD, owner_id=user.id)
        db.add(board)
        await db.flush()

        columns = []
        for order, title in enumerate(SAMPLE_COLUMNS):
            col = BoardColumn(board_id=board.id, title=title, order=order, kind=suggest_column_kind(title))
            db.add(col)
            columns.append(col)
        await db.flush()

        per_column = {}
        for col_index, title, priority, description, subtasks in SAMPLE_TASKS:
            slot = per_column.get(col_index, 0)
            per_column[col_index] = slot + 1
            db.add(Task(
                column_id=columns[col_index].id,
                title=title,
                description=description,
                priority=priority,
                position=(slot + 1) * POSITION_STEP,
                subtasks=[{"id": new_uuid(), "title": t, "completed": done} for t, done in subtasks],
                assignee_ids=[user.id],
            ))

    logger.info(f"✅ Seeded {email} with board '{SAMPLE_BOARD}'")
    return True


def main():
    parser = argparse.ArgumentParser(description="Taskboard demo data loader")
    parser.add_argument("--email", type=str, default="demo@taskboard.local", help="Demo account email")
    parser.add_argument("--password", type=str, default="demo-pass-1", help="Demo account password")
    parser.add_argument("--name", type=str, default="Demo User", help="Demo account display name")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    async def _run():
        try:
            return await seed(args.email, args.password, args.name)
        finally:
            await close_db()

    created = asyncio.run(_run())
    print(f"{'✅ Created' if created else 'ℹ️  Exists'}: {args.email}")


if __name__ == "__main__":
    main()
