# models.py — Database models for Taskboard
# - String UUID primary keys (client-supplied ids are kept for boards and tasks)
# - Subtasks, comments, assignees and attachments embedded as JSON on the task row
# - Fractional task position for a stable order across reloads

import uuid
from datetime import datetime, timezone
from enum import Enum as PyEnum
from sqlalchemy import (
    Column, String, DateTime, JSON, Integer, Float,
    Enum as SQLEnum, ForeignKey, Text, Index,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc)


def new_uuid():
    return str(uuid.uuid4())


# ============================================================
# ENUMS
# ============================================================

class TaskPriority(str, PyEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ColumnKind(str, PyEnum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    OTHER = "other"


class MemberRole(str, PyEnum):
    OWNER = "owner"
    MEMBER = "member"


# ============================================================
# USERS
# ============================================================

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=new_uuid)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False, default="")
    initials = Column(String(2), nullable=False, default="")
    avatar_url = Column(Text, nullable=True)  # may hold a data: URL
    password_hash = Column(String, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    owned_boards = relationship("Board", back_populates="owner")
    memberships = relationship("BoardMember", back_populates="user", cascade="all, delete-orphan")


# ============================================================
# TOKEN REVOCATION
# ============================================================

class RevokedToken(Base):
    __tablename__ = "revoked_tokens"

    id = Column(String, primary_key=True, default=new_uuid)
    jti = Column(String, unique=True, nullable=False, index=True)  # JWT ID
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    revoked_at = Column(DateTime(timezone=True), default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=False)  # When the token would have expired


# ============================================================
# KANBAN BOARD
# ============================================================

class Board(Base):
    """Kanban board holding ordered columns"""
    __tablename__ = "boards"

    id = Column(String, primary_key=True, default=new_uuid)
    title = Column(String, nullable=False)
    background = Column(String, nullable=False, default="")  # colour token or gradient name
    owner_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    owner = relationship("User", back_populates="owned_boards")
    columns = relationship(
        "BoardColumn", back_populates="board", order_by="BoardColumn.order",
        cascade="all, delete-orphan", passive_deletes=True,
    )
    members = relationship("BoardMember", back_populates="board", cascade="all, delete-orphan", passive_deletes=True)


class BoardMember(Base):
    """User a board has been shared with"""
    __tablename__ = "board_members"

    board_id = Column(String, ForeignKey("boards.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True, index=True)
    role = Column(SQLEnum(MemberRole), nullable=False, default=MemberRole.MEMBER)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    board = relationship("Board", back_populates="members")
    user = relationship("User", back_populates="memberships")


class BoardColumn(Base):
    """Ordered lane in a board. `order` is assigned once and never reindexed."""
    __tablename__ = "columns"

    id = Column(String, primary_key=True, default=new_uuid)
    board_id = Column(String, ForeignKey("boards.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    order = Column("col_order", Integer, nullable=False, default=0)
    kind = Column(SQLEnum(ColumnKind), nullable=False, default=ColumnKind.OTHER)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    board = relationship("Board", back_populates="columns")
    tasks = relationship("Task", back_populates="column", cascade="all, delete-orphan", passive_deletes=True)

    __table_args__ = (
        Index("idx_column_board_order", "board_id", "col_order"),
    )


class Task(Base):
    """Task card. Position is a fractional rank within its column."""
    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=new_uuid)
    column_id = Column(String, ForeignKey("columns.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    priority = Column(SQLEnum(TaskPriority), nullable=False, default=TaskPriority.MEDIUM)
    position = Column(Float, nullable=False, default=0.0)

    # Embedded documents
    subtasks = Column(JSON, nullable=False, default=list)      # [{id, title, completed}]
    comments = Column(JSON, nullable=False, default=list)      # [{id, text, author, created_at}]
    assignee_ids = Column(JSON, nullable=False, default=list)  # [user id]
    attachments = Column(JSON, nullable=False, default=list)   # [{id, file_name, file_type, file_url, uploaded_at}]

    start_date = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    column = relationship("BoardColumn", back_populates="tasks")

    __table_args__ = (
        Index("idx_task_col_position", "column_id", "position"),
    )
