"""SQLAlchemy models for users and their nested tasks/subtasks."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .session import Base

STATUS_VALUES = ("Pending", "Completed", "Overdue")
_STATUS_CHECK = "status IN ('Pending', 'Completed', 'Overdue')"


class User(Base):
    __tablename__ = "users"

    id = Column(String(24), primary_key=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    tasks = relationship("Task", back_populates="owner", order_by="Task.seq", cascade="all,delete-orphan")


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (CheckConstraint(_STATUS_CHECK, name="ck_tasks_status"),)

    # seq keeps insertion order; id is the opaque handle exposed to clients
    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(24), unique=True, nullable=False, index=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    deadline = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="Pending")
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", back_populates="tasks")
    subtasks = relationship("Subtask", back_populates="task", order_by="Subtask.seq", cascade="all,delete-orphan")


class Subtask(Base):
    __tablename__ = "subtasks"
    __table_args__ = (CheckConstraint(_STATUS_CHECK, name="ck_subtasks_status"),)

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String(24), unique=True, nullable=False, index=True)
    task_id = Column(String(24), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    deadline = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="Pending")
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    task = relationship("Task", back_populates="subtasks")


class UserSession(Base):
    __tablename__ = "sessions"

    token = Column(String(128), primary_key=True)
    user_id = Column(String(24), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
