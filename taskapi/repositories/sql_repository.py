"""High-level data access helpers backed by SQLAlchemy.

Every task/subtask statement carries the owner id in its WHERE clause, so a
row belonging to another user can never be matched by a guessed identifier.
Mutations are single UPDATE statements or a single INSERT transaction; no
read-modify-write cycles happen in application memory.
"""
from __future__ import annotations

import logging
import secrets
from collections import defaultdict
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from taskapi.core.security import new_identifier
from taskapi.db.models import Subtask, Task, User, UserSession
from taskapi.db.session import get_session
from taskapi.domain.errors import ConflictError, StoreError, TaskApiError

logger = logging.getLogger(__name__)

LiveTask = tuple[Task, list[Subtask]]


class SQLRepository:
    """CRUD helpers wrapping the SQLAlchemy session."""

    def __init__(self, session_factory: Callable[[], object] | None = None) -> None:
        self._session_factory = session_factory or get_session

    @contextmanager
    def _transaction(self, *, commit: bool = True):
        with self._session_factory() as session:
            try:
                yield session
                if commit:
                    session.commit()
            except TaskApiError:
                session.rollback()
                raise
            except SQLAlchemyError as exc:
                session.rollback()
                logger.warning("store operation failed: %s", exc.__class__.__name__)
                raise StoreError("Internal Server Error") from exc

    # -------------------------- users --------------------------
    def create_user(self, name: str, email: str, password_hash: str) -> User:
        entity = User(id=new_identifier(), name=name, email=email, password_hash=password_hash)
        with self._transaction() as session:
            if session.execute(select(User.id).where(User.email == email)).first() is not None:
                raise ConflictError("Email already exists")
            session.add(entity)
            try:
                session.flush()
            except IntegrityError as exc:
                raise ConflictError("Email already exists") from exc
        return entity

    def get_user(self, user_id: str) -> Optional[User]:
        with self._transaction(commit=False) as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._transaction(commit=False) as session:
            return session.execute(select(User).where(User.email == email)).scalar_one_or_none()

    def user_exists(self, user_id: str) -> bool:
        with self._transaction(commit=False) as session:
            return self._user_exists(session, user_id)

    @staticmethod
    def _user_exists(session: Session, user_id: str) -> bool:
        return session.execute(select(User.id).where(User.id == user_id).limit(1)).first() is not None

    # -------------------------- tasks --------------------------
    @staticmethod
    def _owned_task(owner_id: str, task_id: str, *, live_only: bool):
        stmt = select(Task.id).where(Task.id == task_id, Task.user_id == owner_id)
        if live_only:
            stmt = stmt.where(Task.is_deleted.is_(False))
        return stmt

    @staticmethod
    def _new_subtasks(task_id: str, items: Iterable[dict]) -> list[Subtask]:
        return [
            Subtask(
                id=new_identifier(),
                task_id=task_id,
                subject=item["subject"],
                deadline=item["deadline"],
                status=item.get("status") or "Pending",
                is_deleted=bool(item.get("is_deleted", False)),
            )
            for item in items
        ]

    def append_task(
        self,
        owner_id: str,
        *,
        subject: str,
        deadline: str,
        status: str = "Pending",
        is_deleted: bool = False,
        subtasks: Iterable[dict] = (),
    ) -> Optional[LiveTask]:
        """Insert a task (and optional initial subtasks). None when the owner is unknown."""
        task = Task(
            id=new_identifier(),
            user_id=owner_id,
            subject=subject,
            deadline=deadline,
            status=status,
            is_deleted=is_deleted,
        )
        children = self._new_subtasks(task.id, subtasks)
        with self._transaction() as session:
            if not self._user_exists(session, owner_id):
                return None
            session.add(task)
            session.flush()
            session.add_all(children)
        return task, [child for child in children if not child.is_deleted]

    def _live_subtasks_by_task(self, session: Session, task_ids: list[str]) -> dict[str, list[Subtask]]:
        grouped: dict[str, list[Subtask]] = defaultdict(list)
        if not task_ids:
            return grouped
        stmt = (
            select(Subtask)
            .where(Subtask.task_id.in_(task_ids), Subtask.is_deleted.is_(False))
            .order_by(Subtask.seq)
        )
        for sub in session.execute(stmt).scalars():
            grouped[sub.task_id].append(sub)
        return grouped

    def list_live_tasks(self, owner_id: str) -> list[LiveTask]:
        with self._transaction(commit=False) as session:
            stmt = (
                select(Task)
                .where(Task.user_id == owner_id, Task.is_deleted.is_(False))
                .order_by(Task.seq)
            )
            tasks = session.execute(stmt).scalars().all()
            children = self._live_subtasks_by_task(session, [t.id for t in tasks])
            return [(t, children.get(t.id, [])) for t in tasks]

    def get_live_task(self, owner_id: str, task_id: str) -> Optional[LiveTask]:
        with self._transaction(commit=False) as session:
            stmt = select(Task).where(
                Task.id == task_id, Task.user_id == owner_id, Task.is_deleted.is_(False)
            )
            task = session.execute(stmt).scalar_one_or_none()
            if task is None:
                return None
            children = self._live_subtasks_by_task(session, [task.id])
            return task, children.get(task.id, [])

    def update_task_fields(self, owner_id: str, task_id: str, values: dict) -> bool:
        """Set the given columns on a live task. False when nothing matched."""
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.user_id == owner_id, Task.is_deleted.is_(False))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount > 0

    def mark_task_deleted(self, owner_id: str, task_id: str) -> bool:
        """Flip is_deleted on the task; already-deleted tasks still count as matched."""
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.user_id == owner_id)
            .values(is_deleted=True)
            .execution_options(synchronize_session=False)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount > 0

    # -------------------------- subtasks --------------------------
    def list_live_subtasks(self, owner_id: str, task_id: str) -> Optional[list[Subtask]]:
        """Live subtasks of a live task; None when the task does not match."""
        with self._transaction(commit=False) as session:
            owned = self._owned_task(owner_id, task_id, live_only=True)
            if session.execute(owned).first() is None:
                return None
            return self._live_subtasks_by_task(session, [task_id]).get(task_id, [])

    def get_live_subtask(self, owner_id: str, task_id: str, subtask_id: str) -> Optional[Subtask]:
        stmt = select(Subtask).where(
            Subtask.id == subtask_id,
            Subtask.is_deleted.is_(False),
            Subtask.task_id.in_(self._owned_task(owner_id, task_id, live_only=True)),
        )
        with self._transaction(commit=False) as session:
            return session.execute(stmt).scalar_one_or_none()

    def append_subtasks(self, owner_id: str, task_id: str, items: Iterable[dict]) -> bool:
        """Insert a batch of subtasks under a live task in one transaction."""
        children = self._new_subtasks(task_id, items)
        with self._transaction() as session:
            owned = self._owned_task(owner_id, task_id, live_only=True)
            if session.execute(owned).first() is None:
                return False
            session.add_all(children)
        return True

    def update_subtask_fields(self, owner_id: str, task_id: str, subtask_id: str, values: dict) -> bool:
        stmt = (
            update(Subtask)
            .where(
                Subtask.id == subtask_id,
                Subtask.is_deleted.is_(False),
                Subtask.task_id.in_(self._owned_task(owner_id, task_id, live_only=True)),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount > 0

    def mark_subtask_deleted(self, owner_id: str, task_id: str, subtask_id: str) -> bool:
        stmt = (
            update(Subtask)
            .where(
                Subtask.id == subtask_id,
                Subtask.task_id.in_(self._owned_task(owner_id, task_id, live_only=False)),
            )
            .values(is_deleted=True)
            .execution_options(synchronize_session=False)
        )
        with self._transaction() as session:
            return session.execute(stmt).rowcount > 0

    # -------------------------- sessions --------------------------
    def create_session(self, user_id: str, ttl_seconds: int) -> str:
        token = secrets.token_urlsafe(32)
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        with self._transaction() as session:
            session.add(UserSession(token=token, user_id=user_id, expires_at=expires_at))
        return token

    def session_user_id(self, token: str) -> Optional[str]:
        """User id bound to a live session token; expired tokens are removed."""
        now = datetime.now(timezone.utc)
        with self._transaction() as session:
            entity = session.get(UserSession, token)
            if not entity:
                return None
            expires_at = entity.expires_at
            # SQLite hands back naive datetimes even for timezone=True columns
            if expires_at is not None and expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=timezone.utc)
            if expires_at is not None and expires_at < now:
                session.delete(entity)
                return None
            return entity.user_id

    def delete_session(self, token: str) -> None:
        with self._transaction() as session:
            session.execute(delete(UserSession).where(UserSession.token == token))
