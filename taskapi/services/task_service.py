"""
Task lifecycle use cases: create, list, update and soft-delete tasks and
their subtasks for one owning user.

Soft-deleted rows stay in storage; every read filters them out at both
nesting levels.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from taskapi.db.models import Subtask, Task
from taskapi.domain.errors import NotFoundError, ValidationError
from taskapi.domain.tasks import (
    SubtaskCreate,
    SubtaskOut,
    SubtaskUpdate,
    TaskCreate,
    TaskOut,
    TaskUpdate,
)
from taskapi.domain.validation import coerce, coerce_list
from taskapi.repositories.sql_repository import SQLRepository

logger = logging.getLogger(__name__)


def _subtask_out(entity: Subtask) -> SubtaskOut:
    return SubtaskOut(
        id=entity.id,
        subject=entity.subject,
        deadline=entity.deadline,
        status=entity.status,
        is_deleted=bool(entity.is_deleted),
    )


def _task_out(entity: Task, subtasks: list[Subtask]) -> TaskOut:
    return TaskOut(
        id=entity.id,
        subject=entity.subject,
        deadline=entity.deadline,
        status=entity.status,
        is_deleted=bool(entity.is_deleted),
        subtasks=[_subtask_out(sub) for sub in subtasks],
    )


class TaskService:
    """Owner-scoped task/subtask operations on top of an injected repository."""

    def __init__(self, repository: Optional[SQLRepository] = None) -> None:
        self.repository = repository or SQLRepository()

    # -------------------------------------- tasks --------------------------------------
    def create_task(self, owner_id: str, task_data: Any) -> TaskOut:
        payload = coerce(TaskCreate, task_data)
        fields = payload.model_dump(mode="json", exclude={"subtasks"})
        children = [sub.model_dump(mode="json") for sub in payload.subtasks]
        created = self.repository.append_task(owner_id, subtasks=children, **fields)
        if created is None:
            raise NotFoundError("User not found")
        task, subtasks = created
        logger.info("task created owner=%s task=%s", owner_id, task.id)
        return _task_out(task, subtasks)

    def list_tasks(self, owner_id: str) -> list[TaskOut]:
        return [_task_out(task, subtasks) for task, subtasks in self.repository.list_live_tasks(owner_id)]

    def get_task(self, owner_id: str, task_id: str) -> TaskOut:
        found = self.repository.get_live_task(owner_id, task_id)
        if found is None:
            raise NotFoundError("Task not found")
        return _task_out(*found)

    def update_task(self, owner_id: str, task_id: str, partial_fields: Any) -> TaskOut:
        changes = coerce(TaskUpdate, partial_fields).changes()
        if not changes:
            raise ValidationError("Invalid Body: nothing to update")
        if not self.repository.update_task_fields(owner_id, task_id, changes):
            raise NotFoundError("Task not found")
        logger.info("task updated owner=%s task=%s fields=%s", owner_id, task_id, sorted(changes))
        return self.get_task(owner_id, task_id)

    def soft_delete_task(self, owner_id: str, task_id: str) -> None:
        if not self.repository.mark_task_deleted(owner_id, task_id):
            raise NotFoundError("Task not found")
        logger.info("task deleted owner=%s task=%s", owner_id, task_id)

    # -------------------------------------- subtasks --------------------------------------
    def list_subtasks(self, owner_id: str, task_id: str) -> list[SubtaskOut]:
        subtasks = self.repository.list_live_subtasks(owner_id, task_id)
        if subtasks is None:
            raise NotFoundError("Task not found")
        return [_subtask_out(sub) for sub in subtasks]

    def append_subtasks(self, owner_id: str, task_id: str, subtask_batch: Any) -> list[SubtaskOut]:
        batch = coerce_list(SubtaskCreate, subtask_batch)
        if not batch:
            raise ValidationError("Invalid Body: at least one subtask is required")
        items = [sub.model_dump(mode="json") for sub in batch]
        if not self.repository.append_subtasks(owner_id, task_id, items):
            raise NotFoundError("Task not found")
        logger.info("subtasks appended owner=%s task=%s count=%d", owner_id, task_id, len(items))
        return self.list_subtasks(owner_id, task_id)

    def update_subtask(self, owner_id: str, task_id: str, subtask_id: str, partial_fields: Any) -> SubtaskOut:
        changes = coerce(SubtaskUpdate, partial_fields).changes()
        if not changes:
            raise ValidationError("Invalid Body: nothing to update")
        if not self.repository.update_subtask_fields(owner_id, task_id, subtask_id, changes):
            raise NotFoundError("Subtask not found")
        entity = self.repository.get_live_subtask(owner_id, task_id, subtask_id)
        if entity is None:
            # deleted between the update and the read
            raise NotFoundError("Subtask not found")
        return _subtask_out(entity)

    def soft_delete_subtask(self, owner_id: str, task_id: str, subtask_id: str) -> None:
        if not self.repository.mark_subtask_deleted(owner_id, task_id, subtask_id):
            raise NotFoundError("Subtask not found")
        logger.info("subtask deleted owner=%s task=%s subtask=%s", owner_id, task_id, subtask_id)
