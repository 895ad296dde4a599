"""Request/response contracts for tasks and subtasks.

Field names follow Python conventions; aliases keep the JSON shape used by
existing clients (``_id``, ``isDeleted``, ``subTask``).
"""
from __future__ import annotations

from enum import Enum
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field

SUBJECT_MIN = 3
SUBJECT_MAX = 255


class TaskStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


Subject = Annotated[str, Field(min_length=SUBJECT_MIN, max_length=SUBJECT_MAX)]
Deadline = Annotated[str, Field(max_length=255)]


class _Contract(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SubtaskCreate(_Contract):
    subject: Subject
    deadline: Deadline
    status: TaskStatus = TaskStatus.PENDING
    is_deleted: bool = Field(default=False, alias="isDeleted")


class TaskCreate(SubtaskCreate):
    subtasks: list[SubtaskCreate] = Field(default_factory=list, alias="subTask")


class SubtaskUpdate(_Contract):
    subject: Optional[Subject] = None
    deadline: Optional[Deadline] = None
    status: Optional[TaskStatus] = None

    def changes(self) -> dict:
        """Only the fields the caller actually supplied, as column values."""
        values = self.model_dump(exclude_unset=True, exclude_none=True)
        if "status" in values:
            values["status"] = TaskStatus(values["status"]).value
        return values


class TaskUpdate(SubtaskUpdate):
    pass


class SubtaskOut(_Contract):
    id: str = Field(alias="_id")
    subject: str
    deadline: str
    status: TaskStatus
    is_deleted: bool = Field(default=False, alias="isDeleted")


class TaskOut(SubtaskOut):
    subtasks: list[SubtaskOut] = Field(default_factory=list, alias="subTask")


class MessageOut(BaseModel):
    message: str
