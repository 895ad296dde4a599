from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from taskapi.domain.tasks import (
    MessageOut,
    SubtaskCreate,
    SubtaskOut,
    SubtaskUpdate,
    TaskCreate,
    TaskOut,
    TaskUpdate,
)
from taskapi.services.session_service import current_user_id
from taskapi.services.task_service import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def _get_task_service(request: Request) -> TaskService:
    svc = getattr(getattr(request.app, "state", None), "task_service", None)
    if not svc:
        raise RuntimeError("TaskService not configured")
    return svc


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    return svc.create_task(owner_id, body)


@router.get("", response_model=list[TaskOut])
def list_tasks(owner_id: str = Depends(current_user_id), svc: TaskService = Depends(_get_task_service)):
    return svc.list_tasks(owner_id)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: str,
    body: TaskUpdate,
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    return svc.update_task(owner_id, task_id, body)


@router.delete("/{task_id}", response_model=MessageOut)
def delete_task(
    task_id: str,
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    svc.soft_delete_task(owner_id, task_id)
    return {"message": "Task Deleted Successfully"}


@router.get("/{task_id}/subtasks", response_model=list[SubtaskOut])
def list_subtasks(
    task_id: str,
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    return svc.list_subtasks(owner_id, task_id)


@router.put("/{task_id}/subtasks", response_model=list[SubtaskOut])
@router.post("/{task_id}/subtasks", response_model=list[SubtaskOut])
def append_subtasks(
    task_id: str,
    body: list[SubtaskCreate],
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    return svc.append_subtasks(owner_id, task_id, body)


@router.put("/{task_id}/subtasks/{subtask_id}", response_model=SubtaskOut)
def update_subtask(
    task_id: str,
    subtask_id: str,
    body: SubtaskUpdate,
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    return svc.update_subtask(owner_id, task_id, subtask_id, body)


@router.delete("/{task_id}/subtasks/{subtask_id}", response_model=MessageOut)
def delete_subtask(
    task_id: str,
    subtask_id: str,
    owner_id: str = Depends(current_user_id),
    svc: TaskService = Depends(_get_task_service),
):
    svc.soft_delete_subtask(owner_id, task_id, subtask_id)
    return {"message": "Subtask Deleted Successfully"}
