# taskapi/routers/tasks.py
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from taskapi.db import get_session
from taskapi.deps import get_current_user
from taskapi.models import User
from taskapi.schemas import TaskCreate, TaskDeleted, TaskOut, TaskPage, TaskStats, TaskUpdate
from taskapi.services import tasks as task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return task_service.create_task(session, current_user.id, payload.model_dump())


@router.get("", response_model=TaskPage)
def list_tasks(
    status_: Optional[str] = Query(None, alias="status"),
    due_date: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(task_service.DEFAULT_PAGE),
    limit: int = Query(task_service.DEFAULT_LIMIT),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    # range checks live in the service so every caller gets the same 400
    return task_service.list_tasks(
        session,
        current_user.id,
        status=status_,
        due_date=due_date,
        search=search,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=TaskStats)
def task_stats(
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return task_service.get_stats(session, current_user.id)


@router.get("/{task_id}", response_model=TaskOut)
def get_task(
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return task_service.get_task(session, task_id, current_user.id)


@router.put("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: uuid.UUID,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return task_service.update_task(session, task_id, current_user.id, payload.model_dump(exclude_unset=True))


@router.patch("/{task_id}/complete", response_model=TaskOut)
def complete_task(
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return task_service.mark_complete(session, task_id, current_user.id)


@router.delete("/{task_id}", response_model=TaskDeleted)
def delete_task(
    task_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return task_service.delete_task(session, task_id, current_user.id)
