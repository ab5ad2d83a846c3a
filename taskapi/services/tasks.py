# taskapi/services/tasks.py
"""
Task query & stats engine.

Every lookup filters on (id, user_id) in a single predicate; a task owned by
someone else is indistinguishable from one that does not exist.
"""
import logging
import math
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from dateutil import parser as dtparse
from sqlalchemy import func, or_
from sqlmodel import Session, col, select

from taskapi.errors import BadRequestError, NotFoundError, store_errors
from taskapi.models import Task, TaskPriority, TaskStatus, utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# largest OFFSET a signed 64-bit integer column bind can carry
MAX_OFFSET = 2 ** 63 - 1


# ----------------- parsing -----------------


def parse_due_date(raw: Any) -> Optional[datetime]:
    """
    ISO-8601 date or datetime -> naive UTC datetime.
    Values without an offset are taken as UTC.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        dt = raw
    else:
        text = str(raw).strip()
        if not text:
            raise BadRequestError("Invalid due date format")
        try:
            dt = dtparse.isoparse(text)
        except (ValueError, OverflowError):
            raise BadRequestError("Invalid due date format")
    if dt.tzinfo is not None:
        try:
            dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            raise BadRequestError("Invalid due date format")
    return dt


def parse_status(raw: Any) -> TaskStatus:
    try:
        return TaskStatus(raw)
    except ValueError:
        raise BadRequestError("Invalid task status")


def parse_priority(raw: Any) -> TaskPriority:
    try:
        return TaskPriority(raw)
    except ValueError:
        raise BadRequestError("Invalid task priority")


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _owned(task_id: uuid.UUID, user_id: uuid.UUID):
    return select(Task).where(Task.id == task_id, Task.user_id == user_id)


# ----------------- CRUD -----------------


def create_task(session: Session, user_id: uuid.UUID, data: Dict[str, Any]) -> Task:
    title = (data.get("title") or "").strip()
    if not title:
        raise BadRequestError("Title is required")

    task = Task(
        title=title,
        description=data.get("description"),
        status=parse_status(data["status"]) if data.get("status") is not None else TaskStatus.PENDING,
        priority=parse_priority(data["priority"]) if data.get("priority") is not None else TaskPriority.MEDIUM,
        due_date=parse_due_date(data.get("due_date")),
        user_id=user_id,
    )
    if task.status == TaskStatus.COMPLETED:
        task.completed_at = task.created_at

    session.add(task)
    with store_errors("Failed to create task", session):
        session.commit()
        session.refresh(task)

    logger.info("created task %s for user %s", task.id, user_id)
    return task


def get_task(session: Session, task_id: uuid.UUID, user_id: uuid.UUID) -> Task:
    with store_errors("Failed to retrieve task"):
        task = session.exec(_owned(task_id, user_id)).first()
    if not task:
        raise NotFoundError("Task not found")
    return task


def list_tasks(
    session: Session,
    user_id: uuid.UUID,
    status: Optional[str] = None,
    due_date: Optional[str] = None,
    search: Optional[str] = None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
) -> Dict[str, Any]:
    """
    Filtered, paginated listing of the caller's tasks, newest first.

    Filters are ANDed:
      - status: exact match (must be a TaskStatus value)
      - due_date: due_date in [due_date, due_date + 1 day)
      - search: case-insensitive substring of title OR description;
        blank after trimming means no filter
    """
    if page is None:
        page = DEFAULT_PAGE
    if limit is None:
        limit = DEFAULT_LIMIT
    if page < 1 or limit < 1 or limit > MAX_LIMIT:
        raise BadRequestError("Invalid pagination parameters")
    if (page - 1) * limit > MAX_OFFSET:
        raise BadRequestError("Invalid pagination parameters")

    conditions = [Task.user_id == user_id]

    if status:
        conditions.append(Task.status == parse_status(status))

    if due_date:
        start = parse_due_date(due_date)
        try:
            end = start + timedelta(days=1)
        except OverflowError:
            raise BadRequestError("Invalid due date format")
        conditions.append(col(Task.due_date) >= start)
        conditions.append(col(Task.due_date) < end)

    term = (search or "").strip()
    if term:
        pattern = _like_pattern(term)
        conditions.append(
            or_(
                col(Task.title).ilike(pattern, escape="\\"),
                col(Task.description).ilike(pattern, escape="\\"),
            )
        )

    with store_errors("Failed to retrieve tasks"):
        total = session.exec(select(func.count()).select_from(Task).where(*conditions)).one()
        items = session.exec(
            select(Task)
            .where(*conditions)
            .order_by(col(Task.created_at).desc(), col(Task.id).desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

    return {
        "items": list(items),
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit),
    }


def update_task(session: Session, task_id: uuid.UUID, user_id: uuid.UUID, patch: Dict[str, Any]) -> Task:
    """
    Partial update: only keys present in `patch` are touched.
    title/status/priority ignore an explicit None; description and due_date
    are cleared by one.
    """
    task = get_task(session, task_id, user_id)

    # validate everything before mutating the row
    changes: Dict[str, Any] = {}
    if "due_date" in patch:
        changes["due_date"] = parse_due_date(patch["due_date"])
    if patch.get("status") is not None:
        changes["status"] = parse_status(patch["status"])
    if patch.get("priority") is not None:
        changes["priority"] = parse_priority(patch["priority"])
    if patch.get("title") is not None:
        title = str(patch["title"]).strip()
        if not title:
            raise BadRequestError("Title must not be empty")
        changes["title"] = title
    if "description" in patch:
        changes["description"] = patch["description"]

    was_completed = task.status == TaskStatus.COMPLETED
    for key, value in changes.items():
        setattr(task, key, value)

    now = utcnow()
    if task.status == TaskStatus.COMPLETED and not was_completed and task.completed_at is None:
        task.completed_at = now
    task.updated_at = now

    session.add(task)
    with store_errors("Failed to update task", session):
        session.commit()
        session.refresh(task)
    return task


def mark_complete(session: Session, task_id: uuid.UUID, user_id: uuid.UUID) -> Task:
    task = get_task(session, task_id, user_id)
    if task.status == TaskStatus.COMPLETED:
        raise BadRequestError("Task is already completed")

    now = utcnow()
    task.status = TaskStatus.COMPLETED
    task.completed_at = now
    task.updated_at = now

    session.add(task)
    with store_errors("Failed to mark task as complete", session):
        session.commit()
        session.refresh(task)

    logger.info("task %s completed by user %s", task_id, user_id)
    return task


def delete_task(session: Session, task_id: uuid.UUID, user_id: uuid.UUID) -> Dict[str, Any]:
    task = get_task(session, task_id, user_id)
    session.delete(task)
    with store_errors("Failed to delete task", session):
        session.commit()

    logger.info("deleted task %s for user %s", task_id, user_id)
    return {"message": "Task deleted successfully", "id": task_id}


# ----------------- stats -----------------


def get_stats(session: Session, user_id: uuid.UUID) -> Dict[str, int]:
    # five count sub-queries in one SELECT, so they read the same snapshot
    now = utcnow()

    def _count(*conditions):
        return (
            select(func.count())
            .select_from(Task)
            .where(Task.user_id == user_id, *conditions)
            .scalar_subquery()
        )

    stmt = select(
        _count().label("total"),
        _count(Task.status == TaskStatus.PENDING).label("pending"),
        _count(Task.status == TaskStatus.IN_PROGRESS).label("in_progress"),
        _count(Task.status == TaskStatus.COMPLETED).label("completed"),
        _count(Task.status != TaskStatus.COMPLETED, col(Task.due_date) < now).label("overdue"),
    )
    with store_errors("Failed to retrieve task statistics"):
        row = session.exec(stmt).one()

    return {
        "total": row.total,
        "pending": row.pending,
        "in_progress": row.in_progress,
        "completed": row.completed,
        "overdue": row.overdue,
    }
