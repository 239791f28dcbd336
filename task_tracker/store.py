"""
SQLAlchemy-backed task store.

One TaskStore wraps one Session (one request). Every operation touches a
single row: a lookup, then at most one mutation and commit. Engine failures
are rolled back and re-raised as StorageError so the HTTP layer never sees
SQLAlchemy exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import NotFound, StorageError, ValidationError
from .models import DEFAULT_PRIORITY, PRIORITIES, Task

logger = logging.getLogger(__name__)

# SQLite INTEGER is a signed 64-bit value; no row can have an id outside it.
MAX_ROW_ID = 2**63 - 1


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class TaskPatch:
    """Partial update. A field left as UNSET is not touched; None is a value."""

    title: Any = UNSET
    description: Any = UNSET
    completed: Any = UNSET
    priority: Any = UNSET

    FIELDS = ("title", "description", "completed", "priority")

    def supplied(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("title required")
    return title.strip()


def _check_priority(priority: Any) -> str:
    if priority not in PRIORITIES:
        raise ValidationError("invalid priority")
    return priority


class TaskStore:
    def __init__(self, session: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._db = session
        self._clock = clock

    # ---- reads ----

    def list(self) -> List[Task]:
        stmt = select(Task).order_by(Task.created_at.desc(), Task.id.desc())
        try:
            tasks = list(self._db.scalars(stmt))
        except SQLAlchemyError as exc:
            raise self._fail("list tasks", exc) from exc
        logger.debug("Listed %d tasks", len(tasks))
        return tasks

    def get(self, task_id: int) -> Task:
        if not -MAX_ROW_ID - 1 <= task_id <= MAX_ROW_ID:
            logger.debug("Task %s out of id range", task_id)
            raise NotFound(task_id)
        try:
            task = self._db.get(Task, task_id)
        except SQLAlchemyError as exc:
            raise self._fail(f"get task {task_id}", exc) from exc
        if task is None:
            logger.debug("Task %s not found", task_id)
            raise NotFound(task_id)
        return task

    # ---- writes ----

    def create(self, title: Any, description: Optional[str] = None, priority: Optional[str] = None) -> Task:
        title = _clean_title(title)
        if priority is None:
            priority = DEFAULT_PRIORITY
        priority = _check_priority(priority)

        now = self._clock()
        task = Task(
            title=title,
            description=description or "",
            completed=False,
            priority=priority,
            created_at=now,
            updated_at=now,
        )
        try:
            self._db.add(task)
            self._db.commit()
            self._db.refresh(task)
        except SQLAlchemyError as exc:
            raise self._fail("create task", exc) from exc

        logger.info("Created task id=%s title=%r priority=%s", task.id, task.title, task.priority)
        return task

    def update(self, task_id: int, patch: TaskPatch) -> Task:
        task = self.get(task_id)

        changes = patch.supplied()
        if "title" in changes:
            changes["title"] = _clean_title(changes["title"])
        if "priority" in changes:
            changes["priority"] = _check_priority(changes["priority"])
        if not changes:
            raise ValidationError("no fields to update")

        if "description" in changes and changes["description"] is None:
            changes["description"] = ""
        if "completed" in changes:
            changes["completed"] = bool(changes["completed"])

        for name, value in changes.items():
            setattr(task, name, value)
        task.updated_at = max(self._clock(), task.created_at)

        try:
            self._db.commit()
            self._db.refresh(task)
        except SQLAlchemyError as exc:
            raise self._fail(f"update task {task_id}", exc) from exc

        logger.info("Updated task id=%s fields=%s", task_id, sorted(changes))
        return task

    def delete(self, task_id: int) -> Task:
        task = self.get(task_id)
        try:
            self._db.delete(task)
            self._db.commit()
        except SQLAlchemyError as exc:
            raise self._fail(f"delete task {task_id}", exc) from exc

        # Sessions do not expire on commit, so the detached row keeps its values.
        logger.info("Deleted task id=%s title=%r", task.id, task.title)
        return task

    def _fail(self, action: str, exc: SQLAlchemyError) -> StorageError:
        logger.exception("Failed to %s", action)
        self._db.rollback()
        return StorageError(f"failed to {action}")
