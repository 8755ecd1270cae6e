"""
Task Registry
-------------

Centralized tracking of the asyncio tasks the service starts: the HTTP
server, one keepalive registrar per catalog, background helpers.

Features:
- Register tasks with metadata (category, description, origin)
- Track creation time, completion state, cancellation, errors
- Introspection API for /system/tasks
- Lists the tasks still running when the shutdown grace period ends
"""

from __future__ import annotations

import asyncio
import traceback
from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional, List, Any
from datetime import datetime, timezone

from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TASK)


# ---------------------------------------------------------------------------
# TASK CATEGORY ENUM
# ---------------------------------------------------------------------------

class TaskCategory(Enum):
    """Logical grouping of asynchronous tasks."""
    API = auto()
    REGISTRATION = auto()
    DISCOVERY = auto()
    SYSTEM = auto()
    BACKGROUND = auto()
    GENERAL = auto()


# ---------------------------------------------------------------------------
# TASK METADATA
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TaskInfo:
    """Immutable metadata captured at task creation time."""
    id: int
    category: TaskCategory
    description: str
    created_at: str  # ISO UTC string
    created_timestamp: float
    origin_stack: str  # short stack trace where create_tracked_task was called
    created_by: Optional[str] = None


@dataclass
class TaskRecord:
    """Internal structure tracking task state."""
    task: asyncio.Task
    info: TaskInfo
    cancelled: bool = False
    finished_with_error: Optional[BaseException] = None
    finished_return: Optional[Any] = None
    finished_at: Optional[str] = None
    finished_timestamp: Optional[float] = None

    @property
    def status(self) -> str:
        if not self.task.done():
            return "running"
        if self.cancelled:
            return "cancelled"
        if self.finished_with_error:
            return "failed"
        return "completed"


# ---------------------------------------------------------------------------
# TASK REGISTRY SINGLETON
# ---------------------------------------------------------------------------

class TaskRegistry:
    """
    Global registry for the service's asyncio tasks.

    Responsibilities:
    - Track tasks and metadata
    - Detect and log task failures
    - Provide debugging API
    - Tell the shutdown path which tasks are still running
    """

    _instance: Optional["TaskRegistry"] = None

    def __init__(self) -> None:
        self._records: Dict[int, TaskRecord] = {}
        self._by_task: Dict[asyncio.Task, int] = {}
        self._next_id: int = 1

    @classmethod
    def instance(cls) -> "TaskRegistry":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (used between tests and event loops)."""
        cls._instance = None

    def register(
        self,
        task: asyncio.Task,
        category: TaskCategory,
        description: str,
        created_by: Optional[str] = None
    ) -> int:
        """Register a new task with metadata."""
        task_id = self._next_id
        self._next_id += 1

        # Drop the last frame which is inside this module
        stack_lines = traceback.format_stack(limit=8)
        origin_stack = "".join(stack_lines[:-1])

        now = datetime.now(timezone.utc)
        info = TaskInfo(
            id=task_id,
            category=category,
            description=description,
            created_at=now.isoformat(),
            created_timestamp=now.timestamp(),
            origin_stack=origin_stack,
            created_by=created_by,
        )

        self._records[task_id] = TaskRecord(task=task, info=info)
        self._by_task[task] = task_id

        log.debug(f"[Task {task_id}] Registered ({category.name}) - {description}")

        task.add_done_callback(self._on_task_done)
        return task_id

    def _on_task_done(self, task: asyncio.Task) -> None:
        """Internal callback whenever a task finishes."""
        record = self.get_record_by_task(task)
        if record is None:
            return

        now = datetime.now(timezone.utc)
        record.finished_at = now.isoformat()
        record.finished_timestamp = now.timestamp()

        if task.cancelled():
            record.cancelled = True
            log.debug(f"[Task {record.info.id}] Cancelled")
            return

        exc = task.exception()
        if exc:
            record.finished_with_error = exc
            log.error(
                f"[Task {record.info.id}] FAILED: {type(exc).__name__}: {exc}",
                description=record.info.description,
            )
        else:
            record.finished_return = task.result()
            log.debug(f"[Task {record.info.id}] Completed successfully")

    def get_record_by_task(self, task: asyncio.Task) -> Optional[TaskRecord]:
        task_id = self._by_task.get(task)
        return self._records.get(task_id) if task_id is not None else None

    # -----------------------------
    # Public API
    # -----------------------------

    def list_all(self) -> List[TaskRecord]:
        """Return a list of all tracked task records."""
        return list(self._records.values())

    def active(self) -> List[TaskRecord]:
        """Return only tasks that are still running."""
        return [r for r in self._records.values() if not r.task.done()]

    def failed(self) -> List[TaskRecord]:
        """Return tasks that ended with an exception."""
        return [r for r in self._records.values() if r.finished_with_error is not None]

    def cancelled(self) -> List[TaskRecord]:
        """Return cancelled tasks."""
        return [r for r in self._records.values() if r.cancelled]

    def summary(self) -> str:
        """Return human-readable summary for logs."""
        return (
            f"Tasks: total={len(self._records)}, running={len(self.active())}, "
            f"failed={len(self.failed())}, cancelled={len(self.cancelled())}"
        )

    def get_tasks_for_shutdown(
        self,
        exclude: Optional[List[asyncio.Task]] = None
    ) -> List[asyncio.Task]:
        """Return all still-running tasks that should be cancelled during shutdown."""
        exclude = exclude or []
        tasks = [
            r.task for r in self._records.values()
            if not r.task.done() and r.task not in exclude
        ]
        log.debug(f"Shutdown: {len(tasks)} tasks to cancel")
        return tasks


def create_tracked_task(
    coro,
    *,
    category: TaskCategory,
    description: str,
    loop: Optional[asyncio.AbstractEventLoop] = None
) -> asyncio.Task:
    """
    Create and register a task in a single call.
    """
    loop = loop or asyncio.get_running_loop()
    task = loop.create_task(coro, name=description)

    TaskRegistry.instance().register(
        task=task,
        category=category,
        description=description
    )

    return task
