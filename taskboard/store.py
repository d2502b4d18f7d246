"""
Task store: owns the board's task list.

Every mutation rewrites the whole list, as one JSON blob, under a single key
of a blob store. Loading never fails: a missing or corrupt blob gives an
empty board, and a failed write leaves the in-memory list authoritative.
"""
import json
import logging
import time
from datetime import date
from typing import Callable, Dict, List, Optional

from .blobstore import PersistenceError
from .schema import Task, Column, Priority, ValidationError, parse_due_date

logger = logging.getLogger(__name__)

DEFAULT_KEY = "kanbanTasks"


class TaskStore:
    """In-memory task list persisted to a key-value blob store."""

    def __init__(self, blobs, key: str = DEFAULT_KEY,
                 today: Optional[Callable[[], date]] = None):
        """Load the board stored under ``key`` in ``blobs``."""
        self.blobs = blobs
        self.key = key
        self.last_error: Optional[str] = None  # set while the last write failed
        self._today = today or date.today
        self._tasks: List[Task] = self._load()
        self._last_id = max((t.id for t in self._tasks), default=0)

    # ──────────────────────────────────────────
    # Persistence
    # ──────────────────────────────────────────

    def _load(self) -> List[Task]:
        try:
            blob = self.blobs.get(self.key)
        except PersistenceError as e:
            logger.warning(f"Could not read board from {self.blobs!r}, starting empty: {e}")
            return []
        if blob is None:
            return []

        try:
            records = json.loads(blob)
        except (TypeError, ValueError) as e:
            logger.warning(f"Stored board under {self.key!r} is not valid JSON, starting empty: {e}")
            return []
        if not isinstance(records, list):
            logger.warning(f"Stored board under {self.key!r} is not a list, starting empty")
            return []

        tasks: List[Task] = []
        seen = set()
        for raw in records:
            try:
                task = Task.from_dict(raw)
            except ValidationError as e:
                logger.warning(f"Skipping stored task: {e}")
                continue
            if task.id in seen:
                logger.warning(f"Skipping stored task with duplicate id {task.id}")
                continue
            seen.add(task.id)
            tasks.append(task)
        return tasks

    def dumps(self) -> str:
        """Serialize the board to its stored blob form."""
        return json.dumps([t.to_dict() for t in self._tasks])

    def _persist(self) -> bool:
        """Write the full list. Returns False (and keeps memory) on failure."""
        try:
            self.blobs.set(self.key, self.dumps())
        except PersistenceError as e:
            self.last_error = str(e)
            logger.warning(f"Board not saved, keeping in-memory state: {e}")
            return False
        self.last_error = None
        logger.debug(f"Saved {len(self._tasks)} tasks under {self.key!r}")
        return True

    def _allocate_id(self) -> int:
        """Millisecond timestamp, bumped past the largest id already held."""
        nid = max(int(time.time() * 1000), self._last_id + 1)
        self._last_id = nid
        return nid

    # ──────────────────────────────────────────
    # Mutations
    # ──────────────────────────────────────────

    def create(self, title: str, description: str = "", priority="medium",
               due_date=None, column="todo") -> Task:
        """Validate, append and persist a new task."""
        if title is not None and not isinstance(title, str):
            raise ValidationError(f"Title must be text, got {type(title).__name__}")
        if description is not None and not isinstance(description, str):
            raise ValidationError(f"Description must be text, got {type(description).__name__}")
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required")

        task = Task(
            id=0,
            title=title,
            description=(description or "").strip(),
            priority=Priority.parse(priority),
            due_date=parse_due_date(due_date) if due_date else self._today(),
            column=Column.parse(column),
        )
        task.id = self._allocate_id()
        self._tasks.append(task)
        self._persist()
        return task

    def delete(self, task_id: int) -> bool:
        """Remove a task. Unknown ids are ignored."""
        before = len(self._tasks)
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._persist()
        return len(self._tasks) < before

    def clear_all(self) -> int:
        """Remove every task. Callers confirm with the user first."""
        removed = len(self._tasks)
        if not removed:
            return 0
        self._tasks = []
        self._persist()
        return removed

    def move_to_column(self, task_id: int, column) -> Optional[Task]:
        """Reassign a task's column. Unknown ids are ignored."""
        target = Column.parse(column)
        task = self.get(task_id)
        if task is None:
            return None
        task.column = target
        self._persist()
        return task

    # ──────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────

    def get(self, task_id: int) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def all(self) -> List[Task]:
        return list(self._tasks)

    def list_by_column(self, column) -> List[Task]:
        """Tasks in one column, in insertion order."""
        target = Column.parse(column)
        return [t for t in self._tasks if t.column == target]

    def counts(self) -> Dict[str, int]:
        """Number of tasks per column, keyed by column value."""
        counts = {c.value: 0 for c in Column}
        for task in self._tasks:
            counts[task.column.value] += 1
        return counts

    def search(self, query: str = "", priority_filter: str = "all") -> Callable[[Task], bool]:
        """Build a visibility predicate; the store itself is not filtered."""
        def predicate(task: Task) -> bool:
            return task.matches(query, priority_filter)
        return predicate

    def filter(self, query: str = "", priority_filter: str = "all") -> List[Task]:
        predicate = self.search(query, priority_filter)
        return [t for t in self._tasks if predicate(t)]

    def is_overdue(self, task: Task) -> bool:
        return task.is_overdue(self._today())

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return f"TaskStore({self.blobs!r}, key={self.key!r}, tasks={len(self._tasks)})"
