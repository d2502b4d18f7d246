"""
Event bridge: connects board UI actions to TaskStore operations.

The UI emits actions (form submitted, card dropped, delete clicked, clear
confirmed). This module applies them to the store and notifies subscribers
so views can refresh.

Drag-and-drop carries the task id in the drop payload itself, so nothing is
shared between the drag-start and drop handlers.
"""
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .schema import Task
from .store import TaskStore

logger = logging.getLogger(__name__)

EVENT_TYPES = ("task_created", "task_deleted", "task_moved", "board_cleared")


def drag_payload(task: Task) -> str:
    """Transfer data to attach to a drag gesture for ``task``."""
    return str(task.id)


def parse_payload(payload: Any) -> Optional[int]:
    """Task id carried by a drop payload, or None if it carries none."""
    if isinstance(payload, bool):
        return None
    if isinstance(payload, int):
        return payload
    try:
        return int(str(payload).strip())
    except ValueError:
        return None


class BoardEventBridge:
    """Routes UI actions to store mutations."""

    def __init__(self, store: TaskStore):
        self.store = store
        self.subscribers: Dict[str, List[Callable]] = {}  # event_type -> callbacks

    def subscribe(self, event_type: str, callback: Callable) -> None:
        """Register a callback for an event type."""
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unknown event type: {event_type}")
        self.subscribers.setdefault(event_type, []).append(callback)

    def _emit(self, event_type: str, **kwargs) -> None:
        for callback in self.subscribers.get(event_type, []):
            try:
                callback(**kwargs)
            except Exception as e:
                logger.error(f"Error in {event_type} callback: {e}")

    def on_submit(self, form: Mapping[str, Any], column: str = "todo") -> Task:
        """Task form submitted for ``column``. Raises ValidationError."""
        task = self.store.create(
            form.get("title", ""),
            form.get("description", ""),
            form.get("priority", "medium"),
            form.get("dueDate"),
            form.get("column", column),
        )
        self._emit("task_created", task=task)
        return task

    def on_delete(self, task_id: int) -> bool:
        removed = self.store.delete(task_id)
        if removed:
            self._emit("task_deleted", task_id=task_id)
        return removed

    def on_drop(self, payload: Any, column: str) -> Optional[Task]:
        """Card dropped on ``column``; ``payload`` is the drag transfer data."""
        task_id = parse_payload(payload)
        if task_id is None:
            logger.debug(f"Ignoring drop without a task id: {payload!r}")
            return None
        task = self.store.move_to_column(task_id, column)
        if task is not None:
            self._emit("task_moved", task=task, column=task.column.value)
        return task

    def on_clear(self, confirmed: bool) -> int:
        """Clear-all button; does nothing unless the user confirmed."""
        if not confirmed:
            return 0
        removed = self.store.clear_all()
        if removed:
            self._emit("board_cleared", removed=removed)
        return removed
