"""
Task record schema.

Board layout:
  todo → in-progress → done

Tasks move freely between the three columns (no transition rules), and the
column is the only field that changes after creation.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Dict, Any

KNOWN_FIELDS = ("id", "title", "description", "priority", "dueDate", "column")

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
          "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class ValidationError(ValueError):
    """Raised when task fields fail validation."""
    pass


class Column(Enum):
    """The three fixed board columns."""
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    DONE = "done"

    @classmethod
    def parse(cls, value) -> "Column":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key == "inprogress":  # legacy spelling used by older boards
            key = cls.IN_PROGRESS.value
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(f"Invalid column: {value!r}") from None


class Priority(Enum):
    """Task priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, value) -> "Priority":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid priority: {value!r}") from None


def parse_due_date(value) -> date:
    """Coerce a date, datetime or ISO ``YYYY-MM-DD`` string to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise ValidationError(f"Invalid due date: {value!r}")


def format_due_date(value: date) -> str:
    """Short display form, e.g. ``1 Jan 2024``."""
    return f"{value.day} {MONTHS[value.month - 1]} {value.year}"


@dataclass
class Task:
    """A single card on the board."""

    id: int
    title: str
    description: str = ""
    priority: Priority = Priority.MEDIUM
    due_date: date = field(default_factory=date.today)
    column: Column = Column.TODO

    # Fields found in storage that this version does not know about.
    # Written back unchanged on save.
    extra: Dict[str, Any] = field(default_factory=dict, repr=False)

    def is_overdue(self, today: Optional[date] = None) -> bool:
        """Due strictly before today and not yet done (date-only comparison)."""
        today = today or date.today()
        return self.due_date < today and self.column != Column.DONE

    def matches(self, query: str = "", priority_filter: str = "all") -> bool:
        """Case-insensitive title/description search plus priority filter."""
        needle = (query or "").lower()
        if needle and needle not in self.title.lower() and needle not in self.description.lower():
            return False
        wanted = str(priority_filter or "all").strip().lower()
        if wanted != "all":
            return self.priority.value == wanted
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the stable persisted field names."""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "dueDate": self.due_date.isoformat(),
            "column": self.column.value,
        }
        for key, value in self.extra.items():
            data.setdefault(key, value)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Deserialize one stored record. Raises ValidationError if unusable."""
        if not isinstance(data, dict):
            raise ValidationError(f"Task record must be an object, got {type(data).__name__}")

        raw_id = data.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, int):
            raise ValidationError(f"Invalid task id: {raw_id!r}")

        title = data.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError(f"Task {raw_id} has no title")

        return cls(
            id=raw_id,
            title=title,
            description=str(data.get("description") or ""),
            priority=Priority.parse(data.get("priority", "")),
            due_date=parse_due_date(data.get("dueDate")),
            column=Column.parse(data.get("column", "")),
            extra={k: v for k, v in data.items() if k not in KNOWN_FIELDS},
        )
