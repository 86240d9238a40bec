"""Pure task domain logic - no I/O dependencies."""

import random
from dataclasses import dataclass
from datetime import datetime, timezone


def parse_due_date(value) -> datetime | None:
    """Parse a stored ISO-8601 due date. Empty or unparseable values mean no due date."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_due_date(value: datetime) -> str:
    """Format a due date the way the store keeps it: UTC, milliseconds, Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")


def parse_user_id(value, default: int = 1) -> int:
    """Owner id from a stored or remote record. Unparseable values fall back to default."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def placeholder_title(task_id: int) -> str:
    return f"Task {task_id}"


@dataclass
class Task:
    """A to-do item as kept in the store."""

    id: int
    title: str
    completed: bool = False
    user_id: int = 1
    due_date: datetime | None = None

    @property
    def is_visible(self) -> bool:
        """Hidden tasks stay in storage but are never listed."""
        return isinstance(self.title, str) and self.title.strip() != ""

    def is_due_after(self, moment: datetime) -> bool:
        return self.due_date is not None and self.due_date > moment

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "userId": self.user_id,
        }
        if self.due_date is not None:
            data["dueDate"] = format_due_date(self.due_date)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Build a Task from a stored or remote record.

        A missing or null title is replaced with a placeholder; any other
        value is kept as-is so that hidden tasks round-trip untouched.
        """
        task_id = int(data["id"])
        title = data.get("title")
        if title is None:
            title = placeholder_title(task_id)
        return cls(
            id=task_id,
            title=title,
            completed=bool(data.get("completed", False)),
            user_id=parse_user_id(data.get("userId")),
            due_date=parse_due_date(data.get("dueDate")),
        )


@dataclass
class TaskDraft:
    """Input for creating a task. Unset fields fall back to defaults."""

    title: str
    completed: bool | None = None
    user_id: int | None = None
    due_date: datetime | None = None

    def clean_title(self) -> str | None:
        """Trimmed title, or None when it is unusable."""
        if not isinstance(self.title, str):
            return None
        return self.title.strip() or None


def has_usable_id(record) -> bool:
    """Records without an integer id cannot take part in de-duplication."""
    if not isinstance(record, dict) or "id" not in record:
        return False
    try:
        int(record["id"])
    except (TypeError, ValueError):
        return False
    return True


def dedupe_by_id(records: list[dict]) -> list[dict]:
    """
    Keep only the last occurrence of each id.

    Survivors keep the position of that last occurrence.
    Pure function - no I/O.
    """
    last_index = {}
    for index, record in enumerate(records):
        last_index[int(record["id"])] = index
    return [r for i, r in enumerate(records) if last_index[int(r["id"])] == i]


def normalize_records(records: list[dict]) -> list[Task]:
    """Dedup by id and fill placeholder titles."""
    return [Task.from_dict(r) for r in dedupe_by_id(records)]


def filter_visible(tasks: list[Task]) -> list[Task]:
    """Drop tasks whose title is not a non-blank string."""
    return [t for t in tasks if t.is_visible]


def generate_id(
    existing_ids: set[int],
    now_ms,
    rng: random.Random | None = None,
) -> int:
    """
    Draw `now_ms() + randint(0, 999)` until it is not among existing_ids.

    now_ms is re-read on every draw so a busy millisecond cannot pin the
    candidate range.
    """
    rng = rng or random.Random()
    candidate = now_ms() + rng.randint(0, 999)
    while candidate in existing_ids:
        candidate = now_ms() + rng.randint(0, 999)
    return candidate


def replace_record(records: list, updated: Task) -> tuple[list, bool]:
    """
    Swap in `updated` for every raw record with the same id.

    Every other record, including ones without a usable id, is passed
    through untouched. Returns (records, found).
    """
    found = False
    result = []
    for record in records:
        if has_usable_id(record) and int(record["id"]) == updated.id:
            result.append(updated.to_dict())
            found = True
        else:
            result.append(record)
    return result, found


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
