"""Functional core - pure business logic with no I/O."""

from .tasks import (
    Task,
    TaskDraft,
    dedupe_by_id,
    filter_visible,
    generate_id,
    normalize_records,
)
from .reminders import Reminder, ReminderKind, plan_reminders

__all__ = [
    # Tasks
    "Task",
    "TaskDraft",
    "dedupe_by_id",
    "filter_visible",
    "generate_id",
    "normalize_records",
    # Reminders
    "Reminder",
    "ReminderKind",
    "plan_reminders",
]
