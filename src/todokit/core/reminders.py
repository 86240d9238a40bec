"""Reminder planning - which notifications a due date needs. No I/O."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class ReminderKind(Enum):
    """Which of the two per-task notifications this is."""

    EARLY = "early"  # lead time before the due moment
    DUE = "due"


@dataclass(frozen=True)
class Reminder:
    """A notification to fire at a point in time."""

    kind: ReminderKind
    at: datetime
    title: str
    body: str


def early_reminder(task_title: str, at: datetime, lead_minutes: int) -> Reminder:
    return Reminder(
        kind=ReminderKind.EARLY,
        at=at,
        title="⏰ To-Do Reminder",
        body=f'"{task_title}" is due in {lead_minutes} minutes',
    )


def due_reminder(task_title: str, at: datetime) -> Reminder:
    return Reminder(
        kind=ReminderKind.DUE,
        at=at,
        title="🔔 To-Do Due",
        body=f'"{task_title}" is now due',
    )


def truncate_minute(moment: datetime) -> datetime:
    return moment.replace(second=0, microsecond=0)


def plan_reminders(
    task_title: str,
    due_at: datetime,
    now: datetime,
    lead: timedelta = timedelta(minutes=5),
    truncate_to_minute: bool = False,
) -> list[Reminder]:
    """
    Plan zero, one or two reminders for a due date.

    EARLY fires `lead` before due_at, DUE fires at due_at. Each is only
    planned if its moment is strictly after now.

    Pure function - no I/O.
    """
    lead_minutes = int(lead.total_seconds() // 60)
    early_at = due_at - lead
    if truncate_to_minute:
        early_at = truncate_minute(early_at)

    reminders = []
    if early_at > now:
        reminders.append(early_reminder(task_title, early_at, lead_minutes))
    if due_at > now:
        reminders.append(due_reminder(task_title, due_at))
    return reminders
