"""Reminder scheduling on top of an injected Notifier.

Registering reminders is a side effect of saving a task, never a condition
for it: every notifier failure is logged here and swallowed.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from .core.reminders import plan_reminders
from .core.tasks import utcnow
from .ports import Notification, Notifier

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """
    Registers the early/due reminder pair for a task.

    Handles are tracked per task so rescheduling one task only cancels that
    task's pending reminders. cancel_all_on_reschedule=True cancels every
    pending reminder instead.
    """

    def __init__(
        self,
        notifier: Notifier,
        lead_minutes: int = 5,
        truncate_to_minute: bool = False,
        cancel_all_on_reschedule: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.notifier = notifier
        self.lead = timedelta(minutes=lead_minutes)
        self.truncate_to_minute = truncate_to_minute
        self.cancel_all_on_reschedule = cancel_all_on_reschedule
        self.clock = clock
        self._permission: bool | None = None
        self._handles: dict[int, list[tuple[str, datetime]]] = {}

    async def ensure_permission(self) -> bool:
        """Ask the notifier once and remember the answer."""
        if self._permission is None:
            try:
                self._permission = bool(await self.notifier.request_permission())
            except Exception as e:
                logger.error(f"Notification permission request failed: {e}")
                return False
            if not self._permission:
                logger.warning("Notification permission denied, reminders are disabled")
        return self._permission

    def _prune(self) -> None:
        """Forget handles whose trigger time has passed; those jobs are gone."""
        now = self.clock()
        for task_id, entries in list(self._handles.items()):
            live = [(handle, at) for handle, at in entries if at > now]
            if live:
                self._handles[task_id] = live
            else:
                del self._handles[task_id]

    def pending(self, task_id: int) -> list[str]:
        self._prune()
        return [handle for handle, _ in self._handles.get(task_id, [])]

    def tracked(self) -> set[int]:
        """Ids of tasks with reminders still to fire."""
        self._prune()
        return set(self._handles)

    def _cancel_handles(self, handles: list[str]) -> None:
        for handle in handles:
            try:
                self.notifier.cancel(handle)
            except Exception as e:
                logger.error(f"Failed to cancel reminder {handle}: {e}")

    def cancel(self, task_id: int) -> None:
        """Drop a task's pending reminders."""
        self._prune()
        self._cancel_handles([handle for handle, _ in self._handles.pop(task_id, [])])

    def cancel_all(self) -> None:
        for task_id in list(self._handles):
            self.cancel(task_id)

    async def schedule(
        self,
        task_id: int,
        title: str,
        due_at: datetime,
        cancel_all: bool | None = None,
    ) -> list[str]:
        """
        Replace a task's reminders with a fresh early/due pair.

        cancel_all overrides cancel_all_on_reschedule for this call. Returns the
        handles that were registered; empty when permission is missing, the
        due date has passed, or the notifier failed.
        """
        if not await self.ensure_permission():
            logger.info(f"No notification permission, skipping reminders for task {task_id}")
            return []

        if cancel_all is None:
            cancel_all = self.cancel_all_on_reschedule
        if cancel_all:
            self.cancel_all()
        else:
            self.cancel(task_id)

        reminders = plan_reminders(
            title,
            due_at,
            self.clock(),
            lead=self.lead,
            truncate_to_minute=self.truncate_to_minute,
        )

        entries = []
        for reminder in reminders:
            notification = Notification(
                task_id=task_id,
                kind=reminder.kind.value,
                title=reminder.title,
                body=reminder.body,
            )
            try:
                entries.append((self.notifier.schedule(reminder.at, notification), reminder.at))
            except Exception as e:
                logger.error(f"Failed to schedule {reminder.kind.value} reminder for task {task_id}: {e}")
                continue
            logger.info(f"Set {reminder.kind.value} reminder for task {task_id} at {reminder.at.isoformat()}")

        if entries:
            self._handles[task_id] = entries
        return [handle for handle, _ in entries]
