"""Shared workflow layer used by the CLI.

Each mutation goes repository -> cache invalidation -> reminders, in that
order, and only after the repository call succeeded.
"""

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

from .adapters.apscheduler_notifier import APSchedulerNotifier, Deliver
from .adapters.dummyjson_api import DummyJsonTaskSource
from .adapters.file_store import FileKeyValueStore
from .adapters.telegram_delivery import TelegramDelivery
from .cache import TASKS_QUERY, QueryCache
from .config import Config
from .core.tasks import Task, TaskDraft
from .errors import NotFound
from .ports import KeyValueStore, Notification, RemoteTaskSource
from .reminders import ReminderScheduler
from .repository import RemoteAddPolicy, TaskRepository

logger = logging.getLogger(__name__)


async def log_delivery(notification: Notification) -> None:
    """Fallback delivery when no chat is configured."""
    logger.info(f"{notification.title}: {notification.body}")


class TodoWorkflows:
    """What the user can do, wired to a repository, a cache and reminders."""

    def __init__(
        self,
        repository: TaskRepository,
        cache: QueryCache,
        reminders: ReminderScheduler,
        list_stale_time: float = 0.0,
    ):
        self.repository = repository
        self.cache = cache
        self.reminders = reminders
        self.list_stale_time = list_stale_time

    async def tasks(self) -> list[Task]:
        """Visible tasks through the query cache."""
        return await self.cache.fetch(
            TASKS_QUERY,
            self.repository.list,
            stale_time=self.list_stale_time,
        )

    async def add_task(self, draft: TaskDraft) -> Task:
        """Create a task, refresh the list and set its reminders."""
        task = await self.repository.create(draft)
        self.cache.invalidate(TASKS_QUERY)
        if task.due_date is not None:
            await self.reminders.schedule(task.id, task.title, task.due_date)
        return task

    async def edit_task(
        self,
        task_id: int,
        title: str | None = None,
        due_date: datetime | None = None,
    ) -> Task:
        """Change a task's title and/or due date and re-arm its reminders."""
        current = await self.repository.get(task_id)
        if current is None:
            raise NotFound(f"Task {task_id} not found")

        changed = replace(
            current,
            title=current.title if title is None else title,
            due_date=current.due_date if due_date is None else due_date,
        )
        task = await self.repository.update(changed)
        self.cache.invalidate(TASKS_QUERY)
        if task.due_date is not None:
            await self.reminders.schedule(task.id, task.title, task.due_date)
        return task

    async def set_completed(self, task_id: int, completed: bool) -> None:
        """Flip the completed flag and patch the cached list in place."""
        await self.repository.toggle_complete(task_id, completed)
        cached = self.cache.get_query_data(TASKS_QUERY)
        if cached is not None:
            self.cache.set_query_data(
                TASKS_QUERY,
                [replace(t, completed=completed) if t.id == task_id else t for t in cached],
            )

    async def delete_tasks(self, task_ids: Iterable[int]) -> None:
        """Delete tasks in one batch and drop their reminders."""
        task_ids = list(task_ids)
        await self.repository.delete(task_ids)
        self.cache.invalidate(TASKS_QUERY)
        for task_id in task_ids:
            self.reminders.cancel(task_id)

    async def rearm_reminders(self) -> int:
        """Schedule reminders for every open task still due in the future.

        In-process triggers die with the process, so a long-running watcher
        calls this on startup and then periodically to pick up tasks changed
        by other commands. Reminders of tasks that were deleted, completed or
        moved into the past are cancelled. Returns how many tasks got reminders.
        """
        now = self.reminders.clock()
        armed: set[int] = set()
        for task in await self.repository.list():
            if task.completed or not task.is_due_after(now):
                continue
            if await self.reminders.schedule(task.id, task.title, task.due_date, cancel_all=False):
                armed.add(task.id)
        for task_id in self.reminders.tracked() - armed:
            self.reminders.cancel(task_id)
        logger.info(f"Re-armed reminders for {len(armed)} task(s)")
        return len(armed)


def schedule_rearm(scheduler: BaseScheduler, workflows: TodoWorkflows, interval_seconds: float) -> Job:
    """Re-arm reminders every interval_seconds while the scheduler runs."""
    return scheduler.add_job(
        workflows.rearm_reminders,
        IntervalTrigger(seconds=interval_seconds),
        name="rearm-reminders",
        max_instances=1,
        coalesce=True,
    )


def pick_delivery(config: Config) -> Deliver:
    """Telegram when a bot and chats are configured, else the log."""
    if config.telegram_bot_token and config.telegram_chat_ids:
        return TelegramDelivery.from_token(config.telegram_bot_token, config.telegram_chat_ids)
    return log_delivery


def build_workflows(
    config: Config,
    store: KeyValueStore | None = None,
    remote: RemoteTaskSource | None = None,
    scheduler: BaseScheduler | None = None,
    deliver: Deliver | None = None,
) -> TodoWorkflows:
    """Wire concrete adapters from config. Any collaborator can be overridden."""
    store = store or FileKeyValueStore(config.resolved_store_path)
    remote = remote or DummyJsonTaskSource(
        base_url=config.api_base_url,
        user_id=config.user_id,
        timeout=config.remote_timeout,
    )
    scheduler = scheduler or AsyncIOScheduler(timezone=config.timezone or "UTC")
    notifier = APSchedulerNotifier(
        scheduler,
        deliver or pick_delivery(config),
        enabled=config.notifications_enabled,
    )

    repository = TaskRepository(
        store,
        remote,
        remote_add_policy=RemoteAddPolicy(config.remote_add_policy),
    )
    reminders = ReminderScheduler(
        notifier,
        lead_minutes=config.reminder_lead_minutes,
        truncate_to_minute=config.truncate_reminders,
        cancel_all_on_reschedule=config.cancel_all_reminders,
    )
    cache = QueryCache(stale_time=config.cache_stale_seconds, retries=config.cache_retries)
    return TodoWorkflows(repository, cache, reminders, list_stale_time=config.list_stale_seconds)
