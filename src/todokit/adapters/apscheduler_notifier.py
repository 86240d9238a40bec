"""APScheduler notifier adapter - one date-triggered job per notification."""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

from todokit.ports.notifier import Notification

logger = logging.getLogger(__name__)

Deliver = Callable[[Notification], Awaitable[None]]


async def deliver_notification(deliver: Deliver, notification: Notification) -> None:
    """Job entry point. APScheduler only awaits plain coroutine functions."""
    await deliver(notification)


class APSchedulerNotifier:
    """
    Notifier backed by an APScheduler scheduler.

    Implements Notifier protocol. Each notification becomes a DateTrigger job
    that awaits deliver(notification); the job id is the handle. deliver may
    be any awaitable callable, including an object with an async __call__.
    """

    def __init__(self, scheduler: BaseScheduler, deliver: Deliver, enabled: bool = True):
        self.scheduler = scheduler
        self.deliver = deliver
        self.enabled = enabled

    async def request_permission(self) -> bool:
        """Notifications are permitted unless disabled in config."""
        return self.enabled

    def schedule(self, trigger_time: datetime, notification: Notification) -> str:
        """Register a job at trigger_time. Returns its id."""
        job = self.scheduler.add_job(
            deliver_notification,
            DateTrigger(run_date=trigger_time),
            args=[self.deliver, notification],
            name=f"reminder:{notification.task_id}:{notification.kind}",
            misfire_grace_time=60,
        )
        logger.debug(f"Scheduled {job.name} at {trigger_time.isoformat()} (job {job.id})")
        return job.id

    def cancel(self, handle: str) -> None:
        """Remove a job. Jobs that already fired are gone, which is fine."""
        try:
            self.scheduler.remove_job(handle)
        except JobLookupError:
            logger.debug(f"Job {handle} already fired or was never scheduled")
