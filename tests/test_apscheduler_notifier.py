"""Tests for the APScheduler notifier and Telegram delivery."""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from todokit.adapters.apscheduler_notifier import APSchedulerNotifier
from todokit.adapters.telegram_delivery import TelegramDelivery, format_notification
from todokit.ports import Notification


@pytest.fixture
def notification():
    return Notification(
        task_id=42,
        kind="due",
        title="🔔 To-Do Due",
        body='"Pay rent" is now due',
    )


@pytest.fixture
def scheduler():
    return AsyncIOScheduler(timezone="UTC")


class TestAPSchedulerNotifier:
    @pytest.mark.asyncio
    async def test_permission_follows_enabled_flag(self, scheduler):
        deliver = AsyncMock()
        assert await APSchedulerNotifier(scheduler, deliver).request_permission() is True
        assert await APSchedulerNotifier(scheduler, deliver, enabled=False).request_permission() is False

    def test_schedule_adds_named_date_job(self, scheduler, notification):
        deliver = AsyncMock()
        notifier = APSchedulerNotifier(scheduler, deliver)
        when = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)

        handle = notifier.schedule(when, notification)

        jobs = scheduler.get_jobs()
        assert [j.id for j in jobs] == [handle]
        assert jobs[0].name == "reminder:42:due"
        assert jobs[0].args == (deliver, notification)

    def test_cancel_removes_job(self, scheduler, notification):
        notifier = APSchedulerNotifier(scheduler, AsyncMock())
        handle = notifier.schedule(datetime(2030, 1, 1, tzinfo=timezone.utc), notification)

        notifier.cancel(handle)

        assert scheduler.get_jobs() == []

    def test_cancel_unknown_handle_is_noop(self, scheduler):
        APSchedulerNotifier(scheduler, AsyncMock()).cancel("does-not-exist")

    @pytest.mark.asyncio
    async def test_job_delivers_when_due(self, notification):
        scheduler = AsyncIOScheduler(timezone="UTC")
        delivered = asyncio.Event()
        received = []

        async def deliver(n):
            received.append(n)
            delivered.set()

        notifier = APSchedulerNotifier(scheduler, deliver)
        scheduler.start()
        try:
            notifier.schedule(datetime.now(timezone.utc) + timedelta(milliseconds=50), notification)
            await asyncio.wait_for(delivered.wait(), timeout=5)
        finally:
            scheduler.shutdown(wait=False)

        assert received == [notification]


class TestTelegramDelivery:
    def test_format(self, notification):
        assert format_notification(notification) == '🔔 To-Do Due\n\n"Pay rent" is now due'

    @pytest.mark.asyncio
    async def test_sends_to_every_chat(self, notification):
        bot = MagicMock()
        bot.initialize = AsyncMock()
        bot.send_message = AsyncMock()

        await TelegramDelivery(bot, [1, 2])(notification)

        bot.initialize.assert_awaited_once()
        assert [c.kwargs["chat_id"] for c in bot.send_message.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_one_failed_chat_does_not_stop_others(self, notification):
        bot = MagicMock()
        bot.initialize = AsyncMock()
        bot.send_message = AsyncMock(side_effect=[RuntimeError("chat not found"), None])

        await TelegramDelivery(bot, [1, 2])(notification)

        assert bot.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_delivered_through_running_scheduler(self, notification):
        sent = asyncio.Event()
        bot = MagicMock()
        bot.initialize = AsyncMock()
        bot.send_message = AsyncMock(side_effect=lambda **kwargs: sent.set())
        scheduler = AsyncIOScheduler(timezone="UTC")
        notifier = APSchedulerNotifier(scheduler, TelegramDelivery(bot, [1]))

        scheduler.start()
        try:
            notifier.schedule(datetime.now(timezone.utc) + timedelta(milliseconds=50), notification)
            await asyncio.wait_for(sent.wait(), timeout=5)
        finally:
            scheduler.shutdown(wait=False)

        bot.send_message.assert_awaited_once_with(chat_id=1, text=format_notification(notification))
