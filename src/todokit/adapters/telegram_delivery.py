"""Telegram delivery adapter - sends reminders to chats via a bot."""

import logging

from telegram import Bot

from todokit.ports.notifier import Notification

logger = logging.getLogger(__name__)


def format_notification(notification: Notification) -> str:
    return f"{notification.title}\n\n{notification.body}"


class TelegramDelivery:
    """
    Sends each notification to every configured chat.

    Used as the `deliver` callable of APSchedulerNotifier. A failed send to
    one chat is logged and does not stop the others.
    """

    def __init__(self, bot: Bot, chat_ids: list[int]):
        self.bot = bot
        self.chat_ids = chat_ids

    @classmethod
    def from_token(cls, token: str, chat_ids: list[int]) -> "TelegramDelivery":
        return cls(Bot(token=token), chat_ids)

    async def __call__(self, notification: Notification) -> None:
        text = format_notification(notification)
        await self.bot.initialize()
        for chat_id in self.chat_ids:
            try:
                await self.bot.send_message(chat_id=chat_id, text=text)
            except Exception as e:
                logger.error(f"Failed to send reminder for task {notification.task_id} to chat {chat_id}: {e}")
