"""Adapters - I/O implementations of ports."""

from .file_store import FileKeyValueStore
from .memory_store import MemoryKeyValueStore
from .dummyjson_api import DummyJsonTaskSource
from .apscheduler_notifier import APSchedulerNotifier
from .telegram_delivery import TelegramDelivery

__all__ = [
    "FileKeyValueStore",
    "MemoryKeyValueStore",
    "DummyJsonTaskSource",
    "APSchedulerNotifier",
    "TelegramDelivery",
]
