"""Ports - interfaces/protocols for external dependencies."""

from .kv_store import KeyValueStore
from .remote_tasks import RemoteTaskSource
from .notifier import Notification, Notifier

__all__ = [
    "KeyValueStore",
    "RemoteTaskSource",
    "Notification",
    "Notifier",
]
