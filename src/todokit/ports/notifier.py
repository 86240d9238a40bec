"""Notification facility interface."""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True)
class Notification:
    """Payload handed to the notification facility."""

    task_id: int
    kind: str
    title: str
    body: str


class Notifier(Protocol):
    """Interface for registering point-in-time notifications."""

    async def request_permission(self) -> bool:
        """Ask whether notifications may be registered."""
        ...

    def schedule(self, trigger_time: datetime, notification: Notification) -> str:
        """Register a trigger. Returns a handle for cancel()."""
        ...

    def cancel(self, handle: str) -> None:
        """Drop a registered trigger. Unknown handles are ignored."""
        ...
