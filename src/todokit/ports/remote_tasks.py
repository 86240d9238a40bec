"""Remote task source interface."""

from typing import Protocol


class RemoteTaskSource(Protocol):
    """Interface for the remote API the store is seeded from."""

    async def fetch_tasks(self) -> list[dict]:
        """Fetch the owner's task records (single page)."""
        ...

    async def add_task(self, payload: dict) -> dict:
        """Submit a new task. Returns the server's echo of it."""
        ...
