"""Key-value store interface."""

from typing import Protocol


class KeyValueStore(Protocol):
    """Interface for the host's persistent string store."""

    async def get(self, key: str) -> str | None:
        """Read the value at key. Returns None if nothing is stored."""
        ...

    async def set(self, key: str, value: str) -> None:
        """Write/overwrite the value at key."""
        ...
