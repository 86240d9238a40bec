"""In-process key-value storage adapter."""


class MemoryKeyValueStore:
    """
    Dict-backed key-value store.

    Implements KeyValueStore protocol. Nothing survives the process; used by
    tests and by callers that embed the repository.
    """

    def __init__(self, initial: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(initial or {})
        self.writes = 0

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def set(self, key: str, value: str) -> None:
        self.values[key] = value
        self.writes += 1
