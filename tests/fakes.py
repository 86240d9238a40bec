"""Deterministic stand-ins for the ports, shared by the test modules."""

from datetime import datetime, timedelta

from todokit.errors import AddFailed, RemoteFetchFailed, StorageUnavailable


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeRemote:
    """In-memory RemoteTaskSource that records every call."""

    def __init__(
        self,
        tasks: list[dict] | None = None,
        add_response: dict | None = None,
        fetch_error: str | None = None,
        add_error: str | None = None,
    ):
        self.tasks = tasks or []
        self.add_response = add_response
        self.fetch_error = fetch_error
        self.add_error = add_error
        self.fetch_calls = 0
        self.added: list[dict] = []

    async def fetch_tasks(self) -> list[dict]:
        self.fetch_calls += 1
        if self.fetch_error:
            raise RemoteFetchFailed(self.fetch_error)
        return [dict(t) for t in self.tasks]

    async def add_task(self, payload: dict) -> dict:
        self.added.append(payload)
        if self.add_error:
            raise AddFailed(self.add_error)
        if self.add_response is not None:
            return dict(self.add_response)
        return {**payload, "id": 255}


class FakeNotifier:
    """Notifier that keeps scheduled notifications in a dict."""

    def __init__(self, permitted: bool = True, fail_schedule: bool = False):
        self.permitted = permitted
        self.fail_schedule = fail_schedule
        self.permission_requests = 0
        self.scheduled: dict[str, tuple] = {}
        self.cancelled: list[str] = []
        self._counter = 0

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.permitted

    def schedule(self, trigger_time, notification) -> str:
        if self.fail_schedule:
            raise RuntimeError("notification service unavailable")
        self._counter += 1
        handle = f"h{self._counter}"
        self.scheduled[handle] = (trigger_time, notification)
        return handle

    def cancel(self, handle: str) -> None:
        self.cancelled.append(handle)
        self.scheduled.pop(handle, None)

    def for_task(self, task_id: int) -> list[tuple]:
        return sorted(
            ((t, n) for t, n in self.scheduled.values() if n.task_id == task_id),
            key=lambda item: item[0],
        )


class BrokenStore:
    """KeyValueStore whose reads and/or writes fail."""

    def __init__(self, value: str | None = None, fail_get: bool = False, fail_set: bool = True):
        self.value = value
        self.fail_get = fail_get
        self.fail_set = fail_set

    async def get(self, key: str) -> str | None:
        if self.fail_get:
            raise StorageUnavailable("disk on fire")
        return self.value

    async def set(self, key: str, value: str) -> None:
        if self.fail_set:
            raise OSError("read-only file system")
        self.value = value
