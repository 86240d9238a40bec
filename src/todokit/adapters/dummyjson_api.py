"""DummyJSON API adapter - HTTP client for seeding and remote creates."""

import asyncio
import logging

import requests

from todokit.errors import AddFailed, RemoteFetchFailed

logger = logging.getLogger(__name__)

API_BASE = "https://dummyjson.com"


def _error_message(resp: requests.Response, fallback: str) -> str:
    """Pull the server's `message` out of an error body, if there is one."""
    try:
        data = resp.json()
    except ValueError:
        return fallback
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return fallback


def _to_task_record(item: dict) -> dict:
    """DummyJSON keeps the task text under `todo`; expose it as `title`."""
    record = dict(item)
    if record.get("title") is None and isinstance(record.get("todo"), str):
        record["title"] = record["todo"]
    record.pop("todo", None)
    return record


class DummyJsonTaskSource:
    """
    DummyJSON todos adapter.

    Implements RemoteTaskSource protocol. The demo API never persists
    writes, so it is only read once (seed) and called best-effort on create.
    No business logic - just I/O.
    """

    def __init__(
        self,
        base_url: str = API_BASE,
        user_id: int = 1,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id
        self.timeout = timeout
        self._session = session or requests.Session()

    def _get_user_tasks(self) -> list[dict]:
        """Blocking GET of the owner's task collection."""
        url = f"{self.base_url}/todos/user/{self.user_id}"
        try:
            resp = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteFetchFailed(f"Fetching tasks failed: {e}") from e

        if not resp.ok:
            message = _error_message(resp, f"HTTP {resp.status_code}")
            raise RemoteFetchFailed(f"Fetching tasks failed: {message}")

        try:
            data = resp.json()
        except ValueError as e:
            raise RemoteFetchFailed("Fetching tasks failed: response is not JSON") from e

        # Either a bare array or {"todos": [...]}
        items = data.get("todos") if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise RemoteFetchFailed("Fetching tasks failed: unexpected response shape")
        return [_to_task_record(i) for i in items if isinstance(i, dict)]

    def _post_task(self, payload: dict) -> dict:
        """Blocking POST to the create endpoint."""
        try:
            resp = self._session.post(
                f"{self.base_url}/todos/add",
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AddFailed(str(e)) from e

        if not resp.ok:
            raise AddFailed(_error_message(resp, "Add failed"))

        try:
            data = resp.json()
        except ValueError:
            return {}
        return _to_task_record(data) if isinstance(data, dict) else {}

    async def fetch_tasks(self) -> list[dict]:
        """Fetch the owner's tasks from the API."""
        items = await asyncio.to_thread(self._get_user_tasks)
        logger.info(f"Fetched {len(items)} tasks for user {self.user_id} from {self.base_url}")
        return items

    async def add_task(self, payload: dict) -> dict:
        """Submit a task to the API. Returns the server's echo."""
        return await asyncio.to_thread(self._post_task, payload)
