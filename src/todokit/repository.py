"""Local-first task repository.

The store key holds the whole collection as one JSON array. Once that key
exists it is the source of truth; the remote source is only read to seed an
empty store. Every mutation is a full read-modify-write with no locking, so
of two racing writes the later one wins.
"""

import json
import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime
from enum import Enum

from .core.tasks import (
    Task,
    TaskDraft,
    filter_visible,
    generate_id,
    has_usable_id,
    normalize_records,
    parse_user_id,
    replace_record,
    utcnow,
)
from .errors import InvalidInput, NotFound, RemoteFetchFailed, StorageUnavailable
from .ports import KeyValueStore, RemoteTaskSource

logger = logging.getLogger(__name__)

TASKS_KEY = "@todos"


class RemoteAddPolicy(Enum):
    """What create() does when the remote create endpoint fails."""

    BEST_EFFORT = "best_effort"  # log and create locally
    STRICT = "strict"  # raise AddFailed, persist nothing


class TaskRepository:
    """
    Owns the canonical task list.

    Implements list/get/create/update/toggle_complete/delete over a
    KeyValueStore, seeding from a RemoteTaskSource when the store is empty.
    """

    def __init__(
        self,
        store: KeyValueStore,
        remote: RemoteTaskSource,
        key: str = TASKS_KEY,
        remote_add_policy: RemoteAddPolicy = RemoteAddPolicy.BEST_EFFORT,
        clock: Callable[[], datetime] = utcnow,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.remote = remote
        self.key = key
        self.remote_add_policy = remote_add_policy
        self.clock = clock
        self._rng = rng or random.Random()

    # ---- raw storage ----

    async def _read_raw(self) -> list | None:
        """Stored records exactly as persisted, or None when the key is absent."""
        try:
            payload = await self.store.get(self.key)
        except StorageUnavailable:
            raise
        except Exception as e:
            raise StorageUnavailable(f"Cannot read {self.key}: {e}") from e

        if payload is None:
            return None
        try:
            records = json.loads(payload)
        except json.JSONDecodeError as e:
            raise StorageUnavailable(f"Stored tasks are not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise StorageUnavailable("Stored tasks are not a JSON array")
        return records

    async def _write_raw(self, records: list) -> None:
        try:
            await self.store.set(self.key, json.dumps(records, ensure_ascii=False))
        except StorageUnavailable:
            raise
        except Exception as e:
            raise StorageUnavailable(f"Cannot write {self.key}: {e}") from e

    async def _write_tasks(self, tasks: list[Task]) -> None:
        await self._write_raw([t.to_dict() for t in tasks])

    def _usable(self, records: list) -> list[dict]:
        usable = [r for r in records if has_usable_id(r)]
        dropped = len(records) - len(usable)
        if dropped:
            logger.warning(f"Ignoring {dropped} stored task record(s) without a usable id")
        return usable

    # ---- loading ----

    async def _seed(self) -> list[Task]:
        """First run: pull the remote collection and persist it."""
        logger.info("No stored tasks, seeding from remote")
        records = await self.remote.fetch_tasks()
        tasks = normalize_records(self._usable(records))
        await self._write_tasks(tasks)
        logger.info(f"Seeded {len(tasks)} tasks into {self.key}")
        return tasks

    async def _load(self) -> list[Task]:
        """Full normalized collection, hidden tasks included."""
        records = await self._read_raw()
        if records is None:
            return await self._seed()
        return normalize_records(self._usable(records))

    async def list(self) -> list[Task]:
        """Visible tasks. Seeds from the remote source on first run only."""
        return filter_visible(await self._load())

    async def get(self, task_id: int) -> Task | None:
        """Look up a task by id, hidden ones included."""
        for task in await self._load():
            if task.id == task_id:
                return task
        return None

    # ---- mutations ----

    async def _remote_defaults(self, title: str, draft: TaskDraft) -> dict:
        """Best-effort remote create. Only its field defaults are used."""
        payload = {
            "title": title,
            "completed": bool(draft.completed),
            "userId": draft.user_id if draft.user_id is not None else 1,
        }
        try:
            return await self.remote.add_task(payload) or {}
        except RemoteFetchFailed as e:
            if self.remote_add_policy is RemoteAddPolicy.STRICT:
                raise
            logger.warning(f"Remote add failed, creating locally only: {e}")
            return {}

    def _now_ms(self) -> int:
        return int(self.clock().timestamp() * 1000)

    async def create(self, draft: TaskDraft) -> Task:
        """Validate, assign a fresh id, append and persist a new task."""
        title = draft.clean_title()
        if title is None:
            raise InvalidInput("Please enter a task title")

        remote = await self._remote_defaults(title, draft)

        records = await self._read_raw() or []
        existing_ids = {int(r["id"]) for r in records if has_usable_id(r)}
        task_id = generate_id(existing_ids, self._now_ms, self._rng)

        if draft.completed is not None:
            completed = draft.completed
        else:
            completed = bool(remote.get("completed", False))
        if draft.user_id is not None:
            user_id = draft.user_id
        else:
            user_id = parse_user_id(remote.get("userId"))

        task = Task(
            id=task_id,
            title=title,
            completed=completed,
            user_id=user_id,
            due_date=draft.due_date or self.clock(),
        )
        await self._write_raw([*records, task.to_dict()])
        logger.info(f"Created task {task.id}: {task.title!r}")
        return task

    async def update(self, task: Task) -> Task:
        """Replace the raw record(s) with the same id. Unknown ids are a no-op."""
        if not isinstance(task.title, str) or not task.title.strip():
            raise InvalidInput("Please enter a task title")
        task = replace(task, title=task.title.strip())

        records = await self._read_raw()
        if records is None:
            records = [t.to_dict() for t in await self._seed()]

        records, found = replace_record(records, task)
        if not found:
            logger.debug(f"Update of unknown task {task.id} ignored")
            return task

        await self._write_raw(records)
        logger.info(f"Updated task {task.id}")
        return task

    async def toggle_complete(self, task_id: int, completed: bool) -> None:
        """Flip `completed` on the raw stored record, nothing else."""
        records = await self._read_raw()
        if records is None:
            logger.debug(f"No stored tasks, toggle of {task_id} ignored")
            return

        for record in records:
            if has_usable_id(record) and int(record["id"]) == task_id:
                record["completed"] = completed
        await self._write_raw(records)

    async def delete(self, task_ids: Iterable[int]) -> None:
        """Remove every given id in one read, one filter and one write."""
        doomed = set(task_ids)
        records = await self._read_raw()
        if records is None:
            raise NotFound("No tasks found in local storage")

        kept = [r for r in records if not (has_usable_id(r) and int(r["id"]) in doomed)]
        await self._write_raw(kept)
        logger.info(f"Deleted {len(records) - len(kept)} of {len(doomed)} requested task(s)")
