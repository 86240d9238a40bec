"""File-based key-value storage adapter."""

import json
import logging
from pathlib import Path

from todokit.errors import StorageUnavailable

logger = logging.getLogger(__name__)


class FileKeyValueStore:
    """
    File-based key-value store.

    Implements KeyValueStore protocol. All keys live in one JSON object on
    disk; every set() rewrites the whole file.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read_all(self) -> dict[str, str]:
        """Load the backing file. A missing file is an empty store."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}") from e
        except json.JSONDecodeError as e:
            raise StorageUnavailable(f"Store file {self.path} is corrupt: {e}") from e
        if not isinstance(data, dict):
            raise StorageUnavailable(f"Store file {self.path} is not a JSON object")
        return data

    async def get(self, key: str) -> str | None:
        """Read the value at key. Returns None if nothing is stored."""
        return self._read_all().get(key)

    async def set(self, key: str, value: str) -> None:
        """Write/overwrite the value at key."""
        data = self._read_all()
        data[key] = value
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self.path}: {e}") from e
        logger.debug(f"Stored {len(value)} chars under {key!r} in {self.path}")
