"""Configuration management for todokit."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

TODOKIT_HOME = Path(os.environ.get("TODOKIT_HOME", Path.home() / "todokit"))
CONFIG_FILE = TODOKIT_HOME / "config" / "todokit.conf"
DATA_DIR = TODOKIT_HOME / "data"

TRUE_VALUES = {"1", "true", "yes", "y", "on"}


@dataclass
class Config:
    """todokit configuration."""

    store_path: str = ""
    api_base_url: str = "https://dummyjson.com"
    user_id: int = 1
    remote_timeout: float | None = None
    remote_add_policy: str = "best_effort"
    # Reminders
    reminder_lead_minutes: int = 5
    truncate_reminders: bool = False
    cancel_all_reminders: bool = False
    notifications_enabled: bool = True
    timezone: str = "UTC"
    rearm_interval_seconds: float = 60.0
    # Query cache (seconds)
    list_stale_seconds: float = 0.0
    cache_stale_seconds: float = 300.0
    cache_retries: int = 1
    # Telegram delivery for `todokit watch`
    telegram_bot_token: str = ""
    telegram_chat_ids: list[int] = field(default_factory=list)

    @property
    def resolved_store_path(self) -> Path:
        if self.store_path:
            return Path(self.store_path).expanduser()
        return DATA_DIR / "store.json"


def _unquote(value: str) -> str:
    """Strip quotes, or an inline comment from unquoted values."""
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def _as_int(key: str, value: str, default: int) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Invalid integer for {key.upper()}: {value!r}")
        return default


def _as_float(key: str, value: str, default: float | None) -> float | None:
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Invalid number for {key.upper()}: {value!r}")
        return default


def load_config(path: Path | None = None) -> Config:
    """Load configuration from todokit.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "store_path":
                config.store_path = value
            case "api_base_url":
                config.api_base_url = value.rstrip("/")
            case "user_id":
                config.user_id = _as_int(key, value, config.user_id)
            case "remote_timeout":
                config.remote_timeout = _as_float(key, value, None) if value else None
            case "remote_add_policy":
                if value.lower() in ("best_effort", "strict"):
                    config.remote_add_policy = value.lower()
                else:
                    logger.warning(f"Unknown REMOTE_ADD_POLICY {value!r}, keeping {config.remote_add_policy}")
            case "reminder_lead_minutes":
                config.reminder_lead_minutes = _as_int(key, value, config.reminder_lead_minutes)
            case "truncate_reminders":
                config.truncate_reminders = value.lower() in TRUE_VALUES
            case "cancel_all_reminders":
                config.cancel_all_reminders = value.lower() in TRUE_VALUES
            case "notifications_enabled":
                config.notifications_enabled = value.lower() in TRUE_VALUES
            case "timezone":
                config.timezone = value
            case "rearm_interval_seconds":
                config.rearm_interval_seconds = _as_float(key, value, config.rearm_interval_seconds)
            case "list_stale_seconds":
                config.list_stale_seconds = _as_float(key, value, config.list_stale_seconds)
            case "cache_stale_seconds":
                config.cache_stale_seconds = _as_float(key, value, config.cache_stale_seconds)
            case "cache_retries":
                config.cache_retries = _as_int(key, value, config.cache_retries)
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_chat_ids":
                config.telegram_chat_ids = [int(c.strip()) for c in value.split(",") if c.strip()]

    return config
