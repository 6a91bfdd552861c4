from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    api_base_url: str
    api_token: str
    bot_token: str
    owner_telegram_id: int
    timezone: str
    db_path: Path
    sweep_seconds: int = 60
    refresh_seconds: int = 30
    http_timeout_seconds: float = 10.0
    email_notifications: bool = False


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise RuntimeError(f"{name} must be positive")
    return value


def _bool_env(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    return raw in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    load_dotenv()

    api_base_url = os.getenv("TASKS_API_URL", "").strip()
    api_token = os.getenv("TASKS_API_TOKEN", "").strip()
    bot_token = os.getenv("BOT_TOKEN", "").strip()
    owner_raw = os.getenv("OWNER_TELEGRAM_ID", "0").strip() or "0"
    tz = os.getenv("TZ", "Europe/Helsinki").strip()
    db_raw = os.getenv("DB_PATH", "data/tasktracker.db").strip()

    if not api_base_url:
        raise RuntimeError("TASKS_API_URL missing in .env")
    if not bot_token:
        raise RuntimeError("BOT_TOKEN missing in .env")
    try:
        owner_id = int(owner_raw)
    except ValueError:
        raise RuntimeError("OWNER_TELEGRAM_ID missing/invalid in .env")
    if owner_id <= 0:
        raise RuntimeError("OWNER_TELEGRAM_ID missing/invalid in .env")

    # relative db_path is resolved against the repo root by the entry point
    return Settings(
        api_base_url=api_base_url,
        api_token=api_token,
        bot_token=bot_token,
        owner_telegram_id=owner_id,
        timezone=tz,
        db_path=Path(db_raw),
        sweep_seconds=_int_env("SWEEP_SECONDS", 60),
        refresh_seconds=_int_env("REFRESH_SECONDS", 30),
        http_timeout_seconds=float(_int_env("HTTP_TIMEOUT_SECONDS", 10)),
        email_notifications=_bool_env("EMAIL_NOTIFICATIONS"),
    )
