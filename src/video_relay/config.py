"""Application configuration."""

import logging
import os
from pathlib import Path

from croniter import croniter
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    player_url: str = "https://bplyrrr.netlify.app"
    webhook_url: str | None = None
    admin_user_id: str | None = None
    channel_ids: str = ""
    post_schedules: str = ""
    schedule_timezone: str = "UTC"
    content_root: Path = Path("content")
    session_ttl_seconds: int = 3600
    session_sweep_interval_seconds: int = 3600
    publish_delay_seconds: float = 1.0
    post_caption: str = ""
    play_button_text: str = "▶️ Play Video"
    clear_session_after_publish: bool = False
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3000
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @field_validator("telegram_bot_token")
    @classmethod
    def _require_token(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("TELEGRAM_BOT_TOKEN must not be empty")
        return value.strip()

    @field_validator("player_url")
    @classmethod
    def _require_https_player(cls, value: str) -> str:
        if not value.startswith("https://"):
            raise ValueError("PLAYER_URL must be an https:// URL")
        return value.rstrip("/")


def parse_schedules(raw: str | None) -> dict[str, str]:
    """Parse per-destination cron schedules in the form id:cron;id:cron."""
    schedules: dict[str, str] = {}
    if not raw:
        return schedules
    for chunk in raw.split(";"):
        destination_id, sep, expression = chunk.partition(":")
        destination_id = destination_id.strip()
        expression = expression.strip()
        if not sep or not destination_id or not expression:
            continue
        if not croniter.is_valid(expression):
            logger.warning(
                "Skipping invalid cron expression",
                extra={"destination_id": destination_id, "expression": expression},
            )
            continue
        schedules[destination_id] = expression
    return schedules


def is_admin(user_id: int | None, admin_user_id: str | None) -> bool:
    """Return true when the Telegram user is the configured admin."""
    if user_id is None or not admin_user_id:
        return False
    return str(user_id) == admin_user_id.strip()
