"""Shared test fixtures."""

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from video_relay.adapters.telegram_client import ChatId, TelegramClient
from video_relay.config import Settings
from video_relay.containers import AppContainer, build_services
from video_relay.domain.errors import CapabilityRejectedError, TelegramApiError

PLAYER_URL = "https://player.example"
ADMIN_ID = 42
VALID_LOCATOR = "https://iframe.mediadelivery.net/play/12345/abcde-f/playlist.m3u8"


@dataclass
class SentPhoto:
    chat_id: str
    photo: str | Path
    caption: str | None
    reply_markup: dict | None


@dataclass
class FakeTelegramClient(TelegramClient):
    """Fake Telegram client that records outbound calls."""

    messages: list[tuple[ChatId, str]] = field(default_factory=list)
    markups: list[dict | None] = field(default_factory=list)
    photos: list[SentPhoto] = field(default_factory=list)
    edits: list[tuple[ChatId, int, str]] = field(default_factory=list)
    deleted: list[tuple[ChatId, int]] = field(default_factory=list)
    callbacks: list[tuple[str, str | None]] = field(default_factory=list)
    commands: list[dict[str, str]] | None = None
    webhook_url: str | None = None
    webhook_deleted: bool = False
    failures: dict[str, TelegramApiError] = field(default_factory=dict)
    reject_web_app: bool = False
    reject_delete: bool = False
    updates: list[list[dict[str, object]]] = field(default_factory=list)
    next_message_id: int = 100

    async def send_message(
        self, chat_id: ChatId, text: str, reply_markup: dict | None = None
    ) -> int:
        self.messages.append((chat_id, text))
        self.markups.append(reply_markup)
        self.next_message_id += 1
        return self.next_message_id

    async def send_photo(
        self,
        chat_id: ChatId,
        photo: str | Path,
        caption: str | None = None,
        reply_markup: dict | None = None,
    ) -> int:
        error = self.failures.get(str(chat_id))
        if error is not None:
            raise error
        button = (reply_markup or {}).get("inline_keyboard", [[{}]])[0][0]
        if self.reject_web_app and "web_app" in button:
            raise CapabilityRejectedError("Bad Request: BUTTON_TYPE_INVALID", 400)
        self.photos.append(SentPhoto(str(chat_id), photo, caption, reply_markup))
        self.next_message_id += 1
        return self.next_message_id

    async def edit_message_text(
        self,
        chat_id: ChatId,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        self.edits.append((chat_id, message_id, text))

    async def delete_message(self, chat_id: ChatId, message_id: int) -> None:
        if self.reject_delete:
            raise TelegramApiError("Bad Request: message can't be deleted", 400)
        self.deleted.append((chat_id, message_id))

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        self.callbacks.append((callback_query_id, text))

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        self.commands = commands

    async def set_webhook(self, url: str) -> None:
        self.webhook_url = url

    async def delete_webhook(self) -> None:
        self.webhook_deleted = True

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, object]]:
        if self.updates:
            return self.updates.pop(0)
        await asyncio.sleep(0.01)
        return []


def fixed_clock(value: datetime):
    return lambda: value


def message_update(
    chat_id: int, user_id: int, text: str | None = None, photo: bool = False
) -> dict[str, object]:
    message: dict[str, object] = {
        "message_id": 10,
        "date": 1700000000,
        "chat": {"id": chat_id, "type": "private"},
        "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
    }
    if text is not None:
        message["text"] = text
    if photo:
        message["photo"] = [
            {"file_id": "small", "file_unique_id": "s", "width": 90, "height": 90},
            {"file_id": "large", "file_unique_id": "l", "width": 1280, "height": 720},
        ]
    return {"update_id": 1, "message": message}


def callback_update(chat_id: int, user_id: int, data: str) -> dict[str, object]:
    return {
        "update_id": 2,
        "callback_query": {
            "id": "cbq-1",
            "from": {"id": user_id, "is_bot": False, "first_name": "Admin"},
            "message": {
                "message_id": 55,
                "date": 1700000001,
                "chat": {"id": chat_id, "type": "private"},
                "text": "Select channel to post:",
            },
            "data": data,
        },
    }


@pytest.fixture
def now() -> datetime:
    return datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        telegram_bot_token="test-token",
        player_url=PLAYER_URL,
        admin_user_id=str(ADMIN_ID),
        channel_ids="@news:News,@clips:Clips,-1001:Backup",
        content_root=tmp_path / "content",
        publish_delay_seconds=0,
    )


@pytest.fixture
def telegram_client() -> FakeTelegramClient:
    return FakeTelegramClient()


@pytest.fixture
def container(settings: Settings, telegram_client: FakeTelegramClient) -> AppContainer:
    async def close_resources() -> None:
        return None

    return build_services(settings, telegram_client, close_resources)
