"""Telegram API client adapter."""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from video_relay.domain.errors import (
    CapabilityRejectedError,
    DestinationUnreachableError,
    InsufficientPrivilegeError,
    TelegramApiError,
)

ChatId = int | str

_CAPABILITY_MARKERS = ("button_type_invalid", "web_app", "web app")
_UNREACHABLE_MARKERS = (
    "chat not found",
    "user not found",
    "peer_id_invalid",
    "chat_id is empty",
    "channel_invalid",
)
_PRIVILEGE_MARKERS = (
    "not enough rights",
    "have no rights",
    "need administrator rights",
    "not a member",
    "bot was kicked",
    "bot was blocked",
    "chat_write_forbidden",
    "chat_admin_required",
)
_FORBIDDEN = 403


def classify_telegram_error(
    description: str, error_code: int | None = None
) -> TelegramApiError:
    """Map a Telegram error description to a typed error."""
    lowered = description.lower()
    if any(marker in lowered for marker in _CAPABILITY_MARKERS):
        return CapabilityRejectedError(description, error_code)
    if any(marker in lowered for marker in _UNREACHABLE_MARKERS):
        return DestinationUnreachableError(description, error_code)
    if error_code == _FORBIDDEN or any(
        marker in lowered for marker in _PRIVILEGE_MARKERS
    ):
        return InsufficientPrivilegeError(description, error_code)
    return TelegramApiError(description, error_code)


class TelegramClient(Protocol):
    """Interface for Telegram API interactions."""

    async def send_message(
        self, chat_id: ChatId, text: str, reply_markup: dict | None = None
    ) -> int:
        """Send a text message and return its message id."""

    async def send_photo(
        self,
        chat_id: ChatId,
        photo: str | Path,
        caption: str | None = None,
        reply_markup: dict | None = None,
    ) -> int:
        """Send a photo by file id or local path and return its message id."""

    async def edit_message_text(
        self,
        chat_id: ChatId,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        """Replace the text of a previously sent message."""

    async def delete_message(self, chat_id: ChatId, message_id: int) -> None:
        """Delete a message from a chat."""

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a Telegram callback query."""

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""

    async def set_webhook(self, url: str) -> None:
        """Register the webhook URL."""

    async def delete_webhook(self) -> None:
        """Remove the webhook so getUpdates can be used."""

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, object]]:
        """Long-poll for new updates."""


@dataclass
class HttpxTelegramClient:
    """Telegram client implemented with httpx."""

    bot_token: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, bot_token: str) -> "HttpxTelegramClient":
        """Create a Telegram client with a managed httpx session."""
        return cls(bot_token=bot_token, http_client=httpx.AsyncClient())

    async def _call(
        self,
        method: str,
        payload: dict[str, object] | None = None,
        files: dict[str, tuple[str, bytes]] | None = None,
        timeout: float = 10,
    ) -> object:
        url = f"https://api.telegram.org/bot{self.bot_token}/{method}"
        try:
            if files:
                data = {
                    key: value if isinstance(value, str) else json.dumps(value)
                    for key, value in (payload or {}).items()
                }
                response = await self.http_client.post(
                    url, data=data, files=files, timeout=timeout
                )
            else:
                response = await self.http_client.post(
                    url, json=payload or {}, timeout=timeout
                )
        except httpx.HTTPError as exc:
            raise TelegramApiError(f"{method} failed: {exc}") from exc
        try:
            body = response.json()
        except ValueError as exc:
            raise TelegramApiError(
                f"{method} returned HTTP {response.status_code}",
                response.status_code,
            ) from exc
        if not body.get("ok"):
            raise classify_telegram_error(
                str(body.get("description", f"{method} failed")),
                body.get("error_code", response.status_code),
            )
        return body.get("result")

    async def send_message(
        self, chat_id: ChatId, text: str, reply_markup: dict | None = None
    ) -> int:
        """Send a message using Telegram's sendMessage API."""
        payload: dict[str, object] = {"chat_id": chat_id, "text": text}
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        result = await self._call("sendMessage", payload)
        return _message_id(result)

    async def send_photo(
        self,
        chat_id: ChatId,
        photo: str | Path,
        caption: str | None = None,
        reply_markup: dict | None = None,
    ) -> int:
        """Send a photo, uploading it when given a local path."""
        payload: dict[str, object] = {"chat_id": str(chat_id)}
        if caption:
            payload["caption"] = caption
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        if isinstance(photo, Path):
            files = {"photo": (photo.name, photo.read_bytes())}
            result = await self._call("sendPhoto", payload, files=files, timeout=60)
        else:
            payload["photo"] = photo
            result = await self._call("sendPhoto", payload)
        return _message_id(result)

    async def edit_message_text(
        self,
        chat_id: ChatId,
        message_id: int,
        text: str,
        reply_markup: dict | None = None,
    ) -> None:
        """Edit a message using Telegram's editMessageText API."""
        payload: dict[str, object] = {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text,
        }
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        await self._call("editMessageText", payload)

    async def delete_message(self, chat_id: ChatId, message_id: int) -> None:
        """Delete a message using Telegram's deleteMessage API."""
        await self._call(
            "deleteMessage", {"chat_id": chat_id, "message_id": message_id}
        )

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> None:
        """Answer a callback query using Telegram's API."""
        payload: dict[str, object] = {"callback_query_id": callback_query_id}
        if text is not None:
            payload["text"] = text
        await self._call("answerCallbackQuery", payload)

    async def set_my_commands(self, commands: list[dict[str, str]]) -> None:
        """Set the bot command list."""
        await self._call("setMyCommands", {"commands": commands})

    async def set_webhook(self, url: str) -> None:
        """Register the webhook URL."""
        await self._call("setWebhook", {"url": url})

    async def delete_webhook(self) -> None:
        """Remove any registered webhook."""
        await self._call("deleteWebhook", {"drop_pending_updates": False})

    async def get_updates(
        self, offset: int | None = None, timeout: int = 30
    ) -> list[dict[str, object]]:
        """Long-poll Telegram's getUpdates API."""
        payload: dict[str, object] = {"timeout": timeout}
        if offset is not None:
            payload["offset"] = offset
        result = await self._call("getUpdates", payload, timeout=timeout + 10)
        return result if isinstance(result, list) else []

    async def close(self) -> None:
        """Close the underlying HTTP client session."""
        await self.http_client.aclose()


def _message_id(result: object) -> int:
    if isinstance(result, dict):
        return int(result.get("message_id", 0))
    return 0
