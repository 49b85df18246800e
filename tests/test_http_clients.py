"""Tests for the Telegram HTTP adapter."""

import asyncio
import json
from pathlib import Path

import httpx
import pytest

from video_relay.adapters.telegram_client import (
    HttpxTelegramClient,
    classify_telegram_error,
)
from video_relay.domain.errors import (
    CapabilityRejectedError,
    DestinationUnreachableError,
    FailureReason,
    InsufficientPrivilegeError,
    TelegramApiError,
)


def _client(handler) -> HttpxTelegramClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxTelegramClient(
        bot_token="token", http_client=httpx.AsyncClient(transport=transport)
    )


def test_telegram_client_send_and_callback() -> None:
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 77}})

    client = _client(handler)

    message_id = asyncio.run(client.send_message(chat_id=1, text="Hi"))
    asyncio.run(client.answer_callback_query(callback_query_id="cbq-1", text="ok"))
    asyncio.run(client.edit_message_text(chat_id=1, message_id=77, text="Done"))
    asyncio.run(client.delete_message(chat_id=1, message_id=76))

    assert message_id == 77
    assert seen == [
        "/bottoken/sendMessage",
        "/bottoken/answerCallbackQuery",
        "/bottoken/editMessageText",
        "/bottoken/deleteMessage",
    ]


def test_send_photo_by_file_id_sends_json() -> None:
    captured: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(json.loads(request.content.decode()))
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 5}})

    client = _client(handler)
    markup = {"inline_keyboard": [[{"text": "Play", "url": "https://p"}]]}

    asyncio.run(client.send_photo("@chan", "file-id", reply_markup=markup))

    assert captured["photo"] == "file-id"
    assert captured["chat_id"] == "@chan"
    assert captured["reply_markup"] == markup
    assert "caption" not in captured


def test_send_photo_uploads_local_file(tmp_path: Path) -> None:
    image = tmp_path / "cover.jpg"
    image.write_bytes(b"jpeg-bytes")
    captured: dict[str, bytes] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["content_type"] = request.headers["content-type"].encode()
        captured["body"] = request.content
        return httpx.Response(200, json={"ok": True, "result": {"message_id": 6}})

    client = _client(handler)

    message_id = asyncio.run(
        client.send_photo(
            "@chan",
            image,
            caption="New video",
            reply_markup={"inline_keyboard": []},
        )
    )

    assert message_id == 6
    assert captured["content_type"].startswith(b"multipart/form-data")
    assert b"jpeg-bytes" in captured["body"]
    assert b'filename="cover.jpg"' in captured["body"]
    assert b'{"inline_keyboard": []}' in captured["body"]


def test_api_error_is_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400,
            json={
                "ok": False,
                "error_code": 400,
                "description": "Bad Request: BUTTON_TYPE_INVALID",
            },
        )

    client = _client(handler)

    with pytest.raises(CapabilityRejectedError) as excinfo:
        asyncio.run(client.send_photo("@chan", "file-id"))
    assert excinfo.value.reason is FailureReason.CAPABILITY_REJECTED
    assert excinfo.value.error_code == 400


def test_network_error_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(TelegramApiError) as excinfo:
        asyncio.run(client.send_message(chat_id=1, text="Hi"))
    assert excinfo.value.reason is FailureReason.UNKNOWN


def test_non_json_response_becomes_api_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="Bad Gateway")

    client = _client(handler)

    with pytest.raises(TelegramApiError) as excinfo:
        asyncio.run(client.send_message(chat_id=1, text="Hi"))
    assert excinfo.value.error_code == 502


@pytest.mark.parametrize(
    ("description", "code", "expected"),
    [
        ("Bad Request: chat not found", 400, DestinationUnreachableError),
        ("Bad Request: PEER_ID_INVALID", 400, DestinationUnreachableError),
        (
            "Bad Request: not enough rights to send photos",
            400,
            InsufficientPrivilegeError,
        ),
        (
            "Forbidden: bot is not a member of the channel chat",
            403,
            InsufficientPrivilegeError,
        ),
        ("Forbidden: something new", 403, InsufficientPrivilegeError),
        ("Bad Request: BUTTON_TYPE_INVALID", 400, CapabilityRejectedError),
        ("Too Many Requests: retry after 5", 429, TelegramApiError),
    ],
)
def test_classify_telegram_error(description: str, code: int, expected: type) -> None:
    error = classify_telegram_error(description, code)

    assert type(error) is expected
    assert error.description == description


def test_webhook_and_updates_calls() -> None:
    payloads: dict[str, dict] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        payloads[method] = json.loads(request.content.decode())
        if method == "getUpdates":
            return httpx.Response(200, json={"ok": True, "result": [{"update_id": 3}]})
        return httpx.Response(200, json={"ok": True, "result": True})

    client = _client(handler)

    asyncio.run(client.set_webhook("https://bot.example/telegram/webhook"))
    asyncio.run(client.delete_webhook())
    asyncio.run(client.set_my_commands([{"command": "start", "description": "Start"}]))
    updates = asyncio.run(client.get_updates(offset=3, timeout=1))

    assert payloads["setWebhook"] == {"url": "https://bot.example/telegram/webhook"}
    assert payloads["setMyCommands"]["commands"][0]["command"] == "start"
    assert payloads["getUpdates"] == {"timeout": 1, "offset": 3}
    assert updates == [{"update_id": 3}]
