"""Telegram bot command configuration."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class TelegramCommand:
    """Declarative bot command definition."""

    command: str
    description: str


class BotCommand(Enum):
    """Enum of bot commands (single source of truth)."""

    START = TelegramCommand("start", "How to create a video post")
    HELP = TelegramCommand("help", "Show usage instructions")
    POST = TelegramCommand("post", "Share the current post to channels (admin)")
    AUTOPOST = TelegramCommand("autopost", "Post scheduled content now (admin)")
    CANCEL = TelegramCommand("cancel", "Discard the current post")


def telegram_commands() -> list[dict[str, str]]:
    """Return commands formatted for Telegram API."""
    return [
        {"command": entry.value.command, "description": entry.value.description}
        for entry in BotCommand
    ]


def parse_command(text: str) -> tuple[str, str] | None:
    """Split "/cmd@bot args" into ("cmd", "args"), or None for plain text."""
    if not text.startswith("/"):
        return None
    head, _, args = text.strip().partition(" ")
    name = head[1:].split("@", maxsplit=1)[0].lower()
    return name, args.strip()
