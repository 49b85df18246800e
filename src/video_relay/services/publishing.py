"""Publish sessions and scheduled content to Telegram destinations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

from video_relay.adapters.telegram_client import ChatId, TelegramClient
from video_relay.domain.errors import (
    CapabilityRejectedError,
    FailureReason,
    LocatorError,
    SessionNotReadyError,
    TelegramApiError,
)
from video_relay.domain.publishing import ContentItem, PublishAttempt, PublishReport
from video_relay.domain.sessions import Session
from video_relay.services.destinations import DestinationRegistry
from video_relay.services.links import normalize_locator

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PublishReport], Awaitable[None]]


@dataclass
class ControlCapability:
    """Process-wide record of whether web app buttons are accepted.

    Starts optimistic and only ever moves to False.
    """

    embedded_app_supported: bool = True

    def downgrade(self) -> None:
        """Switch to plain URL buttons for the rest of the process."""
        if self.embedded_app_supported:
            logger.warning("Web app buttons rejected; falling back to URL buttons")
        self.embedded_app_supported = False


def play_button_markup(url: str, text: str, embedded: bool) -> dict:
    """Build the single-button inline keyboard that opens the player."""
    button: dict[str, object] = {"text": text}
    if embedded:
        button["web_app"] = {"url": url}
    else:
        button["url"] = url
    return {"inline_keyboard": [[button]]}


@dataclass
class PublishEngine:
    """Send image + play button posts and report per-destination outcomes."""

    telegram_client: TelegramClient
    registry: DestinationRegistry
    capability: ControlCapability
    player_url: str
    delay_seconds: float = 1.0
    caption: str | None = None
    button_text: str = "▶️ Play Video"

    async def publish_one(
        self, destination_id: ChatId, session: Session
    ) -> PublishAttempt:
        """Publish a ready session to one destination."""
        if not session.is_ready or session.playback_url is None:
            raise SessionNotReadyError(session.chat_id)
        return await self._deliver(
            str(destination_id), session.image_file_id, session.playback_url
        )

    async def publish_all(
        self, session: Session, on_progress: ProgressCallback | None = None
    ) -> PublishReport:
        """Publish a ready session to every registered destination.

        Failures are recorded and skipped; the batch always runs to the end.
        """
        if not session.is_ready or session.playback_url is None:
            raise SessionNotReadyError(session.chat_id)
        destinations = list(self.registry)
        report = PublishReport(total=len(destinations))
        await self._notify(on_progress, report)
        for index, destination in enumerate(destinations):
            if index:
                await asyncio.sleep(self.delay_seconds)
            attempt = await self._deliver(
                destination.id, session.image_file_id, session.playback_url
            )
            report.attempts.append(attempt)
            await self._notify(on_progress, report)
        logger.info(
            "Broadcast finished",
            extra={"succeeded": report.succeeded, "total": report.total},
        )
        return report

    async def publish_item(self, item: ContentItem) -> PublishAttempt:
        """Publish scheduled content, uploading the image from disk."""
        name = self.registry.lookup(item.destination_id)
        try:
            playback_url = normalize_locator(item.locator, self.player_url)
        except LocatorError:
            logger.warning(
                "Scheduled locator rejected",
                extra={
                    "destination_id": item.destination_id,
                    "file": str(item.text_path),
                },
            )
            return PublishAttempt(
                item.destination_id,
                name,
                succeeded=False,
                reason=FailureReason.INVALID_LOCATOR,
            )
        return await self._deliver(item.destination_id, item.image_path, playback_url)

    async def _deliver(
        self, destination_id: str, photo: str | Path, playback_url: str
    ) -> PublishAttempt:
        name = self.registry.lookup(destination_id)
        try:
            await self._send(destination_id, photo, playback_url)
        except TelegramApiError as exc:
            logger.warning(
                "Publish failed",
                extra={
                    "destination_id": destination_id,
                    "reason": exc.reason.value,
                    "description": exc.description,
                },
            )
            return PublishAttempt(
                destination_id, name, succeeded=False, reason=exc.reason
            )
        return PublishAttempt(destination_id, name, succeeded=True)

    async def _send(
        self, destination_id: str, photo: str | Path, playback_url: str
    ) -> None:
        if self.capability.embedded_app_supported:
            try:
                await self.telegram_client.send_photo(
                    chat_id=destination_id,
                    photo=photo,
                    caption=self.caption,
                    reply_markup=play_button_markup(
                        playback_url, self.button_text, embedded=True
                    ),
                )
            except CapabilityRejectedError:
                self.capability.downgrade()
            else:
                return
        await self.telegram_client.send_photo(
            chat_id=destination_id,
            photo=photo,
            caption=self.caption,
            reply_markup=play_button_markup(
                playback_url, self.button_text, embedded=False
            ),
        )

    async def _notify(
        self, on_progress: ProgressCallback | None, report: PublishReport
    ) -> None:
        if on_progress is None:
            return
        try:
            await on_progress(report)
        except Exception:
            logger.exception("Progress update failed")


def format_report(report: PublishReport) -> str:
    """Render a broadcast report as a chat message."""
    if not report.done:
        return f"⏳ Posting... {len(report.attempts)}/{report.total}"
    lines = [f"✅ Posted to {report.succeeded}/{report.total} channels."]
    if report.failed:
        lines.append("❌ Failed: " + ", ".join(report.failed))
    return "\n".join(lines)


def format_attempt(attempt: PublishAttempt) -> str:
    """Render a single publish outcome as a chat message."""
    if attempt.succeeded:
        return f"✅ Posted to {attempt.destination_name} successfully!"
    if attempt.reason is FailureReason.INSUFFICIENT_PRIVILEGE:
        hint = "Make sure the bot is an admin in the channel."
    elif attempt.reason is FailureReason.UNREACHABLE:
        hint = "The channel could not be found."
    elif attempt.reason is FailureReason.INVALID_LOCATOR:
        hint = "The stored video link is invalid."
    else:
        hint = "Please try again later."
    return f"❌ Failed to post to {attempt.destination_name}. {hint}"
