"""Command handlers for Telegram updates."""

import asyncio
import logging
from dataclasses import dataclass, field

from video_relay.adapters.telegram_client import TelegramClient
from video_relay.config import is_admin
from video_relay.domain.publishing import PublishAttempt, PublishReport
from video_relay.domain.sessions import Session
from video_relay.services.autopost import AutopostService
from video_relay.services.destinations import DestinationRegistry
from video_relay.services.publishing import PublishEngine, format_attempt, format_report
from video_relay.services.sessions import SessionStore

logger = logging.getLogger(__name__)

ADMIN_ONLY = "❌ This command is for admin only."
NO_DESTINATIONS = "No destinations configured."
NO_POST = "Please create a post first by sending an image and video link."
UNKNOWN_DESTINATION = "Unknown channel."

POST_TO = "post_to"
POST_ALL = "post_all"
AUTOPOST = "autopost"


def parse_callback_data(data: str) -> tuple[str, str]:
    """Split callback data "action:target" on the first colon."""
    action, _, target = data.partition(":")
    return action, target


def _keyboard(buttons: list[tuple[str, str]]) -> dict:
    return {
        "inline_keyboard": [
            [{"text": label, "callback_data": callback}] for label, callback in buttons
        ]
    }


@dataclass
class StartCommandHandler:
    """Handle the /start and /help Telegram commands."""

    telegram_client: TelegramClient
    admin_user_id: str | None = None

    async def handle(self, chat_id: int, user_id: int | None) -> None:
        """Send usage instructions, with admin extras for the admin."""
        lines = [
            "🎬 Video Link Bot",
            "",
            "How to use:",
            "1️⃣ Send me an image",
            "2️⃣ Send your video link",
            "3️⃣ I'll create a clean shareable post",
        ]
        if is_admin(user_id, self.admin_user_id):
            lines += [
                "",
                "Admin features:",
                "/post - share the current post to your channels",
                "/autopost - post scheduled content now",
            ]
        lines += ["", "No visible links, just images! 👌"]
        await self.telegram_client.send_message(chat_id=chat_id, text="\n".join(lines))


@dataclass
class PostCommandHandler:
    """Handle /post and the channel selection buttons it shows."""

    telegram_client: TelegramClient
    session_store: SessionStore
    registry: DestinationRegistry
    publish_engine: PublishEngine
    admin_user_id: str | None = None
    clear_session_after_publish: bool = False
    _tasks: set[asyncio.Task] = field(default_factory=set, init=False)

    async def handle(self, chat_id: int, user_id: int | None) -> None:
        """Publish directly to a single destination or offer a selection."""
        if not is_admin(user_id, self.admin_user_id):
            await self.telegram_client.send_message(chat_id=chat_id, text=ADMIN_ONLY)
            return
        if not self.registry:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=NO_DESTINATIONS
            )
            return
        session = self.session_store.get(chat_id)
        if session is None or not session.is_ready:
            await self.telegram_client.send_message(chat_id=chat_id, text=NO_POST)
            return
        if len(self.registry) == 1:
            destination = next(iter(self.registry))
            attempt = await self.publish_engine.publish_one(destination.id, session)
            self._after_publish(chat_id, attempt.succeeded)
            await self.telegram_client.send_message(
                chat_id=chat_id, text=format_attempt(attempt)
            )
            return
        buttons = [
            (f"Post to {destination.name}", f"{POST_TO}:{destination.id}")
            for destination in self.registry
        ]
        buttons.append(
            (f"📢 Post to all {len(self.registry)} channels", f"{POST_ALL}:*")
        )
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text="Select channel to post:",
            reply_markup=_keyboard(buttons),
        )

    async def handle_callback(  # noqa: PLR0913
        self,
        callback_query_id: str,
        chat_id: int,
        message_id: int,
        user_id: int,
        action: str,
        target: str,
    ) -> None:
        """Handle a post_to or post_all button press."""
        if not is_admin(user_id, self.admin_user_id):
            await self.telegram_client.answer_callback_query(
                callback_query_id, text=ADMIN_ONLY
            )
            return
        session = self.session_store.get(chat_id)
        if session is None or not session.is_ready:
            await self.telegram_client.answer_callback_query(
                callback_query_id,
                text="No post data found. Please create a post first.",
            )
            return
        if action == POST_ALL:
            await self._start_broadcast(callback_query_id, chat_id, message_id, session)
            return
        if target not in self.registry:
            await self.telegram_client.answer_callback_query(
                callback_query_id, text=UNKNOWN_DESTINATION
            )
            return
        attempt = await self.publish_engine.publish_one(target, session)
        self._after_publish(chat_id, attempt.succeeded)
        text = format_attempt(attempt)
        await self.telegram_client.answer_callback_query(callback_query_id, text=text)
        await self.telegram_client.edit_message_text(
            chat_id=chat_id, message_id=message_id, text=text
        )

    async def wait_idle(self) -> None:
        """Wait for running broadcasts to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _start_broadcast(
        self, callback_query_id: str, chat_id: int, message_id: int, session: Session
    ) -> None:
        if not self.registry:
            await self.telegram_client.answer_callback_query(
                callback_query_id, text=NO_DESTINATIONS
            )
            return
        await self.telegram_client.answer_callback_query(
            callback_query_id, text=f"Posting to {len(self.registry)} channels..."
        )
        task = asyncio.create_task(self._broadcast(chat_id, message_id, session))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _broadcast(self, chat_id: int, message_id: int, session: Session) -> None:
        async def show_progress(report: PublishReport) -> None:
            await self.telegram_client.edit_message_text(
                chat_id=chat_id, message_id=message_id, text=format_report(report)
            )

        try:
            report = await self.publish_engine.publish_all(session, show_progress)
        except Exception:
            logger.exception("Broadcast failed", extra={"chat_id": chat_id})
            return
        self._after_publish(chat_id, report.succeeded > 0)

    def _after_publish(self, chat_id: int, succeeded: bool) -> None:
        if succeeded and self.clear_session_after_publish:
            self.session_store.clear(chat_id)


@dataclass
class AutopostCommandHandler:
    """Handle /autopost, the manual override for scheduled posting."""

    telegram_client: TelegramClient
    registry: DestinationRegistry
    autopost_service: AutopostService
    admin_user_id: str | None = None

    async def handle(self, chat_id: int, user_id: int | None, args: str = "") -> None:
        """Post now to the named destination, or ask which one."""
        if not is_admin(user_id, self.admin_user_id):
            await self.telegram_client.send_message(chat_id=chat_id, text=ADMIN_ONLY)
            return
        if not self.registry:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=NO_DESTINATIONS
            )
            return
        destination_id = args.strip()
        if destination_id and destination_id not in self.registry:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=UNKNOWN_DESTINATION
            )
            return
        if destination_id:
            attempt = await self.autopost_service.run_once(destination_id)
            await self.telegram_client.send_message(
                chat_id=chat_id, text=self._format(destination_id, attempt)
            )
            return
        buttons = [
            (f"Autopost to {destination.name}", f"{AUTOPOST}:{destination.id}")
            for destination in self.registry
        ]
        await self.telegram_client.send_message(
            chat_id=chat_id,
            text="Select channel for an immediate autopost:",
            reply_markup=_keyboard(buttons),
        )

    async def handle_callback(  # noqa: PLR0913
        self,
        callback_query_id: str,
        chat_id: int,
        message_id: int,
        user_id: int,
        target: str,
    ) -> None:
        """Run an autopost for the selected destination."""
        if not is_admin(user_id, self.admin_user_id):
            await self.telegram_client.answer_callback_query(
                callback_query_id, text=ADMIN_ONLY
            )
            return
        if target not in self.registry:
            await self.telegram_client.answer_callback_query(
                callback_query_id, text=UNKNOWN_DESTINATION
            )
            return
        await self.telegram_client.answer_callback_query(callback_query_id)
        attempt = await self.autopost_service.run_once(target)
        await self.telegram_client.edit_message_text(
            chat_id=chat_id, message_id=message_id, text=self._format(target, attempt)
        )

    def _format(self, destination_id: str, attempt: PublishAttempt | None) -> str:
        if attempt is None:
            name = self.registry.lookup(destination_id)
            return f"📭 No content available for {name}."
        return format_attempt(attempt)
