"""Route Telegram updates to the session store and command handlers."""

import logging
from dataclasses import dataclass

from video_relay.adapters.telegram_client import TelegramClient
from video_relay.api.telegram_models import (
    TelegramCallbackQuery,
    TelegramMessage,
    TelegramPhotoSize,
    TelegramUpdate,
)
from video_relay.config import is_admin
from video_relay.domain.errors import (
    LocatorError,
    NoActiveSessionError,
    TelegramApiError,
)
from video_relay.services.commands import (
    AUTOPOST,
    POST_ALL,
    POST_TO,
    AutopostCommandHandler,
    PostCommandHandler,
    StartCommandHandler,
    parse_callback_data,
)
from video_relay.services.publishing import PublishEngine
from video_relay.services.sessions import SessionStore
from video_relay.telegram_commands import parse_command

logger = logging.getLogger(__name__)

GENERIC_ERROR = "❌ Something went wrong. Please try again."


@dataclass
class UpdateDispatcher:
    """Single entry point for webhook and long-poll updates."""

    telegram_client: TelegramClient
    session_store: SessionStore
    publish_engine: PublishEngine
    start_handler: StartCommandHandler
    post_handler: PostCommandHandler
    autopost_handler: AutopostCommandHandler
    admin_user_id: str | None = None

    async def dispatch(self, update: TelegramUpdate) -> None:
        """Handle one update; failures are logged and never propagate."""
        try:
            if update.callback_query:
                await self._handle_callback(update.callback_query)
            elif update.message:
                await self._handle_message(update.message)
        except Exception:
            logger.exception(
                "Failed to handle update", extra={"update_id": update.update_id}
            )
            await self._report_failure(update)

    async def dispatch_raw(self, payload: dict[str, object]) -> None:
        """Validate a raw getUpdates entry and dispatch it."""
        await self.dispatch(TelegramUpdate.model_validate(payload))

    async def _handle_message(self, message: TelegramMessage) -> None:
        chat_id = message.chat.id
        user_id = message.from_user.id if message.from_user else None
        if message.photo:
            await self._handle_photo(chat_id, user_id, message.photo)
            return
        if not message.text:
            return
        command = parse_command(message.text)
        if command is None:
            await self._handle_locator(
                chat_id, user_id, message.text, message.message_id
            )
            return
        name, args = command
        if name in {"start", "help"}:
            await self.start_handler.handle(chat_id, user_id)
        elif name == "post":
            await self.post_handler.handle(chat_id, user_id)
        elif name == "autopost":
            await self.autopost_handler.handle(chat_id, user_id, args)
        elif name == "cancel":
            cleared = self.session_store.clear(chat_id)
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text="Post discarded." if cleared else "Nothing to cancel.",
            )

    async def _handle_photo(
        self, chat_id: int, user_id: int | None, photos: list[TelegramPhotoSize]
    ) -> None:
        photo = _select_largest_photo(photos)
        lines = [
            "📸 Image received!",
            "",
            "Now send me your video link:",
            "https://iframe.mediadelivery.net/play/...",
            "",
        ]
        if is_admin(user_id, self.admin_user_id):
            lines.append("After sending the link, use /post to share to your channels.")
        else:
            lines.append("I'll create a clean post with your image! 🎯")
        prompt_id = await self.telegram_client.send_message(
            chat_id=chat_id, text="\n".join(lines)
        )
        self.session_store.on_image_received(chat_id, photo.file_id, prompt_id)

    async def _handle_locator(
        self, chat_id: int, user_id: int | None, text: str, message_id: int
    ) -> None:
        try:
            session = self.session_store.on_locator_received(chat_id, text)
        except NoActiveSessionError:
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text=(
                    "📷 Please start by sending me an image first, "
                    "then I'll ask for your video link!"
                ),
            )
            return
        except LocatorError as exc:
            await self.telegram_client.send_message(
                chat_id=chat_id, text=f"❌ {exc.user_message}"
            )
            return

        attempt = await self.publish_engine.publish_one(chat_id, session)
        if not attempt.succeeded:
            self.session_store.reopen(chat_id)
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text="❌ Error creating your post. Please send the link again.",
            )
            return
        # The source link must not stay visible next to the finished post.
        await self._delete_quietly(chat_id, message_id)
        if session.prompt_message_id is not None:
            await self._delete_quietly(chat_id, session.prompt_message_id)
        if is_admin(user_id, self.admin_user_id):
            await self.telegram_client.send_message(
                chat_id=chat_id,
                text="✅ Post created! Use /post to share to your channels.",
            )

    async def _handle_callback(self, callback: TelegramCallbackQuery) -> None:
        if not callback.data or callback.message is None:
            await self.telegram_client.answer_callback_query(callback.id)
            return
        action, target = parse_callback_data(callback.data)
        chat_id = callback.message.chat.id
        message_id = callback.message.message_id
        if action in {POST_TO, POST_ALL}:
            await self.post_handler.handle_callback(
                callback.id, chat_id, message_id, callback.from_user.id, action, target
            )
        elif action == AUTOPOST:
            await self.autopost_handler.handle_callback(
                callback.id, chat_id, message_id, callback.from_user.id, target
            )
        else:
            await self.telegram_client.answer_callback_query(callback.id)

    async def _delete_quietly(self, chat_id: int, message_id: int) -> None:
        try:
            await self.telegram_client.delete_message(chat_id, message_id)
        except TelegramApiError as exc:
            logger.info(
                "Message cleanup not possible",
                extra={"chat_id": chat_id, "description": exc.description},
            )

    async def _report_failure(self, update: TelegramUpdate) -> None:
        try:
            if update.callback_query:
                await self.telegram_client.answer_callback_query(
                    update.callback_query.id, text=GENERIC_ERROR
                )
            elif update.message:
                await self.telegram_client.send_message(
                    chat_id=update.message.chat.id, text=GENERIC_ERROR
                )
        except Exception:
            logger.exception("Failed to report error to user")


def _select_largest_photo(photos: list[TelegramPhotoSize]) -> TelegramPhotoSize:
    """Select the largest photo size from the Telegram payload."""
    return max(photos, key=lambda photo: (photo.width * photo.height))
