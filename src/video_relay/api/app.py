"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request

from video_relay.api.telegram_models import TelegramUpdate
from video_relay.app_logging import configure_logging
from video_relay.containers import AppContainer
from video_relay.telegram_commands import telegram_commands

WEBHOOK_PATH = "/telegram/webhook"


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        client = state_container.telegram_client
        try:
            await client.set_my_commands(telegram_commands())
        except Exception:
            logger.exception("Failed to sync Telegram bot commands")
        webhook_url = state_container.settings.webhook_url
        if webhook_url:
            try:
                await client.set_webhook(f"{webhook_url.rstrip('/')}{WEBHOOK_PATH}")
                logger.info("Webhook registered", extra={"url": webhook_url})
            except Exception:
                logger.exception("Webhook setup failed")
        else:
            logger.warning("WEBHOOK_URL not set, using long polling instead")
            try:
                await client.delete_webhook()
            except Exception:
                logger.exception("Failed to delete webhook")
            state_container.poller.start()
        state_container.scheduler.start()
        yield
        await state_container.scheduler.stop()
        await state_container.poller.stop()
        await state_container.post_handler.wait_idle()
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/")
    @app.get("/health")
    async def health(request: Request) -> dict[str, object]:
        """Report process status and in-memory counters."""
        state_container: AppContainer = request.app.state.container
        return {
            "status": "ok",
            "timestamp": datetime.now(tz=UTC).isoformat(),
            "active_sessions": len(state_container.session_store),
            "destinations": len(state_container.registry),
        }

    @app.post(WEBHOOK_PATH)
    async def telegram_webhook(
        update: TelegramUpdate, request: Request
    ) -> dict[str, str]:
        """Handle Telegram webhook updates."""
        state_container: AppContainer = request.app.state.container
        await state_container.dispatcher.dispatch(update)
        return {"status": "ok"}

    return app
