"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import timedelta

from video_relay.adapters.telegram_client import HttpxTelegramClient, TelegramClient
from video_relay.adapters.telegram_poller import TelegramPoller
from video_relay.config import Settings, parse_schedules
from video_relay.services.autopost import AutopostService, ContentSelector
from video_relay.services.commands import (
    AutopostCommandHandler,
    PostCommandHandler,
    StartCommandHandler,
)
from video_relay.services.destinations import DestinationRegistry
from video_relay.services.publishing import ControlCapability, PublishEngine
from video_relay.services.scheduler import Scheduler
from video_relay.services.sessions import SessionStore
from video_relay.services.updates import UpdateDispatcher


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    telegram_client: TelegramClient
    session_store: SessionStore
    registry: DestinationRegistry
    capability: ControlCapability
    publish_engine: PublishEngine
    autopost_service: AutopostService
    post_handler: PostCommandHandler
    dispatcher: UpdateDispatcher
    scheduler: Scheduler
    poller: TelegramPoller
    close_resources: Callable[[], Awaitable[None]]


def build_services(
    settings: Settings,
    telegram_client: TelegramClient,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Wire the services around an already-built Telegram client."""
    session_store = SessionStore(player_url=settings.player_url)
    registry = DestinationRegistry.parse(settings.channel_ids)
    capability = ControlCapability()
    publish_engine = PublishEngine(
        telegram_client=telegram_client,
        registry=registry,
        capability=capability,
        player_url=settings.player_url,
        delay_seconds=settings.publish_delay_seconds,
        caption=settings.post_caption or None,
        button_text=settings.play_button_text,
    )
    autopost_service = AutopostService(
        selector=ContentSelector(settings.content_root),
        publish_engine=publish_engine,
    )
    post_handler = PostCommandHandler(
        telegram_client=telegram_client,
        session_store=session_store,
        registry=registry,
        publish_engine=publish_engine,
        admin_user_id=settings.admin_user_id,
        clear_session_after_publish=settings.clear_session_after_publish,
    )
    dispatcher = UpdateDispatcher(
        telegram_client=telegram_client,
        session_store=session_store,
        publish_engine=publish_engine,
        start_handler=StartCommandHandler(telegram_client, settings.admin_user_id),
        post_handler=post_handler,
        autopost_handler=AutopostCommandHandler(
            telegram_client=telegram_client,
            registry=registry,
            autopost_service=autopost_service,
            admin_user_id=settings.admin_user_id,
        ),
        admin_user_id=settings.admin_user_id,
    )
    scheduler = Scheduler(
        autopost_service=autopost_service,
        session_store=session_store,
        schedules=parse_schedules(settings.post_schedules),
        session_ttl=timedelta(seconds=settings.session_ttl_seconds),
        sweep_interval=timedelta(seconds=settings.session_sweep_interval_seconds),
        timezone=settings.schedule_timezone,
    )
    poller = TelegramPoller(
        telegram_client=telegram_client, handler=dispatcher.dispatch_raw
    )
    return AppContainer(
        settings=settings,
        telegram_client=telegram_client,
        session_store=session_store,
        registry=registry,
        capability=capability,
        publish_engine=publish_engine,
        autopost_service=autopost_service,
        post_handler=post_handler,
        dispatcher=dispatcher,
        scheduler=scheduler,
        poller=poller,
        close_resources=close_resources,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    telegram_client = HttpxTelegramClient.create(resolved_settings.telegram_bot_token)

    async def close_resources() -> None:
        await telegram_client.close()

    return build_services(resolved_settings, telegram_client, close_resources)
