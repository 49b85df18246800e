"""Long-poll fallback used when no webhook URL is configured."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from video_relay.adapters.telegram_client import TelegramClient

logger = logging.getLogger(__name__)

UpdateHandler = Callable[[dict[str, object]], Awaitable[None]]


@dataclass
class TelegramPoller:
    """Fetch updates with getUpdates and hand each one to a handler."""

    telegram_client: TelegramClient
    handler: UpdateHandler
    timeout: int = 30
    retry_delay_seconds: float = 5.0
    offset: int | None = None
    _task: asyncio.Task | None = field(default=None, init=False)

    def start(self) -> None:
        """Start polling in a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name="telegram-poller")

    async def stop(self) -> None:
        """Cancel the polling task."""
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

    async def poll_once(self) -> int:
        """Fetch and handle one batch; return the number of updates."""
        updates = await self.telegram_client.get_updates(
            offset=self.offset, timeout=self.timeout
        )
        for update in updates:
            update_id = update.get("update_id")
            if isinstance(update_id, int):
                self.offset = update_id + 1
            try:
                await self.handler(update)
            except Exception:
                logger.exception(
                    "Failed to handle polled update", extra={"update_id": update_id}
                )
        return len(updates)

    async def _run(self) -> None:
        logger.info("Long polling started")
        while True:
            try:
                await self.poll_once()
            except Exception:
                logger.exception("getUpdates failed")
                await asyncio.sleep(self.retry_delay_seconds)
