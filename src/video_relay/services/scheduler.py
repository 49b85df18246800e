"""Background timers: per-destination autopost schedules and session expiry."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from croniter import croniter

from video_relay.services.autopost import AutopostService
from video_relay.services.sessions import SessionStore

logger = logging.getLogger(__name__)


def fire_times(expression: str, start: datetime) -> Iterator[datetime]:
    """Yield successive cron fire times strictly after start, each once."""
    schedule = croniter(expression, start)
    while True:
        yield schedule.get_next(datetime)


@dataclass
class Scheduler:
    """Owns the long-running asyncio tasks started with the app."""

    autopost_service: AutopostService
    session_store: SessionStore
    schedules: dict[str, str]
    session_ttl: timedelta = timedelta(hours=1)
    sweep_interval: timedelta = timedelta(hours=1)
    timezone: str = "UTC"
    clock: Callable[[ZoneInfo], datetime] = datetime.now
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    _tasks: list[asyncio.Task] = field(default_factory=list, init=False)

    def start(self) -> None:
        """Start the sweep task and one task per scheduled destination."""
        if self._tasks:
            return
        self._tasks.append(
            asyncio.create_task(self._sweep_loop(), name="session-sweep")
        )
        for destination_id, expression in self.schedules.items():
            self._tasks.append(
                asyncio.create_task(
                    self._autopost_loop(destination_id, expression),
                    name=f"autopost:{destination_id}",
                )
            )
            logger.info(
                "Scheduled autopost",
                extra={"destination_id": destination_id, "cron": expression},
            )

    async def stop(self) -> None:
        """Cancel all running tasks."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    async def _sweep_loop(self) -> None:
        while True:
            await self.sleep(self.sweep_interval.total_seconds())
            self.session_store.sweep_expired(self.session_ttl)

    async def _autopost_loop(self, destination_id: str, expression: str) -> None:
        zone = ZoneInfo(self.timezone)
        for fire_at in fire_times(expression, self.clock(zone)):
            now = self.clock(zone)
            if fire_at < now:
                logger.warning(
                    "Skipping missed autopost",
                    extra={"destination_id": destination_id, "fire_at": fire_at},
                )
                continue
            await self.sleep((fire_at - now).total_seconds())
            try:
                await self.autopost_service.run_once(destination_id)
            except Exception:
                logger.exception(
                    "Scheduled autopost failed",
                    extra={"destination_id": destination_id},
                )
