"""In-memory session store for the image-then-link capture flow."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from video_relay.domain.errors import NoActiveSessionError
from video_relay.domain.sessions import Session, SessionPhase
from video_relay.services.links import normalize_locator

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class SessionStore:
    """Owns every in-progress session, keyed by chat id.

    Records are immutable and replaced whole, so a reader never observes a
    half-updated session.
    """

    player_url: str
    clock: Callable[[], datetime] = _utcnow
    _sessions: dict[int, Session] = field(default_factory=dict, init=False)

    def on_image_received(
        self, key: int, image_file_id: str, prompt_message_id: int | None = None
    ) -> Session:
        """Start a fresh session for the chat, discarding any previous one."""
        session = Session(
            chat_id=key,
            image_file_id=image_file_id,
            created_at=self.clock(),
            prompt_message_id=prompt_message_id,
        )
        self._sessions[key] = session
        return session

    def on_locator_received(self, key: int, raw_locator: str) -> Session:
        """Attach a video link to the chat's session and mark it ready.

        Raises NoActiveSessionError when no image is waiting for a link and
        LocatorError when the link cannot be normalized; the stored session
        is left untouched in both cases.
        """
        session = self._sessions.get(key)
        if session is None or session.phase is not SessionPhase.AWAITING_LOCATOR:
            raise NoActiveSessionError(key)
        playback_url = normalize_locator(raw_locator, self.player_url)
        ready = replace(
            session,
            phase=SessionPhase.READY,
            raw_locator=raw_locator,
            playback_url=playback_url,
        )
        self._sessions[key] = ready
        return ready

    def reopen(self, key: int) -> Session | None:
        """Return a ready session to awaiting a link, keeping its image."""
        session = self._sessions.get(key)
        if session is None or session.phase is not SessionPhase.READY:
            return session
        reopened = replace(
            session,
            phase=SessionPhase.AWAITING_LOCATOR,
            raw_locator=None,
            playback_url=None,
        )
        self._sessions[key] = reopened
        return reopened

    def get(self, key: int) -> Session | None:
        """Return the chat's session, if any."""
        return self._sessions.get(key)

    def clear(self, key: int) -> bool:
        """Drop the chat's session. Return true if one existed."""
        return self._sessions.pop(key, None) is not None

    def sweep_expired(self, max_age: timedelta) -> int:
        """Remove sessions older than max_age regardless of phase."""
        cutoff = self.clock() - max_age
        expired = [
            key
            for key, session in self._sessions.items()
            if session.created_at < cutoff
        ]
        for key in expired:
            self._sessions.pop(key, None)
        if expired:
            logger.info("Swept expired sessions", extra={"count": len(expired)})
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)
