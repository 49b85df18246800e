"""Domain models for submission sessions."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SessionPhase(Enum):
    """Capture phase of a session. A missing session means awaiting image."""

    AWAITING_LOCATOR = "awaiting_locator"
    READY = "ready"


@dataclass(frozen=True)
class Session:
    """In-progress image + link submission for one chat."""

    chat_id: int
    image_file_id: str
    created_at: datetime
    phase: SessionPhase = SessionPhase.AWAITING_LOCATOR
    raw_locator: str | None = None
    playback_url: str | None = None
    prompt_message_id: int | None = None

    @property
    def is_ready(self) -> bool:
        """Return true when the session can be published."""
        return self.phase is SessionPhase.READY and self.playback_url is not None
