"""Domain models for publishing."""

from dataclasses import dataclass, field
from pathlib import Path

from video_relay.domain.errors import FailureReason


@dataclass(frozen=True)
class Destination:
    """Broadcast target configured at startup."""

    id: str
    name: str


@dataclass(frozen=True)
class ContentItem:
    """Locator + image pair picked from a destination content directory."""

    destination_id: str
    locator: str
    text_path: Path
    image_path: Path


@dataclass(frozen=True)
class PublishAttempt:
    """Outcome of publishing to a single destination."""

    destination_id: str
    destination_name: str
    succeeded: bool
    reason: FailureReason | None = None


@dataclass
class PublishReport:
    """Aggregated outcome of a multi-destination publish."""

    total: int
    attempts: list[PublishAttempt] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for attempt in self.attempts if attempt.succeeded)

    @property
    def failed(self) -> list[str]:
        return [
            attempt.destination_name
            for attempt in self.attempts
            if not attempt.succeeded
        ]

    @property
    def done(self) -> bool:
        return len(self.attempts) >= self.total
