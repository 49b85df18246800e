"""Static registry of broadcast destinations."""

from collections.abc import Iterator
from dataclasses import dataclass

from video_relay.domain.publishing import Destination


@dataclass(frozen=True)
class DestinationRegistry:
    """Read-only mapping of destination ids to display names."""

    destinations: tuple[Destination, ...] = ()

    @classmethod
    def parse(cls, raw: str | None) -> "DestinationRegistry":
        """Parse destinations from a comma-separated id:name list.

        A bare id is accepted and named after itself. Entries with an empty
        id or an empty name after the colon are skipped.
        """
        entries: dict[str, Destination] = {}
        for chunk in (raw or "").split(","):
            value = chunk.strip()
            if not value:
                continue
            destination_id, sep, name = value.partition(":")
            destination_id = destination_id.strip()
            name = name.strip() if sep else destination_id
            if not destination_id or not name:
                continue
            entries.setdefault(destination_id, Destination(destination_id, name))
        return cls(tuple(entries.values()))

    def lookup(self, destination_id: str) -> str:
        """Return the display name, falling back to the raw id."""
        for destination in self.destinations:
            if destination.id == destination_id:
                return destination.name
        return destination_id

    def __contains__(self, destination_id: object) -> bool:
        return any(d.id == destination_id for d in self.destinations)

    def __iter__(self) -> Iterator[Destination]:
        return iter(self.destinations)

    def __len__(self) -> int:
        return len(self.destinations)
