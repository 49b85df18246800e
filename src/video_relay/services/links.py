"""Rewrite hosted video links into player URLs."""

from urllib.parse import urlsplit

from video_relay.domain.errors import (
    InvalidPathShapeError,
    MalformedUrlError,
    UnrecognizedSourceError,
)

HOSTING_DOMAIN_MARKER = "mediadelivery.net"
PATH_KEYWORD = "iframe"
ROUTE_KEYWORDS = frozenset({"play", "embed"})


def normalize_locator(locator: str, player_url: str) -> str:
    """Return the player URL for a mediadelivery.net play/embed link.

    Only the library and video ids survive the rewrite, so the original
    host never appears in the published post.
    """
    candidate = locator.strip()
    try:
        parts = urlsplit(candidate)
    except ValueError as exc:
        raise MalformedUrlError(candidate) from exc
    if parts.scheme not in {"http", "https"} or not parts.hostname:
        raise MalformedUrlError(candidate)

    lowered = candidate.lower()
    if HOSTING_DOMAIN_MARKER not in lowered and PATH_KEYWORD not in lowered:
        raise UnrecognizedSourceError(candidate)

    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) < 3 or segments[0] not in ROUTE_KEYWORDS:  # noqa: PLR2004
        raise InvalidPathShapeError(candidate)

    library_id, video_id = segments[1], segments[2]
    return f"{player_url.rstrip('/')}/?lib={library_id}&id={video_id}"
