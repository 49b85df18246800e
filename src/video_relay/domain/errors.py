"""Exception taxonomy shared by the relay services and adapters."""

from enum import Enum


class FailureReason(Enum):
    """Classification of a failed outbound publish."""

    UNREACHABLE = "unreachable"
    INSUFFICIENT_PRIVILEGE = "insufficient_privilege"
    CAPABILITY_REJECTED = "capability_rejected"
    INVALID_LOCATOR = "invalid_locator"
    UNKNOWN = "unknown"


class RelayError(Exception):
    """Base class for relay errors."""


class LocatorError(RelayError):
    """Raised when a submitted video link cannot be normalized."""

    user_message = (
        "Invalid video URL format. Please send a valid mediadelivery.net link."
    )


class MalformedUrlError(LocatorError):
    """The locator is not an absolute http(s) URL."""

    user_message = "That doesn't look like a URL. Please send the full video link."


class UnrecognizedSourceError(LocatorError):
    """The locator does not point at a recognized hosting source."""

    user_message = 'Please send a valid video URL (should contain "mediadelivery.net").'


class InvalidPathShapeError(LocatorError):
    """The locator path is not /play/<lib>/<id> or /embed/<lib>/<id>."""

    user_message = (
        "Invalid video URL format. Expected a link like "
        "https://iframe.mediadelivery.net/play/<library>/<video>."
    )


class NoActiveSessionError(RelayError):
    """Raised when a link arrives without an image waiting for it."""


class SessionNotReadyError(RelayError):
    """Raised when publishing a session that has no playback URL yet."""


class TelegramApiError(RelayError):
    """Raised by the Telegram adapter when an API call fails."""

    reason = FailureReason.UNKNOWN

    def __init__(self, description: str, error_code: int | None = None) -> None:
        super().__init__(description)
        self.description = description
        self.error_code = error_code


class DestinationUnreachableError(TelegramApiError):
    """The target chat does not exist or cannot be reached."""

    reason = FailureReason.UNREACHABLE


class InsufficientPrivilegeError(TelegramApiError):
    """The bot lacks the rights to post in the target chat."""

    reason = FailureReason.INSUFFICIENT_PRIVILEGE


class CapabilityRejectedError(TelegramApiError):
    """The platform refused a web app button in this chat."""

    reason = FailureReason.CAPABILITY_REJECTED
