"""Run the relay with uvicorn."""

import uvicorn

from video_relay.config import Settings


def main() -> None:
    """Start the HTTP server that receives Telegram updates."""
    settings = Settings()
    uvicorn.run(
        "video_relay.api.asgi:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
