"""ASGI entrypoint for the video relay."""

from video_relay.api.app import create_app
from video_relay.containers import build_container

app = create_app(build_container())
