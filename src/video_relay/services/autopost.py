"""File-driven autoposting: pick content, publish it, archive it."""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from video_relay.domain.publishing import ContentItem, PublishAttempt
from video_relay.services.publishing import PublishEngine

logger = logging.getLogger(__name__)

TEXT_SUFFIX = ".txt"
IMAGE_SUFFIXES = frozenset({".jpg", ".jpeg", ".png", ".webp"})
ARCHIVE_DIR = "archive"


@dataclass
class ContentSelector:
    """Pair a random locator file with an image from a destination folder."""

    content_root: Path
    rng: random.Random = field(default_factory=random.Random)

    def destination_dir(self, destination_id: str) -> Path:
        return self.content_root / destination_id

    def select(self, destination_id: str) -> ContentItem | None:
        """Pick a text + image pair, or None when the folder has no content.

        An image sharing the text file's stem wins; otherwise any image is
        chosen at random.
        """
        folder = self.destination_dir(destination_id)
        if not folder.is_dir():
            logger.info(
                "No content directory", extra={"destination_id": destination_id}
            )
            return None
        files = sorted(path for path in folder.iterdir() if path.is_file())
        texts = [path for path in files if path.suffix.lower() == TEXT_SUFFIX]
        images = [path for path in files if path.suffix.lower() in IMAGE_SUFFIXES]
        if not texts or not images:
            logger.info(
                "No content to post",
                extra={
                    "destination_id": destination_id,
                    "texts": len(texts),
                    "images": len(images),
                },
            )
            return None

        text_path = self.rng.choice(texts)
        matching = [path for path in images if path.stem == text_path.stem]
        image_path = matching[0] if matching else self.rng.choice(images)
        locator = text_path.read_text(encoding="utf-8", errors="replace").strip()
        return ContentItem(
            destination_id=destination_id,
            locator=locator,
            text_path=text_path,
            image_path=image_path,
        )


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class AutopostService:
    """Run one select, publish, archive cycle for a destination."""

    selector: ContentSelector
    publish_engine: PublishEngine
    clock: Callable[[], datetime] = _utcnow

    async def run_once(self, destination_id: str) -> PublishAttempt | None:
        """Publish one content item; None when nothing was available.

        Consumed files are archived even when publishing fails, so a broken
        locator is never retried.
        """
        item = self.selector.select(destination_id)
        if item is None:
            return None
        try:
            attempt = await self.publish_engine.publish_item(item)
        finally:
            self.archive(item)
        logger.info(
            "Autopost finished",
            extra={
                "destination_id": destination_id,
                "succeeded": attempt.succeeded,
                "file": item.text_path.name,
            },
        )
        return attempt

    def archive(self, item: ContentItem) -> list[Path]:
        """Move the item's files into archive/ with a timestamp prefix."""
        archive_dir = item.text_path.parent / ARCHIVE_DIR
        archive_dir.mkdir(parents=True, exist_ok=True)
        stamp = self.clock().strftime("%Y%m%d_%H%M%S")
        moved = []
        for path in (item.text_path, item.image_path):
            if not path.exists():
                continue
            moved.append(path.rename(_free_target(archive_dir, stamp, path)))
        return moved


def _free_target(archive_dir: Path, stamp: str, path: Path) -> Path:
    """Return an archive path that does not overwrite an earlier archive."""
    target = archive_dir / f"{stamp}_{path.name}"
    counter = 1
    while target.exists():
        target = archive_dir / f"{stamp}_{path.stem}_{counter}{path.suffix}"
        counter += 1
    return target
