"""Entry point of the transcode task launched by the intake worker.

The dispatcher passes the video through the environment:

- ``VIDEO_KEY``: source object key in the permanent bucket
- ``VIDEO_ID``: id the processing lock is held under
- ``LOCK_OWNER``: identity the lock was acquired as
"""

import asyncio
import os
import sys

from src.application.services.transcode_task import TranscodeTaskRunner
from src.commons.settings import get_settings
from src.commons.telemetry import configure_logging, get_logger
from src.infrastructure.factory import get_factory, reset_factory

logger = get_logger(__name__)

REQUIRED_ENV = ("VIDEO_KEY", "VIDEO_ID", "LOCK_OWNER")


async def run_task(object_key: str, video_id: str, lock_owner: str) -> None:
    """Transcode one video with infrastructure built from settings."""
    settings = get_settings()
    factory = get_factory(settings)
    runner = TranscodeTaskRunner(
        blob_storage=factory.get_blob_storage(),
        lock_store=factory.get_lock_store(),
        transcoder=factory.get_transcoder(),
        duration_probe=factory.get_duration_probe(),
        settings=settings,
        content_callback=factory.get_content_callback(),
    )
    try:
        await runner.run(object_key, video_id, lock_owner)
    finally:
        await factory.close_all()
        reset_factory()


def main() -> int:
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level or settings.app.log_level,
        format_type=settings.telemetry.log_format,
    )

    missing = [name for name in REQUIRED_ENV if not os.environ.get(name)]
    if missing:
        logger.error("Missing task environment", extra={"missing": missing})
        return 2

    try:
        asyncio.run(
            run_task(
                os.environ["VIDEO_KEY"],
                os.environ["VIDEO_ID"],
                os.environ["LOCK_OWNER"],
            )
        )
    except Exception:
        logger.exception("Transcode task aborted")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
