"""Entry point of the video intake worker process."""

import asyncio
import signal

from src.application.services.intake import VideoIntakeWorker
from src.commons.settings import get_settings
from src.commons.telemetry import configure_logging, get_logger
from src.infrastructure.factory import get_factory, reset_factory

logger = get_logger(__name__)


async def run_worker() -> None:
    """Consume the intake queue until SIGINT or SIGTERM."""
    settings = get_settings()
    factory = get_factory(settings)

    worker = VideoIntakeWorker(
        queue=factory.get_queue(),
        lock_store=factory.get_lock_store(),
        dispatcher=factory.get_task_dispatcher(),
        settings=settings,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, worker.stop)

    try:
        await worker.run_forever()
    finally:
        await factory.close_all()
        reset_factory()


def main() -> None:
    settings = get_settings()
    configure_logging(
        level=settings.telemetry.log_level or settings.app.log_level,
        format_type=settings.telemetry.log_format,
    )
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
