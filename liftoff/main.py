"""Liftoff entry point — runs the application startup graph."""

import asyncio
import logging
import sys

from liftoff.bootstrap.app import Bootstrapper
from liftoff.config import settings
from liftoff.startup.errors import FatalStartupError

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=getattr(logging, settings.log_level),
)
logger = logging.getLogger(__name__)


async def run() -> int:
    """Bring up every subsystem and return a process exit code."""
    bootstrapper = Bootstrapper()
    tracker = bootstrapper.tracker
    unsubscribe = tracker.status_feed.subscribe(lambda status: logger.info("[status] %s", status))
    try:
        result = await bootstrapper.initialize()
    except FatalStartupError as exc:
        logger.error("Startup aborted by %s: %s", exc.task_name, exc)
        return 1
    finally:
        unsubscribe()
        tracker.dispose()

    logger.info("%s (%.0f%%)", tracker.get_status(), tracker.get_progress() * 100)
    if bootstrapper.reporter.has_errors():
        logger.warning("%s", bootstrapper.reporter.generate_summary())
    return 0 if result.ok else 1


def main() -> None:
    """Run startup and exit with its status."""
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()
