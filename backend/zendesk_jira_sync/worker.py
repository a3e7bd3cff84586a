"""Headless entrypoint: ``python -m zendesk_jira_sync.worker``."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

from zendesk_jira_sync.core.config import settings
from zendesk_jira_sync.core.exceptions import InvalidConfigurationError
from zendesk_jira_sync.core.logging import setup_logging
from zendesk_jira_sync.sync.scheduler import build_scheduler

logger = logging.getLogger(__name__)


async def run() -> None:
    scheduler = build_scheduler(settings)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, stop_event.set)
        except NotImplementedError:
            # not available on Windows event loops
            pass

    logger.info("Starting the JIRA to Zendesk Sync Server (env=%s, zendesk=%s)", settings.ENV, settings.zendesk_base_url)
    await scheduler.start()
    try:
        await stop_event.wait()
    finally:
        await scheduler.stop()


def main() -> int:
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR or None)
    try:
        settings.validate_required()
    except InvalidConfigurationError as exc:
        logger.error("Startup error: %s", exc.message)
        return 1

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
