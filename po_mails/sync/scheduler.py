"""APScheduler setup for periodic background syncs."""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from po_mails.mail.graph_client import MailFetchError

if TYPE_CHECKING:
    from po_mails.sync.service import SyncService

logger = logging.getLogger(__name__)

_DEFAULT_INTERVAL_MINUTES = 15


def parse_interval(value: str | None) -> int:
    """Parse SYNC_INTERVAL_MINUTES. Empty → 0 (disabled); invalid → 15."""
    if value is None or not value.strip():
        return 0
    try:
        minutes = int(value.strip())
    except ValueError:
        logger.warning(
            "Invalid SYNC_INTERVAL_MINUTES %r; defaulting to %d",
            value,
            _DEFAULT_INTERVAL_MINUTES,
        )
        return _DEFAULT_INTERVAL_MINUTES
    return max(minutes, 0)


def interval_from_env() -> int:
    return parse_interval(os.environ.get("SYNC_INTERVAL_MINUTES"))


async def _run_sync(service: SyncService) -> None:
    try:
        records = await service.sync()
    except MailFetchError as exc:
        logger.error("Scheduled sync failed: %s (%s)", exc, exc.detail)
        return
    logger.info("Scheduled sync stored %d record(s)", len(records))


def create_sync_scheduler(service: SyncService, interval_minutes: int) -> AsyncIOScheduler:
    """Return an AsyncIOScheduler that runs ``service.sync()`` every N minutes.

    The caller is responsible for calling scheduler.start() and scheduler.shutdown().
    """
    minutes = interval_minutes if interval_minutes > 0 else _DEFAULT_INTERVAL_MINUTES
    scheduler = AsyncIOScheduler()
    scheduler.add_job(_run_sync, "interval", minutes=minutes, args=[service])
    logger.info("PO mail sync scheduled every %d minute(s)", minutes)
    return scheduler
