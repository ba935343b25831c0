"""Background refresh scheduler.

APScheduler-based interval job that keeps the active metrics snapshot
current.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from glucometrics.logging_config import get_logger, setup_logging
from glucometrics.services.monitor import ActiveMetricsMonitor

logger = get_logger(__name__)

REFRESH_JOB_ID = "active_metrics_refresh"

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def refresh_active_metrics(monitor: ActiveMetricsMonitor) -> None:
    """Run one scheduled refresh.

    The monitor logs and absorbs source failures itself; this only reports
    whether a new snapshot was published.
    """
    snapshot = await monitor.refresh()
    if snapshot is None:
        logger.info("Scheduled refresh published no snapshot")
    else:
        logger.debug(
            "Scheduled refresh completed",
            iob=snapshot.iob,
            cob=snapshot.cob,
        )


def start_scheduler(monitor: ActiveMetricsMonitor) -> AsyncIOScheduler:
    """Start the background job scheduler.

    Must be called from within a running event loop.

    Args:
        monitor: Monitor whose snapshot is refreshed every
            ``poll_interval_seconds`` of its own settings

    Returns:
        The started scheduler instance
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return scheduler

    scheduler = AsyncIOScheduler()
    app_settings = monitor.settings

    if app_settings.poll_enabled:
        scheduler.add_job(
            refresh_active_metrics,
            trigger=IntervalTrigger(seconds=app_settings.poll_interval_seconds),
            args=[monitor],
            id=REFRESH_JOB_ID,
            name="Active Metrics Refresh",
            replace_existing=True,
            max_instances=1,
        )
        logger.info(
            "Scheduled active metrics refresh job",
            interval_seconds=app_settings.poll_interval_seconds,
        )

    scheduler.start()
    logger.info("Background scheduler started")

    return scheduler


def stop_scheduler() -> None:
    """Stop the background job scheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")


def get_scheduler() -> AsyncIOScheduler | None:
    """Get the current scheduler instance.

    Returns:
        The scheduler instance or None if not started
    """
    return scheduler


@asynccontextmanager
async def scheduler_lifespan(
    monitor: ActiveMetricsMonitor,
) -> AsyncGenerator[None, None]:
    """Async context manager for scheduler lifecycle.

    Configures logging from the monitor's settings, then runs an initial
    refresh so a snapshot exists before the first tick.
    """
    app_settings = monitor.settings
    setup_logging(
        log_format=app_settings.log_format,
        log_level=app_settings.log_level,
        service_name=app_settings.service_name,
    )
    await monitor.refresh()
    start_scheduler(monitor)
    try:
        yield
    finally:
        stop_scheduler()
