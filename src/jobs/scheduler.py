"""
Job Scheduler Module.

Runs the vessel scrape on a fixed interval.
"""

from datetime import datetime, timezone

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from config.settings import get_settings
from src.jobs.runner import ScrapeRunner

scheduler_log = logger.bind(module="Scheduler")

# Scheduler instance
_scheduler = AsyncIOScheduler(timezone="UTC")

# Runner instance (lazy initialized)
_runner: ScrapeRunner | None = None


def get_runner() -> ScrapeRunner:
    """Get or create runner instance."""
    global _runner
    if _runner is None:
        _runner = ScrapeRunner()
    return _runner


async def run_scrape_job() -> None:
    """Scheduled job: one scrape run. Failures never reach the scheduler."""
    await get_runner().run()


def setup_jobs() -> None:
    """
    Setup scheduler jobs.

    One run at startup, then every N minutes. Ticks that fire while a run
    is still in flight are dropped, not queued.
    """
    interval = get_settings().scraper.interval_minutes

    _scheduler.add_job(
        run_scrape_job,
        IntervalTrigger(minutes=interval, timezone="UTC"),
        id="scrape_job",
        name=f"Vessel scrape (every {interval} min)",
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
        replace_existing=True,
    )
    scheduler_log.info(f"Vessel data scraper scheduled to run every {interval} minutes")


def start() -> None:
    """Start the scheduler."""
    setup_jobs()
    _scheduler.start()
    scheduler_log.info("Scheduler started")


async def shutdown() -> None:
    """
    Stop scheduling and let an in-flight run finish.

    Jobs are paused first; shutting the scheduler down while a run is in
    flight would cancel it.
    """
    if _scheduler.running:
        _scheduler.pause()
    if _runner is not None and _runner.is_running:
        scheduler_log.info("Waiting for the current run to finish...")
        await _runner.wait_idle()
    if _scheduler.running:
        _scheduler.shutdown(wait=False)
    scheduler_log.info("Scheduler stopped")
