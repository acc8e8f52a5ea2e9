"""
Scrape Runner Module.

Runs one end-to-end scrape (extract, normalize, persist) at a time and
reports the outcome.
"""

import asyncio
import time
from typing import Literal

from loguru import logger
from pydantic import BaseModel

from config.settings import get_settings
from src.connections.postgres import PostgresConnection, get_postgres
from src.crawler.coordinator import ExtractionCoordinator
from src.crawler.extractors.shape import extract_vessel_list
from src.crawler.types import Found, VesselRecord
from src.modules.vessels import VesselRepository
from src.utils import normalize_records

runner_log = logger.bind(module="Runner")


class RunOutcome(BaseModel):
    """Result of one scheduled run."""

    status: Literal["success", "empty", "failed", "skipped"] = "success"
    seen: int = 0
    saved: int = 0
    failed: int = 0
    duration: float = 0.0
    source: str | None = None
    error: str | None = None


class ScrapeRunner:
    """
    Runner for scheduled scrapes.

    Workflow:
    1. Skip if a run is already in progress
    2. Scrape the reports page (coordinator, bounded by the run timeout)
    3. Normalize the extracted records
    4. Save them in one transaction

    Keeps the most recently extracted dataset in ``latest``.
    """

    def __init__(
        self,
        coordinator: ExtractionCoordinator | None = None,
        repository: VesselRepository | None = None,
        postgres: PostgresConnection | None = None,
        run_timeout: float | None = None,
    ):
        """
        Initialize ScrapeRunner.

        Args:
            coordinator: Extraction coordinator (default: MarineTraffic session)
            repository: Vessel repository (created from postgres if not provided)
            postgres: PostgreSQL connection (singleton if not provided)
            run_timeout: Seconds allowed for the scrape (default from settings)
        """
        self._coordinator = coordinator or ExtractionCoordinator()
        self._repository = repository
        self._postgres = postgres
        self._run_timeout = run_timeout or get_settings().scraper.run_timeout
        self._lock = asyncio.Lock()
        self.latest: list[VesselRecord] | None = None

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def _ensure_repository(self) -> VesselRepository:
        if self._repository is None:
            if self._postgres is None:
                self._postgres = await get_postgres()
            table = get_settings().postgres.table
            self._repository = VesselRepository(self._postgres.pool, table=table)
        return self._repository

    async def run(self) -> RunOutcome:
        """
        Run one scrape unless another is in flight.

        Never raises: failures are logged and reported in the outcome.

        Returns:
            RunOutcome of this run (status "skipped" if one was running)
        """
        if self._lock.locked():
            runner_log.warning("Scraper is already running, skipping this execution")
            return RunOutcome(status="skipped")

        async with self._lock:
            runner_log.info("Starting vessel data scraper")
            start = time.monotonic()
            outcome = RunOutcome()
            try:
                await self._run_once(outcome)
            except Exception as e:
                outcome.status = "failed"
                outcome.error = f"{type(e).__name__}: {e}"
            outcome.duration = time.monotonic() - start
            self._report(outcome)
            return outcome

    async def _run_once(self, outcome: RunOutcome) -> None:
        try:
            result = await asyncio.wait_for(
                self._coordinator.scrape(), timeout=self._run_timeout
            )
        except asyncio.TimeoutError:
            raise TimeoutError(f"Run exceeded {self._run_timeout:.0f}s") from None

        if not isinstance(result, Found):
            outcome.status = "empty"
            return

        outcome.source = result.source
        records = normalize_records(extract_vessel_list(result.payload))
        outcome.seen = len(records)
        self.latest = records
        runner_log.info(f"Retrieved data for {len(records)} vessels from {result.source}")

        if not records:
            outcome.status = "empty"
            return

        repository = await self._ensure_repository()
        outcome.saved, outcome.failed = await repository.save_batch(records)

    def _report(self, outcome: RunOutcome) -> None:
        if outcome.status == "failed":
            runner_log.error(
                f"Scraper run failed after {outcome.duration:.1f} seconds: {outcome.error}"
            )
        elif outcome.status == "empty":
            runner_log.info(
                f"Scraper completed in {outcome.duration:.1f} seconds "
                "but no data was retrieved"
            )
        else:
            runner_log.info(
                f"Scraper completed successfully in {outcome.duration:.1f} seconds: "
                f"{outcome.seen} seen, {outcome.saved} saved, {outcome.failed} failed"
            )

    async def wait_idle(self) -> None:
        """Wait for an in-flight run to finish."""
        async with self._lock:
            pass
