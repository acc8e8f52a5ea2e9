"""
Unit tests for src/jobs/runner.py
"""

import asyncio

from src.crawler.coordinator import ExtractionCoordinator
from src.crawler.types import Found, NotFound, ScrapeError
from src.jobs.runner import ScrapeRunner
from src.modules.vessels import VesselRepository
from tests.fixtures.pages import FakePage, FakeSession
from tests.fixtures.vessels import FakeConnection, FakePool

pytest_plugins = ["tests.fixtures.pages", "tests.fixtures.vessels"]


class StubCoordinator:
    """Coordinator returning queued results (exceptions are raised)."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    async def scrape(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class BlockingCoordinator:
    """Coordinator whose scrape waits until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def scrape(self):
        self.calls += 1
        await self.release.wait()
        return NotFound("released")


class SlowCoordinator:
    async def scrape(self):
        await asyncio.sleep(10)
        return NotFound()


def _runner(coordinator, conn=None, run_timeout=5.0):
    conn = conn or FakeConnection()
    repository = VesselRepository(FakePool(conn))
    return ScrapeRunner(coordinator=coordinator, repository=repository, run_timeout=run_timeout)


class TestScrapeRunner:
    """Tests for ScrapeRunner.run."""

    def test_overlapping_run_is_skipped(self):
        coordinator = BlockingCoordinator()
        runner = _runner(coordinator)

        async def scenario():
            first = asyncio.create_task(runner.run())
            await asyncio.sleep(0)
            assert runner.is_running is True

            second = await runner.run()

            coordinator.release.set()
            return await first, second

        first, second = asyncio.run(scenario())

        assert second.status == "skipped"
        assert first.status == "empty"
        assert coordinator.calls == 1
        assert runner.is_running is False

    def test_failure_is_reported_and_next_run_proceeds(self, fake_conn):
        payload = {"data": [{"SHIP_ID": "1", "SHIPNAME": "A"}]}
        coordinator = StubCoordinator(ScrapeError("Login form not found"), Found(payload, "test"))
        runner = _runner(coordinator, fake_conn)

        failed = asyncio.run(runner.run())
        succeeded = asyncio.run(runner.run())

        assert failed.status == "failed"
        assert "Login form not found" in failed.error
        assert succeeded.status == "success"
        assert succeeded.saved == 1
        assert coordinator.calls == 2

    def test_timeout_fails_run(self):
        runner = _runner(SlowCoordinator(), run_timeout=0.01)

        outcome = asyncio.run(runner.run())

        assert outcome.status == "failed"
        assert outcome.error.startswith("TimeoutError")
        assert runner.is_running is False

    def test_not_found_is_empty(self):
        runner = _runner(StubCoordinator(NotFound("nothing")))

        outcome = asyncio.run(runner.run())

        assert outcome.status == "empty"
        assert outcome.seen == 0

    def test_unrecognized_payload_is_empty(self, fake_conn):
        runner = _runner(StubCoordinator(Found({"status": "ok"}, "last", verified=False)), fake_conn)

        outcome = asyncio.run(runner.run())

        assert outcome.status == "empty"
        assert fake_conn.executed == []

    def test_records_normalized_before_save(self, fake_conn):
        payload = {"data": [{"SHIP_ID": "9", "SPEED": "12,5", "LAT": "1,5"}]}
        runner = _runner(StubCoordinator(Found(payload, "test")), fake_conn)

        asyncio.run(runner.run())

        assert runner.latest == [{"SHIP_ID": "9", "SPEED": 12.5, "LAT": 1.5}]
        assert fake_conn.rows["9"]["speed"] == 12.5

    def test_script_scope_end_to_end(self, report_data_global, fake_conn):
        page = FakePage(globals={"reportData": report_data_global})
        coordinator = ExtractionCoordinator(session_factory=lambda: FakeSession(page=page))
        runner = _runner(coordinator, fake_conn)

        outcome = asyncio.run(runner.run())

        assert outcome.status == "success"
        assert outcome.source == "window.reportData.data"
        assert (outcome.seen, outcome.saved, outcome.failed) == (1, 1, 0)
        assert fake_conn.rows["123"] == {"imo": "123", "mmsi": "456", "ship_id": "123"}
