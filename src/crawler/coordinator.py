"""
Extraction coordinator.

Drives one browser session through login and navigation, then runs the
extraction strategies in a fixed fallback order until one finds vessel
data.
"""

from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from src.crawler.extractors.interceptor import ResponseInterceptor
from src.crawler.extractors.markup_extractor import extract_from_markup
from src.crawler.extractors.script_extractor import extract_from_globals
from src.crawler.extractors.shape import is_markup_payload, is_vessel_payload
from src.crawler.extractors.table_extractor import extract_from_tables
from src.crawler.session import MarineTrafficSession
from src.crawler.types import (
    BrowserPage,
    ExtractionAttempt,
    ExtractionResult,
    Found,
    NotFound,
    ScrapeState,
)

coordinator_log = logger.bind(module="Coordinator")

DEFAULT_ATTEMPTS: tuple[ExtractionAttempt, ...] = (
    ExtractionAttempt("dom-table", extract_from_tables, is_vessel_payload),
    ExtractionAttempt("script-scope", extract_from_globals, is_vessel_payload),
    ExtractionAttempt("html-json", extract_from_markup, is_markup_payload),
)

_ATTEMPT_STATES = {
    "dom-table": ScrapeState.EXTRACTING_VIA_DOM,
    "script-scope": ScrapeState.EXTRACTING_VIA_SCRIPT_SCOPE,
    "html-json": ScrapeState.EXTRACTING_VIA_MARKUP,
}


class ExtractionCoordinator:
    """
    Runs one scrape: navigate, authenticate, extract.

    Fallback order after the page settles:
    1. Vessel-shaped response captured by the interceptor
    2. DOM tables
    3. Global script variables
    4. JSON embedded in the markup
    5. Last resort: the latest intercepted response, whatever its shape
    """

    def __init__(
        self,
        session_factory: Callable[[], Any] = MarineTrafficSession,
        attempts: Sequence[ExtractionAttempt] = DEFAULT_ATTEMPTS,
    ):
        """
        Initialize the coordinator.

        Args:
            session_factory: Returns an async context manager with a page
                and the navigation steps (MarineTrafficSession by default)
            attempts: Extraction strategies in fallback order
        """
        self._session_factory = session_factory
        self._attempts = tuple(attempts)
        self.state: ScrapeState | None = None

    def _enter(self, state: ScrapeState) -> None:
        self.state = state
        coordinator_log.debug(f"State: {state.value}")

    async def scrape(self) -> ExtractionResult:
        """
        Run a full scrape in a fresh browser session.

        Returns:
            Found or NotFound

        Raises:
            ScrapeError: Login or navigation failed (session is still closed)
        """
        interceptor = ResponseInterceptor()

        async with self._session_factory() as session:
            session.page.on("response", interceptor.on_response)

            self._enter(ScrapeState.NAVIGATING_LOGIN)
            await session.open_login()

            self._enter(ScrapeState.AUTHENTICATING)
            await session.login()

            self._enter(ScrapeState.NAVIGATING_TARGET)
            await session.open_reports()

            self._enter(ScrapeState.AWAITING_SETTLE)
            await session.settle()

            return await self.extract(session.page, interceptor)

    async def extract(
        self,
        page: BrowserPage,
        interceptor: ResponseInterceptor,
    ) -> ExtractionResult:
        """
        Run the fallback chain on a settled page.

        Args:
            page: Settled browser page
            interceptor: Interceptor that watched the navigation

        Returns:
            First accepted Found, the last-resort response, or NotFound
        """
        self._enter(ScrapeState.EXTRACTING_VIA_INTERCEPTOR)
        result = interceptor.result()
        if isinstance(result, Found):
            coordinator_log.info(f"Using intercepted API response ({result.source})")
            return self._done(result)

        for attempt in self._attempts:
            self._enter(_ATTEMPT_STATES.get(attempt.name, self.state))
            coordinator_log.info(f"Trying extraction: {attempt.name}")
            try:
                result = await attempt.extract(page)
            except Exception as e:
                coordinator_log.warning(f"Extraction {attempt.name} failed: {e}")
                continue

            if isinstance(result, Found) and attempt.accepts(result.payload):
                coordinator_log.info(f"Extraction {attempt.name} found data ({result.source})")
                return self._done(result)

            reason = result.reason if isinstance(result, NotFound) else "payload rejected"
            coordinator_log.info(f"Extraction {attempt.name} found nothing: {reason}")

        result = interceptor.last_resort()
        if isinstance(result, Found):
            coordinator_log.warning(
                "Could not extract specific vessel data, using most recent API response"
            )
        else:
            coordinator_log.warning("No vessel data found by any extraction method")
        return self._done(result)

    def _done(self, result: ExtractionResult) -> ExtractionResult:
        self._enter(ScrapeState.DONE)
        return result
