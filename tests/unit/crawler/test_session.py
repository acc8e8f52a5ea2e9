"""
Unit tests for src/crawler/session.py
"""

import asyncio

import pytest

from config.settings import MarineTrafficSettings, ScraperSettings
from src.crawler.session import CONSENT_SELECTORS, MarineTrafficSession
from src.crawler.types import ScrapeError
from tests.fixtures.pages import FakePage

# Wait that never resolves on its own
BLOCK = object()


class FakeElement:
    def __init__(self):
        self.clicked = False

    async def click(self):
        self.clicked = True


class Delayed:
    """Wait outcome that resolves after a short delay."""

    def __init__(self, value, delay=0.01):
        self.value = value
        self.delay = delay


class SessionPage(FakePage):
    """
    FakePage with configurable waits and failures.

    Args:
        selectors: selector -> element, exception, Delayed or BLOCK
            (missing selectors time out)
        url_outcome: result of wait_for_url (None = navigated away)
        goto_error: exception raised by goto
        close_error: exception raised by close
    """

    def __init__(self, selectors=None, url_outcome=None, goto_error=None, close_error=None):
        super().__init__()
        self.selectors = selectors or {}
        self.url_outcome = url_outcome
        self.goto_error = goto_error
        self.close_error = close_error
        self.url_predicate = None
        self.filled = {}
        self.clicked = []
        self.cancelled = []
        self.closed = False

    async def _resolve(self, name, outcome):
        if outcome is BLOCK:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                self.cancelled.append(name)
                raise
        if isinstance(outcome, Delayed):
            await asyncio.sleep(outcome.delay)
            outcome = outcome.value
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def goto(self, url, **kwargs):
        if self.goto_error:
            raise self.goto_error
        self.visited.append(url)

    async def wait_for_selector(self, selector, **kwargs):
        outcome = self.selectors.get(selector, TimeoutError(f"Timeout waiting for {selector}"))
        return await self._resolve(selector, outcome)

    async def wait_for_url(self, url, **kwargs):
        self.url_predicate = url
        return await self._resolve("url", self.url_outcome)

    async def fill(self, selector, value, **kwargs):
        self.filled[selector] = value

    async def click(self, selector, **kwargs):
        self.clicked.append(selector)

    async def close(self):
        self.closed = True
        if self.close_error:
            raise self.close_error


class Closable:
    """Stand-in for a browser context, browser or Playwright driver."""

    def __init__(self, name, log):
        self.name = name
        self.log = log

    async def close(self):
        self.log.append(self.name)

    async def stop(self):
        self.log.append(self.name)


def _session(page=None, username="captain", password="secret"):
    site = MarineTrafficSettings(username=username, password=password)
    session = MarineTrafficSession(site=site, scraper=ScraperSettings())
    session._page = page
    return session


def _login_page(**kwargs):
    selectors = {"#email": FakeElement(), ".user-menu-item": BLOCK}
    selectors.update(kwargs.pop("selectors", {}))
    return SessionPage(selectors=selectors, **kwargs)


class TestLogin:
    """Tests for MarineTrafficSession.login."""

    @pytest.mark.parametrize("username,password", [("", "secret"), ("captain", "")])
    def test_missing_credentials(self, username, password):
        page = _login_page()
        session = _session(page, username=username, password=password)

        with pytest.raises(ScrapeError, match="username and password"):
            asyncio.run(session.login())

        assert page.filled == {}

    def test_missing_login_form(self):
        page = _login_page(selectors={"#email": TimeoutError("Timeout 10000ms exceeded")})

        with pytest.raises(ScrapeError, match="Login form not found"):
            asyncio.run(_session(page).login())

        assert page.clicked == []

    def test_fills_form_and_waits_for_navigation(self):
        page = _login_page()

        asyncio.run(_session(page).login())

        assert page.filled == {"#email": "captain", "#password": "secret"}
        assert page.clicked == ["#login_form_submit"]
        # The user menu wait is abandoned once the URL changes
        assert page.cancelled == [".user-menu-item"]

    def test_url_predicate_leaves_login_page(self):
        page = _login_page()
        session = _session(page)

        asyncio.run(session.login())

        assert page.url_predicate(session.site.login_url) is False
        assert page.url_predicate("https://www.marinetraffic.com/en/ais/home") is True

    def test_user_menu_completes_login(self):
        page = _login_page(selectors={".user-menu-item": FakeElement()}, url_outcome=BLOCK)

        asyncio.run(_session(page).login())

        assert page.cancelled == ["url"]

    def test_first_waiter_failing_does_not_fail_login(self):
        page = _login_page(
            selectors={".user-menu-item": Delayed(FakeElement())},
            url_outcome=TimeoutError("Timeout 30000ms exceeded"),
        )

        asyncio.run(_session(page).login())

    def test_both_waiters_failing(self):
        page = _login_page(
            selectors={".user-menu-item": TimeoutError("no menu")},
            url_outcome=TimeoutError("still on login"),
        )

        with pytest.raises(ScrapeError, match="Login did not complete"):
            asyncio.run(_session(page).login())


class TestNavigation:
    """Tests for open_login, dismiss_cookie_consent and open_reports."""

    def test_no_consent_dialog_continues(self):
        page = SessionPage()
        session = _session(page)

        asyncio.run(session.open_login())

        assert page.visited == [session.site.login_url]
        # Every consent selector tried, then the generic accept lookup
        assert len(page.evaluated) == 1

    def test_consent_button_clicked(self):
        button = FakeElement()
        page = SessionPage(selectors={CONSENT_SELECTORS[1]: button})

        assert asyncio.run(_session(page).dismiss_cookie_consent()) is True
        assert button.clicked is True
        assert page.evaluated == []

    def test_navigation_failure_is_scrape_error(self):
        page = SessionPage(goto_error=TimeoutError("Timeout 60000ms exceeded"))
        session = _session(page)

        with pytest.raises(ScrapeError, match="Navigation to .*users/login failed"):
            asyncio.run(session.open_login())

    def test_reports_opened_without_main_section(self):
        page = SessionPage()
        session = _session(page)

        asyncio.run(session.open_reports())

        assert page.visited == [session.site.data_url, session.site.reports_url]


class TestClose:
    """Tests for MarineTrafficSession.close."""

    def test_failed_page_close_still_releases_browser(self):
        log = []
        page = SessionPage(close_error=RuntimeError("Target page, context or browser has been closed"))
        session = _session(page)
        session._context = Closable("context", log)
        session._browser = Closable("browser", log)
        session._playwright = Closable("playwright", log)

        asyncio.run(session.__aexit__(ScrapeError, ScrapeError("boom"), None))

        assert page.closed is True
        assert log == ["context", "browser", "playwright"]
        assert session._browser is None
        assert session._playwright is None

    def test_close_twice(self):
        log = []
        session = _session(SessionPage())
        session._browser = Closable("browser", log)

        asyncio.run(session.close())
        asyncio.run(session.close())

        assert log == ["browser"]
