"""
MarineTraffic browser session using Playwright.

Owns the browser lifecycle and the navigation steps that must succeed
before anything can be extracted: login page, cookie consent, login form,
and the detailed reports page.
"""

import asyncio

from loguru import logger
from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from config.settings import MarineTrafficSettings, ScraperSettings, get_settings
from src.crawler.types import BrowserPage, ScrapeError

session_log = logger.bind(module="Session")

# Cookie consent buttons, tried in order
CONSENT_SELECTORS = (
    "#qc-cmp2-ui > div.qc-cmp2-footer.qc-cmp2-footer-overlay.qc-cmp2-footer-scrolled > div > button.css-1yp8yiu",
    'xpath=//*[@id="qc-cmp2-ui"]/div[2]/div/button[2]',
    "button.css-1yp8yiu",
)

# Clicks the first button whose text looks like an accept/agree action
CLICK_ACCEPT_SCRIPT = """
() => {
    const button = Array.from(document.querySelectorAll('button')).find(b => {
        const text = (b.textContent || '').toLowerCase();
        return text.includes('accept') || text.includes('agree') || text.includes('consent');
    });
    if (!button) return false;
    button.click();
    return true;
}
"""

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
]


class MarineTrafficSession:
    """
    One browser session against MarineTraffic.

    Use as an async context manager; the browser is closed on every exit
    path, including errors and cancellation.
    """

    def __init__(
        self,
        site: MarineTrafficSettings | None = None,
        scraper: ScraperSettings | None = None,
    ):
        """
        Initialize the session.

        Args:
            site: Account and URL settings (defaults from environment)
            scraper: Timeout and browser settings (defaults from environment)
        """
        settings = get_settings()
        self.site = site or settings.marinetraffic
        self.scraper = scraper or settings.scraper
        self._playwright = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> BrowserPage:
        """Current page."""
        if self._page is None:
            raise RuntimeError("Session not started. Call start() first.")
        return self._page

    async def start(self) -> None:
        """Start the browser."""
        if self._browser:
            return

        session_log.info("Starting browser...")
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self.scraper.headless, args=LAUNCH_ARGS
        )
        self._context = await self._browser.new_context(
            viewport={"width": 1366, "height": 768},
            user_agent=self.site.user_agent,
        )
        self._page = await self._context.new_page()
        session_log.info("Browser started")

    async def close(self) -> None:
        """
        Close the browser.

        Every resource is released even if closing an earlier one fails.
        """
        page, self._page = self._page, None
        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None

        for name, closer in (
            ("page", page and page.close),
            ("context", context and context.close),
            ("browser", browser and browser.close),
            ("playwright", playwright and playwright.stop),
        ):
            if not closer:
                continue
            try:
                await closer()
            except Exception as e:
                session_log.debug(f"Error closing {name}: {e}")
        session_log.info("Browser closed")

    async def __aenter__(self) -> "MarineTrafficSession":
        try:
            await self.start()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        # Shielded so a cancelled run still releases the browser
        await asyncio.shield(self.close())

    async def open_login(self) -> None:
        """Navigate to the login page and dismiss cookie consent."""
        session_log.info("Navigating to login page...")
        await self._goto(self.site.login_url, self.scraper.navigation_timeout)
        await self.dismiss_cookie_consent()

    async def dismiss_cookie_consent(self) -> bool:
        """
        Click the cookie consent button if one shows up.

        Returns:
            True if a button was clicked
        """
        page = self.page
        for selector in CONSENT_SELECTORS:
            try:
                button = await page.wait_for_selector(
                    selector, timeout=self.scraper.step_timeout
                )
            except Exception:
                continue
            if button:
                await button.click()
                session_log.info(f"Clicked cookie consent button: {selector}")
                return True

        try:
            if await page.evaluate(CLICK_ACCEPT_SCRIPT):
                session_log.info("Clicked generic accept/agree button")
                return True
        except Exception as e:
            session_log.debug(f"Generic consent lookup failed: {e}")

        session_log.info("No cookie consent button found, continuing...")
        return False

    async def login(self) -> None:
        """
        Submit the login form and wait for it to complete.

        Raises:
            ScrapeError: Missing credentials, login form not found, or login
                did not complete in time
        """
        if not self.site.username or not self.site.password:
            raise ScrapeError("MarineTraffic username and password are required")

        page = self.page
        session_log.info("Logging in...")
        try:
            await page.wait_for_selector("#email", timeout=self.scraper.login_form_timeout)
        except Exception as e:
            raise ScrapeError(f"Login form not found: {e}") from e

        await page.fill("#email", self.site.username)
        await page.fill("#password", self.site.password)
        await page.click("#login_form_submit")
        session_log.info("Login submitted")

        await self._wait_for_login()
        session_log.info("Login successful")

    async def _wait_for_login(self) -> None:
        """Wait for either a post-login navigation or the user menu."""
        page = self.page
        timeout = self.scraper.login_complete_timeout
        waiters = [
            asyncio.ensure_future(
                page.wait_for_url(lambda url: self.site.login_path not in url, timeout=timeout)
            ),
            asyncio.ensure_future(page.wait_for_selector(".user-menu-item", timeout=timeout)),
        ]
        try:
            pending = set(waiters)
            error = None
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task.exception() is None:
                        return
                    error = task.exception()
            raise ScrapeError(f"Login did not complete: {error}")
        finally:
            for task in waiters:
                task.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)

    async def open_reports(self) -> None:
        """
        Navigate to the vessels data page, then the detailed reports page.

        Raises:
            ScrapeError: A navigation timed out or failed
        """
        page = self.page
        session_log.info("Navigating to vessels page...")
        await self._goto(self.site.data_url, self.scraper.navigation_timeout)

        try:
            await page.wait_for_selector(
                "#mainSection", timeout=self.scraper.main_section_timeout
            )
            session_log.info("Main section loaded")
        except Exception as e:
            session_log.info(f"Could not find main section, continuing anyway: {e}")

        session_log.info("Navigating to detailed reports page...")
        await self._goto(self.site.reports_url, self.scraper.reports_timeout)

    async def settle(self) -> None:
        """Give late XHR requests time to finish."""
        session_log.info("Waiting for data to load...")
        await self.page.wait_for_timeout(self.scraper.settle_delay * 1000)

    async def _goto(self, url: str, timeout: int) -> None:
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=timeout)
        except Exception as e:
            raise ScrapeError(f"Navigation to {url} failed: {e}") from e
