"""
Response interceptor.

Watches network responses while the browser navigates and keeps the JSON
payloads that come from known report/export endpoints.
"""

from typing import Any

from loguru import logger

from src.crawler.extractors.shape import is_vessel_payload
from src.crawler.types import ExtractionResult, Found, NotFound

interceptor_log = logger.bind(module="Interceptor")

# Endpoint path fragments that may carry vessel data
ENDPOINT_FRAGMENTS = (
    "/api/exportAPI",
    "/en/reports",
    "/api/exportData",
    "/exportJSON",
    "/en/vesselDetails",
    "/en/ais/details",
    "/api/vd",
    "/api/exportVessels",
)


class ResponseInterceptor:
    """
    Passive collector of vessel payloads from network responses.

    ``best`` holds the last vessel-shaped payload; a later response that
    is not vessel-shaped never replaces it. ``latest`` holds the last
    parsed payload from an allow-listed endpoint, whatever its shape.
    """

    def __init__(self, fragments: tuple[str, ...] = ENDPOINT_FRAGMENTS):
        self._fragments = fragments
        self.best: Any = None
        self.best_url: str | None = None
        self.latest: Any = None
        self.latest_url: str | None = None
        self.captured = 0

    def matches(self, url: str) -> bool:
        """Check a URL against the endpoint allow-list."""
        return any(fragment in url for fragment in self._fragments)

    async def on_response(self, response: Any) -> None:
        """
        Handle a browser response event.

        Never raises: a bad response must not abort the session.

        Args:
            response: Playwright Response (url, headers, json())
        """
        try:
            url = response.url
            if not self.matches(url):
                return

            content_type = (response.headers or {}).get("content-type", "")
            if "application/json" not in content_type:
                interceptor_log.debug(f"Skipping non-JSON response from: {url}")
                return

            data = await response.json()
        except Exception as e:
            interceptor_log.debug(f"Ignoring response: {e}")
            return

        self.observe(url, data)

    def observe(self, url: str, data: Any) -> None:
        """Record a parsed payload from an allow-listed endpoint."""
        self.captured += 1
        self.latest = data
        self.latest_url = url
        interceptor_log.info(f"Captured API response from: {url}")

        if is_vessel_payload(data):
            self.best = data
            self.best_url = url
            interceptor_log.info("Response looks like vessel data")

    def result(self) -> ExtractionResult:
        """Current best vessel-shaped payload as an extraction result."""
        if self.best is None:
            return NotFound("no vessel-shaped response intercepted")
        return Found(self.best, f"intercepted:{self.best_url}")

    def last_resort(self) -> ExtractionResult:
        """Most recent allow-listed payload, shape not guaranteed."""
        if self.latest is None:
            return NotFound("no response intercepted")
        return Found(self.latest, f"intercepted:{self.latest_url}", verified=False)
