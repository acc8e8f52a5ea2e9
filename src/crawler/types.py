"""
Type definitions for the vessel extraction pipeline.

Defines the browser capability surface the extractors depend on, the
tagged extraction result, and the fallback chain step.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

VesselRecord = dict[str, str | int | float | None]


class ScrapeError(Exception):
    """Navigation or authentication failed; there is no page to extract from."""


class BrowserPage(Protocol):
    """
    Capabilities the scraper needs from a browser page.

    Playwright's async ``Page`` satisfies this protocol. Tests provide
    in-memory fakes.
    """

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...

    async def goto(self, url: str, **kwargs: Any) -> Any: ...

    async def wait_for_selector(self, selector: str, **kwargs: Any) -> Any: ...

    async def wait_for_url(self, url: Any, **kwargs: Any) -> None: ...

    async def wait_for_timeout(self, timeout: float) -> None: ...

    async def evaluate(self, expression: str, arg: Any = ...) -> Any: ...

    async def content(self) -> str: ...

    async def fill(self, selector: str, value: str, **kwargs: Any) -> None: ...

    async def click(self, selector: str, **kwargs: Any) -> None: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class Found:
    """
    Extraction succeeded.

    Attributes:
        payload: Raw, pre-normalization payload (object or list)
        source: Where the payload was found (e.g. "window.reportData")
        verified: False only for the last-resort intercepted response
    """

    payload: Any
    source: str
    verified: bool = True


@dataclass(frozen=True)
class NotFound:
    """Extraction yielded nothing usable."""

    reason: str = ""


ExtractionResult = Found | NotFound


@dataclass(frozen=True)
class ExtractionAttempt:
    """
    One step in the extraction fallback chain.

    Attributes:
        name: Display name used in logs
        extract: Coroutine function reading the settled page
        accepts: Predicate a Found payload must satisfy to end the chain
    """

    name: str
    extract: Callable[[BrowserPage], Awaitable[ExtractionResult]]
    accepts: Callable[[Any], bool]


class ScrapeState(Enum):
    """Coordinator states, in the order a run passes through them."""

    NAVIGATING_LOGIN = "navigating_login"
    AUTHENTICATING = "authenticating"
    NAVIGATING_TARGET = "navigating_target"
    AWAITING_SETTLE = "awaiting_settle"
    EXTRACTING_VIA_INTERCEPTOR = "extracting_via_interceptor"
    EXTRACTING_VIA_DOM = "extracting_via_dom"
    EXTRACTING_VIA_SCRIPT_SCOPE = "extracting_via_script_scope"
    EXTRACTING_VIA_MARKUP = "extracting_via_markup"
    DONE = "done"
