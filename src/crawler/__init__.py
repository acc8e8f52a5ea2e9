"""Crawler modules."""

from src.crawler.coordinator import ExtractionCoordinator
from src.crawler.session import MarineTrafficSession
from src.crawler.types import (
    BrowserPage,
    ExtractionAttempt,
    ExtractionResult,
    Found,
    NotFound,
    ScrapeError,
    ScrapeState,
    VesselRecord,
)

__all__ = [
    # Types
    "BrowserPage",
    "ExtractionAttempt",
    "ExtractionResult",
    "Found",
    "NotFound",
    "ScrapeError",
    "ScrapeState",
    "VesselRecord",
    # Session
    "MarineTrafficSession",
    # Coordinator
    "ExtractionCoordinator",
]
