"""Jobs module for scheduled tasks."""

from src.jobs import scheduler
from src.jobs.runner import RunOutcome, ScrapeRunner

__all__ = ["RunOutcome", "ScrapeRunner", "scheduler"]
