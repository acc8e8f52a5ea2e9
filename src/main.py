"""
Vessel Scraper Service.

Main entry point: checks the database, then scrapes MarineTraffic on a
fixed interval until SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

# Load .env file at startup
load_dotenv()

from loguru import logger  # noqa: E402

from config.settings import get_settings  # noqa: E402


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: str) -> None:
    """Configure loguru format and route library logs through it."""
    logger.configure(extra={"module": "Server"})
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[module]: <16}</cyan> | <level>{message}</level>",
        level=level,
    )

    for name in ("apscheduler", "asyncpg"):
        lib_logger = logging.getLogger(name)
        lib_logger.handlers = [InterceptHandler()]
        lib_logger.propagate = False


log = logger.bind(module="App")

from src.connections.postgres import close_postgres, get_postgres  # noqa: E402
from src.jobs import scheduler  # noqa: E402


async def check_database() -> None:
    """
    Connect to PostgreSQL and verify the vessels table.

    Exits the process on failure: without the table every run would
    silently do nothing.
    """
    try:
        postgres = await get_postgres()
        await postgres.verify_schema()
    except Exception as e:
        log.error(f"Database check failed: {e}")
        log.error("Check DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME and DB_TABLE")
        await close_postgres()
        sys.exit(1)
    log.info("Successfully connected to PostgreSQL database")


async def main() -> None:
    """Run the service until a stop signal arrives."""
    setup_logging(get_settings().log_level)
    await check_database()

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    scheduler.start()
    await stop.wait()

    log.info("Shutting down...")
    await scheduler.shutdown()
    await close_postgres()
    log.info("Server stopped")


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
