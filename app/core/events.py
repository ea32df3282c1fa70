"""Application startup and shutdown events."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, TypeVar, cast

from app.core.config import settings
from app.core.db import close_database, get_database, ping_database
from app.core.exceptions import PersistenceError
from app.core.geocoding import get_geocoding_service
from app.core.logging import configure_logging
from app.database.repositories import ensure_indexes

logger: logging.Logger = logging.getLogger("app.core.events")

T = TypeVar("T")


def get_setting(
    name: str,
    type_: Callable[[Any], T],
    default: T | None = None,
    required: bool = True,
) -> T:
    """Get setting value with type conversion.

    Args:
        name: Setting name, looked up as given and then upper-cased
        type_: Type conversion function
        default: Default value
        required: Whether the setting is required

    Returns:
        Setting value

    Raises:
        ValueError: If setting is required but not found
    """
    value = getattr(settings, name, None)
    if value is None:
        value = getattr(settings, name.upper(), None)

    if value is None:
        if required:
            raise ValueError(f"Setting {name} is required")
        return cast(T, default)

    return type_(value)


class AppStateDict:
    """Readiness of the components initialized at startup."""

    def __init__(self) -> None:
        """Initialize state."""
        self.database_ready: bool = False
        self.geocoder_ready: bool = False


def create_start_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create startup event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Startup handler function
    """

    async def start_app() -> None:
        configure_logging(
            level=get_setting("log_level", str, "INFO", required=False),
            json_logs=get_setting("json_logs", bool, True, required=False),
        )

        state = AppStateDict()
        app.state.resources = state

        # The API still starts without the database; health reports it
        if await ping_database():
            try:
                await ensure_indexes(get_database())
                state.database_ready = True
            except PersistenceError as e:
                logger.error(f"Index creation failed at startup: {e}")
        else:
            logger.error("Database unreachable at startup")

        state.geocoder_ready = get_geocoding_service().configured

        logger.info(
            "Application startup complete - "
            f"Database: {get_setting('mongodb_database', str)}, "
            f"Transactions: {get_setting('mongodb_transactions', bool)}, "
            f"Geocoder configured: {state.geocoder_ready}"
        )

    return start_app


def create_stop_app_handler(app: Any) -> Callable[[], Awaitable[None]]:
    """Create shutdown event handler.

    Args:
        app: FastAPI application instance

    Returns:
        Shutdown handler function
    """

    async def stop_app() -> None:
        logger.info("Closing database connections...")
        close_database()
        logger.info("Application shutdown complete")

    return stop_app


@asynccontextmanager
async def lifespan(app: Any) -> AsyncIterator[None]:
    """Run the startup handler, serve, then run the shutdown handler.

    Args:
        app: FastAPI application instance
    """
    await create_start_app_handler(app)()
    try:
        yield
    finally:
        await create_stop_app_handler(app)()
