"""Startup loading of the transit network.

Builds the configured ScheduleSource and loads the NetworkStore when the
FastAPI app starts. Loading runs in a thread-pool executor so the event loop
keeps serving /health (503) while the network is being built.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from core.config import settings
from src.transit_bc.exceptions import DataUnavailableError
from src.transit_bc.routing.network_store import NetworkStore
from src.transit_bc.routing.schedule_sources import (
    GtfsDirectoryScheduleSource,
    ScheduleSource,
    SqlScheduleSource,
)

logger = logging.getLogger(__name__)


def build_schedule_source() -> ScheduleSource:
    """Schedule source selected by SCHEDULE_SOURCE."""
    planner = settings.planner
    if planner.SCHEDULE_SOURCE == "gtfs":
        return GtfsDirectoryScheduleSource(planner.GTFS_DIR, default_fare=planner.DEFAULT_FARE)

    from core.database import SessionLocal

    return SqlScheduleSource(SessionLocal, default_fare=planner.DEFAULT_FARE)


def _ensure_tables() -> None:
    from sqlalchemy.exc import SQLAlchemyError
    from core.database import create_tables

    try:
        create_tables()
    except SQLAlchemyError as e:
        raise DataUnavailableError(f"Database unavailable: {e}") from e


def _load_network() -> None:
    """Load the network into the memory store (synchronous)."""
    store = NetworkStore.get_instance()
    if store.is_loaded:
        return
    if store.source is None:
        store.source = build_schedule_source()
    if isinstance(store.source, SqlScheduleSource):
        _ensure_tables()
    store.load()


def reload_network() -> None:
    """Rebuild the network from the configured source (synchronous)."""
    store = NetworkStore.get_instance()
    if store.source is None:
        store.source = build_schedule_source()
    try:
        store.reload()
    except DataUnavailableError:
        # Already logged by the store; the previous snapshot stays published
        pass


@asynccontextmanager
async def lifespan_with_network_loader(app):
    """FastAPI lifespan context manager that loads the network on startup.

    A failed load does not stop the app: /health keeps answering 503 and
    the first planning request retries the load.
    """
    logger.info("Loading transit network into memory...")
    loop = asyncio.get_event_loop()
    try:
        await loop.run_in_executor(None, _load_network)
        logger.info("Transit network loaded successfully")
    except DataUnavailableError as e:
        logger.error(f"Transit network not loaded: {e}")

    yield
