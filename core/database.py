import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from core.config import settings
from core.base import Base

logger = logging.getLogger(__name__)

# Database engine configuration
# The network is read once per load, so a small pool is enough
engine = create_engine(
    settings.DATABASE_URL,
    pool_size=5,
    max_overflow=10,
    pool_timeout=30,
    pool_recycle=3600,
    pool_pre_ping=True,
    echo=False
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables() -> None:
    """Create the transit_* tables if they do not exist."""
    # Register models on Base.metadata
    import src.transit_bc.stop.infrastructure.models  # noqa: F401
    import src.transit_bc.line.infrastructure.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Transit tables ready")
