"""
Database initialization - creates all tables and indexes.
All schema is defined in the SQLAlchemy models in lifeledger/models/;
this module imports them and runs create_all.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from lifeledger.db.base import Base

# Import all models to ensure they are registered with Base.metadata
from lifeledger.models import (  # noqa: F401
    Category,
    LedgerEntry,
    RecurringTransaction,
)

logger = logging.getLogger(__name__)


async def init_database(engine: AsyncEngine) -> bool:
    """
    Create all tables, enums, indexes and foreign keys from the models.
    Called on application startup. Connection failures are logged rather than
    raised so the API still starts; the next startup retries.
    """
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (OSError, SQLAlchemyError):
        logger.exception(
            "Database initialization failed; check DATABASE_URL and that the database is running"
        )
        return False
    logger.info("Database initialization completed successfully")
    return True
