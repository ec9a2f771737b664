"""PostgreSQL connection, session management and calculation auditing.

Persistence is *optional*: when PostgreSQL is unreachable the engine
keeps serving computations and simply skips the audit rows.
"""

from __future__ import annotations
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Engine & session factory
# ---------------------------------------------------------------------------
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None
_db_available: bool = False


async def init_db() -> None:
    """Create the async engine and session factory, then the audit table."""
    global _engine, _session_factory, _db_available

    try:
        _engine = create_async_engine(
            settings.DATABASE_URL,
            echo=False,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )
        _session_factory = async_sessionmaker(
            bind=_engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        async with _engine.begin() as conn:
            from app.models.db_models import Base
            await conn.run_sync(Base.metadata.create_all)

        _db_available = True
        logger.info("PostgreSQL connection established; calculation audit enabled.")
    except Exception as exc:
        _db_available = False
        logger.warning(
            "PostgreSQL unavailable — computing without audit persistence. Error: %s",
            exc,
        )


async def close_db() -> None:
    """Dispose of the connection pool."""
    global _engine, _db_available
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _db_available = False
        logger.info("PostgreSQL connection pool closed.")


def is_db_available() -> bool:
    return _db_available


@asynccontextmanager
async def get_session() -> AsyncGenerator[AsyncSession | None, None]:
    """Yield an async session if the DB is available, otherwise ``None``."""
    if not _db_available or _session_factory is None:
        yield None
        return

    session = _session_factory()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def record_calculation(
    endpoint: str,
    assessment_year: str,
    gross_income: float,
    regime: Optional[str] = None,
    net_tax_liability: Optional[float] = None,
    summary: Optional[Dict[str, Any]] = None,
) -> None:
    """Write one ``CalculationAudit`` row; a failed write is logged, never raised."""
    from app.models.db_models import CalculationAudit

    try:
        async with get_session() as session:
            if session is None:
                return
            session.add(
                CalculationAudit(
                    endpoint=endpoint,
                    regime=regime,
                    assessment_year=assessment_year,
                    gross_income=gross_income,
                    net_tax_liability=net_tax_liability,
                    summary=json.dumps(summary) if summary is not None else None,
                )
            )
    except SQLAlchemyError as exc:
        logger.warning("Could not record audit for %s: %s", endpoint, exc)
