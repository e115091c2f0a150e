import asyncio
import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

from .config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    # aiosqlite connections are bound to the event loop that opened them
    if url.startswith("sqlite"):
        return {"poolclass": NullPool}
    return {"pool_pre_ping": True}


engine: AsyncEngine = create_async_engine(settings.database_url, echo=False, **_engine_options(settings.database_url))
async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        yield session


async def _run_schema(operation) -> None:
    # table models register themselves on import
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(operation)


async def init_db() -> None:
    attempts = max(1, settings.db_init_max_retries)
    delay = max(0.5, float(settings.db_init_retry_interval_seconds))

    attempt = 1
    while True:
        try:
            await _run_schema(SQLModel.metadata.create_all)
        except Exception as exc:  # noqa: BLE001
            if attempt >= attempts:
                logger.exception("Could not create the database schema after %s attempts.", attempts)
                raise
            logger.warning(
                "Schema creation attempt %s/%s failed: %s; retrying in %.1fs",
                attempt,
                attempts,
                exc,
                delay * attempt,
            )
            await asyncio.sleep(delay * attempt)
            attempt += 1
        else:
            logger.info("Database schema ready.")
            return


async def drop_db() -> None:
    await _run_schema(SQLModel.metadata.drop_all)
