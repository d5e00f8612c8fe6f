from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from db.placeholder_data import PLACEHOLDER_FIXTURES
from db.records import SeedFixtures
from db.seed import acquire_connection, async_database_url
from services.seed.app.settings import SETTINGS


def create_engine() -> AsyncEngine:
    # NullPool avoids cross-event-loop pooled connections during tests and keeps behavior simple.
    return create_async_engine(async_database_url(SETTINGS.database_url), pool_pre_ping=True, poolclass=NullPool)


ENGINE = create_engine()


async def get_connection() -> AsyncIterator[AsyncConnection]:
    # One connection per request, released when the response is done.
    async with acquire_connection(ENGINE) as conn:
        yield conn


def get_fixtures() -> SeedFixtures:
    return PLACEHOLDER_FIXTURES
