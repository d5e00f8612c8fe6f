from __future__ import annotations

import os

import pytest
import pytest_asyncio
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from testcontainers.postgres import PostgresContainer


@pytest.fixture(scope="session")
def postgres_url() -> str:
    with PostgresContainer("postgres:16") as pg:
        yield pg.get_connection_url()


@pytest.fixture(scope="session")
def database_url(postgres_url: str) -> str:
    # Normalize testcontainers URL (may be postgresql:// or postgresql+psycopg2://).
    base = postgres_url.replace("postgresql+psycopg2://", "postgresql://")
    async_url = base.replace("postgresql://", "postgresql+asyncpg://")

    # The seed service reads settings at import time.
    os.environ["DATABASE_URL"] = async_url
    os.environ["BCRYPT_ROUNDS"] = "4"
    return async_url


@pytest_asyncio.fixture()
async def engine(database_url: str):
    eng = create_async_engine(database_url, poolclass=NullPool)
    # Every test starts from a database without the dashboard tables.
    async with eng.begin() as conn:
        await conn.execute(sa.text("DROP TABLE IF EXISTS users, customers, invoices, revenue"))
    yield eng
    await eng.dispose()
