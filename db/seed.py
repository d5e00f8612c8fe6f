from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import sqlalchemy as sa
import structlog
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, AsyncTransaction, create_async_engine
from sqlalchemy.pool import NullPool
from sqlalchemy.schema import CreateTable

from db.errors import SeedError, SeedErrorKind, SeedPhase, seed_error_from
from db.passwords import PasswordHasher
from db.placeholder_data import PLACEHOLDER_FIXTURES
from db.records import CustomerRecord, InvoiceRecord, RevenueRecord, SeedFixtures, UserRecord
from db.settings import SETTINGS


logger = structlog.get_logger()

SUCCESS_MESSAGE = "Database seeded successfully"

# asyncpg rejects queries with more bind parameters than this.
MAX_BIND_PARAMS = 32767

META = sa.MetaData()
_UUID_DEFAULT = sa.text("uuid_generate_v4()")

users = sa.Table(
    "users",
    META,
    sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=_UUID_DEFAULT),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("email", sa.Text(), nullable=False, unique=True),
    sa.Column("password", sa.Text(), nullable=False),
)
customers = sa.Table(
    "customers",
    META,
    sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=_UUID_DEFAULT),
    sa.Column("name", sa.String(255), nullable=False),
    sa.Column("email", sa.String(255), nullable=False),
    sa.Column("image_url", sa.String(255), nullable=False),
)
invoices = sa.Table(
    "invoices",
    META,
    sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=_UUID_DEFAULT),
    sa.Column("customer_id", UUID(as_uuid=True), nullable=False),
    sa.Column("amount", sa.Integer(), nullable=False),
    sa.Column("status", sa.String(255), nullable=False),
    sa.Column("date", sa.Date(), nullable=False),
)
revenue = sa.Table(
    "revenue",
    META,
    sa.Column("month", sa.String(4), nullable=False, unique=True),
    sa.Column("revenue", sa.Integer(), nullable=False),
)


class InvoicePolicy(str, Enum):
    # Every run appends the fixtures again; invoices have no natural conflict key.
    APPEND = "append"
    # Leave the table alone once it holds any invoice.
    SKIP_IF_ANY = "skip_if_any"


@dataclass(frozen=True)
class SeedStep:
    table: sa.Table
    depends_on: tuple[str, ...] = ()

    @property
    def name(self) -> str:
        return self.table.name


STEPS: tuple[SeedStep, ...] = (
    SeedStep(users),
    SeedStep(customers),
    SeedStep(invoices, depends_on=("customers",)),
    SeedStep(revenue),
)


def batch_rows(rows: list[dict[str, Any]], max_params: int = MAX_BIND_PARAMS) -> list[list[dict[str, Any]]]:
    """Split rows so each multi-row INSERT stays within the bind parameter limit."""
    if not rows:
        return []
    size = max(1, max_params // len(rows[0]))
    return [rows[i : i + size] for i in range(0, len(rows), size)]


def resolve_order(steps: Sequence[SeedStep]) -> list[SeedStep]:
    """
    Order steps so each runs after the steps it depends on.

    Independent steps keep their declared order, so the result is deterministic.
    """
    names = {s.name for s in steps}
    for s in steps:
        for dep in s.depends_on:
            if dep not in names:
                raise ValueError(f"step {s.name!r} depends on unknown step {dep!r}")

    ordered: list[SeedStep] = []
    done: set[str] = set()
    pending = list(steps)
    while pending:
        ready = next((s for s in pending if all(d in done for d in s.depends_on)), None)
        if ready is None:
            raise ValueError("cyclic step dependencies: " + ", ".join(s.name for s in pending))
        ordered.append(ready)
        done.add(ready.name)
        pending.remove(ready)
    return ordered


@dataclass(frozen=True)
class TableResult:
    table: str
    inserted: int
    skipped: int


@dataclass
class SeedSummary:
    tables: list[TableResult] = field(default_factory=list)
    duration_ms: float = 0.0
    message: str = SUCCESS_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2),
            "tables": {t.table: {"inserted": t.inserted, "skipped": t.skipped} for t in self.tables},
        }


async def ensure_schema(conn: AsyncConnection, table: sa.Table) -> None:
    await conn.execute(sa.text('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"'))
    await conn.execute(CreateTable(table, if_not_exists=True))


class Seeder:
    """
    Creates the dashboard tables and inserts the fixtures in one transaction.

    The connection is owned by the caller; `run` begins and ends a transaction on it.
    """

    def __init__(
        self,
        conn: AsyncConnection,
        *,
        hasher: PasswordHasher | None = None,
        invoice_policy: InvoicePolicy | str = InvoicePolicy.APPEND,
    ) -> None:
        self._conn = conn
        self._hasher = hasher or PasswordHasher()
        self._invoice_policy = InvoicePolicy(invoice_policy)
        self._steps = resolve_order(STEPS)
        self._upserts = {
            "users": self.upsert_users,
            "customers": self.upsert_customers,
            "invoices": self.upsert_invoices,
            "revenue": self.upsert_revenue,
        }

    @property
    def order(self) -> list[str]:
        return [s.name for s in self._steps]

    async def run(self, fixtures: SeedFixtures) -> SeedSummary:
        start = time.perf_counter()
        summary = SeedSummary()
        try:
            trans = await self._conn.begin()
        except Exception as exc:
            err = seed_error_from(exc, SeedPhase.COMMIT, "transaction")
            logger.error("seed_failed", kind=err.kind.value, step=err.step, error=err.detail)
            raise err from exc

        try:
            for step in self._steps:
                summary.tables.append(await self._run_step(step, getattr(fixtures, step.name)))
        except SeedError as e:
            await self._rollback(trans)
            logger.error("seed_failed", kind=e.kind.value, step=e.step, error=e.detail)
            raise
        except BaseException:
            await self._rollback(trans)
            raise

        try:
            await trans.commit()
        except Exception as exc:
            await self._rollback(trans)
            err = seed_error_from(exc, SeedPhase.COMMIT, "transaction")
            logger.error("seed_failed", kind=err.kind.value, step=err.step, error=err.detail)
            raise err from exc

        summary.duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "seed_finished",
            duration_ms=round(summary.duration_ms, 2),
            inserted=sum(t.inserted for t in summary.tables),
        )
        return summary

    async def _run_step(self, step: SeedStep, records: Sequence[Any]) -> TableResult:
        try:
            await ensure_schema(self._conn, step.table)
        except Exception as exc:
            raise seed_error_from(exc, SeedPhase.SCHEMA, step.name) from exc
        result = await self._upserts[step.name](records)
        logger.info("seed_step_finished", table=result.table, inserted=result.inserted, skipped=result.skipped)
        return result

    async def _rollback(self, trans: AsyncTransaction) -> None:
        if not trans.is_active:
            return
        try:
            await trans.rollback()
        except Exception:
            # Best effort: the original failure propagates either way.
            logger.warning("seed_rollback_failed", exc_info=True)

    async def _insert(self, table: sa.Table, rows: list[dict[str, Any]], conflict_on: list[str] | None, key: str) -> TableResult:
        if not rows:
            return TableResult(table.name, 0, 0)
        inserted = 0
        for batch in batch_rows(rows):
            stmt = pg_insert(table).values(batch)
            if conflict_on:
                stmt = stmt.on_conflict_do_nothing(index_elements=conflict_on)
            # Skipped rows return nothing, so the returned keys are exactly the inserted rows.
            stmt = stmt.returning(table.c[key])
            try:
                inserted += len((await self._conn.execute(stmt)).all())
            except Exception as exc:
                raise seed_error_from(exc, SeedPhase.INSERT, table.name) from exc
        return TableResult(table.name, inserted, len(rows) - inserted)

    async def upsert_users(self, records: Sequence[UserRecord]) -> TableResult:
        try:
            hashed = await self._hasher.hash_many([u.password for u in records])
        except Exception as exc:
            raise seed_error_from(exc, SeedPhase.HASHING, users.name) from exc
        rows = [
            dict(id=u.id, name=u.name, email=u.email, password=pw)
            for u, pw in zip(records, hashed)
        ]
        return await self._insert(users, rows, conflict_on=["id"], key="id")

    async def upsert_customers(self, records: Sequence[CustomerRecord]) -> TableResult:
        rows = [dict(id=c.id, name=c.name, email=c.email, image_url=c.image_url) for c in records]
        return await self._insert(customers, rows, conflict_on=["id"], key="id")

    async def upsert_invoices(self, records: Sequence[InvoiceRecord]) -> TableResult:
        if records and self._invoice_policy is InvoicePolicy.SKIP_IF_ANY:
            try:
                existing = await self._conn.scalar(sa.select(invoices.c.id).limit(1))
            except Exception as exc:
                raise seed_error_from(exc, SeedPhase.INSERT, invoices.name) from exc
            if existing is not None:
                return TableResult(invoices.name, 0, len(records))
        rows = [
            dict(customer_id=i.customer_id, amount=i.amount, status=i.status, date=i.date)
            for i in records
        ]
        return await self._insert(invoices, rows, conflict_on=None, key="id")

    async def upsert_revenue(self, records: Sequence[RevenueRecord]) -> TableResult:
        rows = [dict(month=r.month, revenue=r.revenue) for r in records]
        return await self._insert(revenue, rows, conflict_on=["month"], key="month")


@asynccontextmanager
async def acquire_connection(engine: AsyncEngine) -> AsyncIterator[AsyncConnection]:
    try:
        conn = await engine.connect()
    except Exception as exc:
        raise SeedError(SeedErrorKind.TRANSPORT, "connect", str(exc)) from exc
    try:
        yield conn
    finally:
        await conn.close()


def async_database_url(url: str) -> str:
    # The seeder runs on asyncpg. Normalize common sync URLs.
    for prefix in ("postgresql+psycopg2://", "postgresql+psycopg://", "postgres://"):
        if url.startswith(prefix):
            url = "postgresql://" + url[len(prefix):]
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


async def seed(
    database_url: str,
    fixtures: SeedFixtures = PLACEHOLDER_FIXTURES,
    *,
    invoice_policy: InvoicePolicy | str = InvoicePolicy.APPEND,
    bcrypt_rounds: int = 10,
) -> SeedSummary:
    engine = create_async_engine(async_database_url(database_url), poolclass=NullPool)
    try:
        async with acquire_connection(engine) as conn:
            seeder = Seeder(conn, hasher=PasswordHasher(bcrypt_rounds), invoice_policy=invoice_policy)
            return await seeder.run(fixtures)
    finally:
        await engine.dispose()


def configure_cli_logging(log_level: str) -> None:
    # stdout carries the JSON summary; log lines go to stderr.
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=log_level.upper())
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the dashboard database with placeholder data.")
    parser.add_argument("--database-url", default=os.getenv("DATABASE_URL") or SETTINGS.database_url)
    parser.add_argument(
        "--invoice-policy",
        choices=[p.value for p in InvoicePolicy],
        default=SETTINGS.invoice_policy,
        help="append: add invoice fixtures on every run; skip_if_any: only seed an empty invoices table.",
    )
    parser.add_argument("--bcrypt-rounds", type=int, default=SETTINGS.bcrypt_rounds)
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL") or "info")
    args = parser.parse_args()
    configure_cli_logging(args.log_level)

    try:
        summary = asyncio.run(
            seed(args.database_url, invoice_policy=args.invoice_policy, bcrypt_rounds=args.bcrypt_rounds)
        )
    except SeedError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2))
        raise SystemExit(1) from e

    print(json.dumps(summary.to_dict(), indent=2))


if __name__ == "__main__":
    main()
