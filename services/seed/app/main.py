from __future__ import annotations

import sqlalchemy as sa
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncConnection

from db.errors import SeedError
from db.passwords import PasswordHasher
from db.records import SeedFixtures
from db.seed import Seeder
from services.seed.app import observability
from services.seed.app.db import ENGINE, get_connection, get_fixtures
from services.seed.app.logging import configure_logging, logger, seed_run_context
from services.seed.app.schemas import SeedErrorResponse, SeedResponse
from services.seed.app.settings import SETTINGS


app = FastAPI(title="Dashboard Seed API", version="0.1.0")
configure_logging(SETTINGS.log_level, service_name="seed")
observability.setup_tracing(app, service_name="seed")
observability.add_metrics_middleware(app, service_name="seed")
observability.instrument_sqlalchemy(ENGINE)


@app.exception_handler(SeedError)
async def seed_error_handler(request: Request, exc: SeedError) -> JSONResponse:
    observability.record_seed_failure(exc.kind.value)
    body = SeedErrorResponse(error=exc.to_dict())
    return JSONResponse(status_code=500, content=body.model_dump())


@app.get("/healthz")
async def healthz() -> dict:
    async with ENGINE.connect() as conn:
        await conn.execute(sa.text("SELECT 1"))
    return {"ok": True}


@app.get(
    "/seed",
    response_model=SeedResponse,
    responses={500: {"model": SeedErrorResponse}},
)
async def seed_database(
    conn: AsyncConnection = Depends(get_connection),
    fixtures: SeedFixtures = Depends(get_fixtures),
) -> SeedResponse:
    seeder = Seeder(
        conn,
        hasher=PasswordHasher(SETTINGS.bcrypt_rounds),
        invoice_policy=SETTINGS.invoice_policy,
    )
    with seed_run_context():
        logger.info("seed_started", order=seeder.order, invoice_policy=SETTINGS.invoice_policy)
        summary = await seeder.run(fixtures)

    observability.record_seed_success(summary)
    out = summary.to_dict()
    return SeedResponse(message=out.pop("message"), summary=out)
