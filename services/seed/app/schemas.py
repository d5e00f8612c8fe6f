from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class TableCounts(StrictModel):
    inserted: int = Field(ge=0)
    skipped: int = Field(ge=0)


class SeedSummaryOut(StrictModel):
    duration_ms: float
    tables: dict[str, TableCounts]


class SeedResponse(StrictModel):
    message: str
    summary: SeedSummaryOut


class SeedErrorDetail(StrictModel):
    kind: Literal["schema", "constraint", "hashing", "transport", "transaction"]
    step: str
    detail: str


class SeedErrorResponse(StrictModel):
    error: SeedErrorDetail
