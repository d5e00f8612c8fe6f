from __future__ import annotations

import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class UserRecord(StrictModel):
    id: UUID
    name: Annotated[str, Field(min_length=1, max_length=255)]
    email: str
    # Plaintext; hashed by the seeder before it reaches the database.
    password: Annotated[str, Field(min_length=1)]


class CustomerRecord(StrictModel):
    id: UUID
    name: Annotated[str, Field(min_length=1, max_length=255)]
    email: Annotated[str, Field(max_length=255)]
    image_url: Annotated[str, Field(max_length=255)]


class InvoiceRecord(StrictModel):
    customer_id: UUID
    amount: int
    status: Literal["pending", "paid"]
    date: datetime.date


class RevenueRecord(StrictModel):
    month: Annotated[str, Field(min_length=1, max_length=4)]
    revenue: int


class SeedFixtures(StrictModel):
    users: list[UserRecord] = []
    customers: list[CustomerRecord] = []
    invoices: list[InvoiceRecord] = []
    revenue: list[RevenueRecord] = []
