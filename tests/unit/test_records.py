from __future__ import annotations

import pytest
from pydantic import ValidationError


def test_placeholder_invoices_reference_placeholder_customers() -> None:
    from db.placeholder_data import PLACEHOLDER_FIXTURES

    customer_ids = {c.id for c in PLACEHOLDER_FIXTURES.customers}
    assert PLACEHOLDER_FIXTURES.invoices
    assert all(i.customer_id in customer_ids for i in PLACEHOLDER_FIXTURES.invoices)


def test_placeholder_conflict_keys_are_unique() -> None:
    from db.placeholder_data import PLACEHOLDER_FIXTURES as fx

    assert len({u.id for u in fx.users}) == len(fx.users)
    assert len({u.email for u in fx.users}) == len(fx.users)
    assert len({c.id for c in fx.customers}) == len(fx.customers)
    assert len({r.month for r in fx.revenue}) == len(fx.revenue) == 12


def test_records_reject_extra_fields() -> None:
    from db.records import RevenueRecord

    with pytest.raises(ValidationError):
        RevenueRecord(month="Jan", revenue=1, year=2024)


def test_revenue_month_is_at_most_four_characters() -> None:
    from db.records import RevenueRecord

    with pytest.raises(ValidationError):
        RevenueRecord(month="January", revenue=1)


def test_invoice_status_and_date_are_validated() -> None:
    from db.records import InvoiceRecord

    ok = InvoiceRecord(customer_id="d6e15727-9fe1-4961-8c5b-ea44a9bd81aa", amount=500, status="paid", date="2024-01-01")
    assert ok.date.isoformat() == "2024-01-01"

    with pytest.raises(ValidationError):
        InvoiceRecord(customer_id=ok.customer_id, amount=500, status="void", date="2024-01-01")
    with pytest.raises(ValidationError):
        InvoiceRecord(customer_id="not-a-uuid", amount=500, status="paid", date="2024-01-01")
