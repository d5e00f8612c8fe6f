from __future__ import annotations

import pytest


def test_declared_steps_run_users_customers_invoices_revenue() -> None:
    from db.seed import STEPS, resolve_order

    assert [s.name for s in resolve_order(STEPS)] == ["users", "customers", "invoices", "revenue"]


def test_dependency_moves_invoices_after_customers() -> None:
    from db.seed import SeedStep, customers, invoices, revenue, resolve_order

    steps = [SeedStep(invoices, depends_on=("customers",)), SeedStep(revenue), SeedStep(customers)]
    assert [s.name for s in resolve_order(steps)] == ["revenue", "customers", "invoices"]


def test_unknown_dependency_raises() -> None:
    from db.seed import SeedStep, invoices, resolve_order

    with pytest.raises(ValueError, match="unknown step 'customers'"):
        resolve_order([SeedStep(invoices, depends_on=("customers",))])


def test_cycle_raises() -> None:
    from db.seed import SeedStep, customers, invoices, resolve_order

    steps = [SeedStep(invoices, depends_on=("customers",)), SeedStep(customers, depends_on=("invoices",))]
    with pytest.raises(ValueError, match="cyclic step dependencies"):
        resolve_order(steps)
