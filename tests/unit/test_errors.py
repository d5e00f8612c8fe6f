from __future__ import annotations

import pytest
from sqlalchemy import exc as sa_exc


def _integrity() -> sa_exc.IntegrityError:
    return sa_exc.IntegrityError("INSERT INTO users ...", {}, Exception("duplicate key value"))


def test_insert_phase_failures_are_constraint_errors() -> None:
    from db.errors import SeedErrorKind, SeedPhase, classify_error

    assert classify_error(_integrity(), SeedPhase.INSERT) is SeedErrorKind.CONSTRAINT


@pytest.mark.parametrize(
    "exc",
    [
        ConnectionRefusedError("refused"),
        sa_exc.OperationalError("SELECT 1", {}, Exception("server closed the connection")),
        sa_exc.DBAPIError("SELECT 1", {}, Exception("gone"), connection_invalidated=True),
    ],
)
def test_connection_failures_are_transport_in_any_phase(exc: BaseException) -> None:
    from db.errors import SeedErrorKind, SeedPhase, classify_error

    for phase in SeedPhase:
        assert classify_error(exc, phase) is SeedErrorKind.TRANSPORT


def test_phase_decides_kind_for_other_failures() -> None:
    from db.errors import SeedErrorKind, SeedPhase, classify_error

    err = RuntimeError("boom")
    assert classify_error(err, SeedPhase.SCHEMA) is SeedErrorKind.SCHEMA
    assert classify_error(err, SeedPhase.HASHING) is SeedErrorKind.HASHING
    assert classify_error(err, SeedPhase.COMMIT) is SeedErrorKind.TRANSACTION


def test_seed_error_uses_driver_message_and_serializes() -> None:
    from db.errors import SeedPhase, seed_error_from

    err = seed_error_from(_integrity(), SeedPhase.INSERT, "users")
    assert err.to_dict() == {"kind": "constraint", "step": "users", "detail": "duplicate key value"}
    assert "constraint failure in users" in str(err)
