from __future__ import annotations

from enum import Enum

from sqlalchemy import exc as sa_exc


class SeedErrorKind(str, Enum):
    SCHEMA = "schema"
    CONSTRAINT = "constraint"
    HASHING = "hashing"
    TRANSPORT = "transport"
    TRANSACTION = "transaction"


class SeedPhase(str, Enum):
    SCHEMA = "schema"
    INSERT = "insert"
    HASHING = "hashing"
    COMMIT = "commit"


_PHASE_KINDS = {
    SeedPhase.SCHEMA: SeedErrorKind.SCHEMA,
    SeedPhase.INSERT: SeedErrorKind.CONSTRAINT,
    SeedPhase.HASHING: SeedErrorKind.HASHING,
    SeedPhase.COMMIT: SeedErrorKind.TRANSACTION,
}


class SeedError(Exception):
    """A seeding run failed and was rolled back. The original exception is `__cause__`."""

    def __init__(self, kind: SeedErrorKind, step: str, detail: str) -> None:
        super().__init__(f"{kind.value} failure in {step}: {detail}")
        self.kind = kind
        self.step = step
        self.detail = detail

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "step": self.step, "detail": self.detail}


def is_transport_error(exc: BaseException) -> bool:
    if isinstance(exc, (OSError, sa_exc.OperationalError)):
        return True
    return isinstance(exc, sa_exc.DBAPIError) and bool(exc.connection_invalidated)


def classify_error(exc: BaseException, phase: SeedPhase) -> SeedErrorKind:
    # A dropped connection is transport no matter which phase noticed it.
    if is_transport_error(exc):
        return SeedErrorKind.TRANSPORT
    return _PHASE_KINDS[phase]


def seed_error_from(exc: BaseException, phase: SeedPhase, step: str) -> SeedError:
    detail = str(getattr(exc, "orig", None) or exc)
    return SeedError(classify_error(exc, phase), step, detail)
