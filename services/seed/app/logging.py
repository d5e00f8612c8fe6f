from __future__ import annotations

import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import structlog


def configure_logging(log_level: str, service_name: str) -> None:
    def add_service(_logger, _method, event_dict: dict) -> dict:
        event_dict.setdefault("service", service_name)
        return event_dict

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level.upper())
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_service,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(log_level.upper())),
        cache_logger_on_first_use=True,
    )


@contextmanager
def seed_run_context() -> Iterator[str]:
    """Tag every log line emitted during one seeding run with the same run id."""
    run_id = uuid.uuid4().hex
    with structlog.contextvars.bound_contextvars(seed_run_id=run_id):
        yield run_id


logger = structlog.get_logger()
