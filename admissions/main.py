from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from admissions import models  # noqa: F401
from admissions.config import settings, validate_settings
from admissions.db import Base, SessionLocal, engine
from admissions.logging import configure_logging

logger = logging.getLogger(__name__)


def startup(create_tables: bool = True) -> list[str]:
    """Configure logging, report configuration warnings and create tables."""
    configure_logging()

    warnings = validate_settings(settings)
    for w in warnings:
        logger.warning("Config warning: %s", w)

    if create_tables:
        Base.metadata.create_all(engine)
        logger.info("Database tables ensured")
    return warnings


@contextmanager
def session_scope() -> Iterator[Session]:
    """Request-scoped session; services commit or roll back their own work."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
