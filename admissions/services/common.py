"""Shared service utilities: UUID coercion, payload parsing, pagination."""
from __future__ import annotations

import math
import uuid
from datetime import UTC, datetime
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce_uuid(value: Any) -> uuid.UUID | None:
    """Convert a string or UUID to UUID, or return None."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def require_uuid(value: Any) -> uuid.UUID:
    """Convert a string or UUID to UUID, raising ValueError if None."""
    result = coerce_uuid(value)
    if result is None:
        raise ValueError("UUID value is required but got None")
    return result


def parse_payload(schema: type[ModelT], payload: ModelT | dict[str, Any]) -> ModelT:
    """Accept either a schema instance or a plain mapping for a command payload.

    Raises ``pydantic.ValidationError`` for bad input; the service boundary
    turns that into a ``validation_failed`` result.
    """
    if isinstance(payload, schema):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    return schema.model_validate(payload)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops tzinfo on round-trip; treat naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def integrity_error_matches(error: IntegrityError, constraint: str, *columns: str) -> bool:
    """Return True when an IntegrityError was raised by the named constraint.

    PostgreSQL reports the constraint name through ``diag``; SQLite only names
    the offending ``table.column`` pairs in its message.
    """
    original = getattr(error, "orig", None)
    diag = getattr(original, "diag", None)
    if getattr(diag, "constraint_name", None) == constraint:
        return True

    message = str(original or error).lower()
    if constraint.lower() in message:
        return True
    return bool(columns) and all(column.lower() in message for column in columns)


def paginate(
    db: Session,
    query: Select[Any],
    *,
    page: int = 1,
    page_size: int = 25,
    max_page_size: int = 100,
) -> dict[str, Any]:
    """Execute a query with pagination and return a standardized response.

    Returns:
        {
            "items": [...],
            "total": 150,
            "page": 1,
            "page_size": 25,
            "pages": 6,
        }
    """
    page = max(1, page)
    page_size = min(max(1, page_size), max_page_size)
    offset = (page - 1) * page_size

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = db.scalar(count_query) or 0

    items = list(db.scalars(query.limit(page_size).offset(offset)).all())

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": math.ceil(total / page_size) if page_size else 0,
    }
