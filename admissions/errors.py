"""Service error taxonomy and the result envelope returned by every command/query.

Services raise ``ServiceError`` subclasses internally. Public service methods
are wrapped with ``command`` or ``query``, which turn those errors into a
``Result`` failure so nothing but a ``Result`` crosses the service boundary:

    {
        "code": "conflict",
        "error": "Human-readable message",
        "errors": ["optional", "sub-errors"]
    }
"""
from __future__ import annotations

import enum
import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")

UNAUTHORIZED_MESSAGE = "Unauthorized"
UNEXPECTED_MESSAGE = "An unexpected error occurred"


class ErrorKind(str, enum.Enum):
    not_found = "not_found"
    unauthorized = "unauthorized"
    invalid_state = "invalid_state"
    conflict = "conflict"
    validation_failed = "validation_failed"
    unexpected = "unexpected"


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.unexpected

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class NotFoundError(ServiceError):
    kind = ErrorKind.not_found


class UnauthorizedError(ServiceError):
    kind = ErrorKind.unauthorized

    def __init__(self, message: str = UNAUTHORIZED_MESSAGE) -> None:
        super().__init__(message)


class InvalidStateError(ServiceError):
    kind = ErrorKind.invalid_state


class ConflictError(ServiceError):
    kind = ErrorKind.conflict


class ValidationFailedError(ServiceError):
    kind = ErrorKind.validation_failed


@dataclass
class Result(Generic[T]):
    ok: bool
    value: T | None = None
    message: str = ""
    kind: ErrorKind | None = None
    error: str = ""
    errors: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: T | None = None, message: str = "Success") -> Result[T]:
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(
        cls, kind: ErrorKind, error: str, errors: list[str] | None = None
    ) -> Result[T]:
        return cls(ok=False, kind=kind, error=error, errors=list(errors or []))

    def to_dict(self) -> dict[str, Any]:
        if self.ok:
            return {"message": self.message, "value": self.value}
        return {
            "code": self.kind.value if self.kind else ErrorKind.unexpected.value,
            "error": self.error,
            "errors": self.errors,
        }


def _validation_messages(exc: ValidationError) -> list[str]:
    messages = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        text = item.get("msg", "Invalid value")
        messages.append(f"{location}: {text}" if location else text)
    return messages


def _run(func: Callable[..., Any], self: Any, commit: bool, *args, **kwargs) -> Result:
    db = self.db
    try:
        value = func(self, *args, **kwargs)
        if commit:
            db.commit()
    except ServiceError as exc:
        db.rollback()
        logger.info(
            "%s rejected: %s",
            func.__qualname__,
            exc.message,
            extra={"error_code": exc.kind.value},
        )
        return Result.failure(exc.kind, exc.message, exc.errors)
    except ValidationError as exc:
        db.rollback()
        return Result.failure(
            ErrorKind.validation_failed, "Validation error", _validation_messages(exc)
        )
    except Exception:
        db.rollback()
        logger.exception("Unexpected failure in %s", func.__qualname__)
        return Result.failure(ErrorKind.unexpected, UNEXPECTED_MESSAGE)
    if isinstance(value, Result):
        return value
    return Result.success(value)


def command(func: Callable[..., Any]) -> Callable[..., Result]:
    """Run a mutating service method as one unit of work.

    Commits on success; rolls back and returns a failure ``Result`` otherwise.
    """

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> Result:
        return _run(func, self, True, *args, **kwargs)

    return wrapper


def query(func: Callable[..., Any]) -> Callable[..., Result]:
    """Run a read-only service method, converting errors into a ``Result``."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs) -> Result:
        return _run(func, self, False, *args, **kwargs)

    return wrapper
