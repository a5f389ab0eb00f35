"""Application state machine and application-number generation."""
from __future__ import annotations

import enum
import logging
import random
from collections.abc import Callable
from typing import Protocol

from sqlalchemy.exc import IntegrityError

from admissions.errors import ConflictError, InvalidStateError
from admissions.models.application import ApplicationStatus
from admissions.services.clock import Clock, system_clock
from admissions.services.common import integrity_error_matches

logger = logging.getLogger(__name__)

MAX_NUMBER_ATTEMPTS = 5


class ApplicationTrigger(str, enum.Enum):
    submit = "submit"
    advance_to_review = "advance_to_review"
    schedule_interview = "schedule_interview"
    conduct_interview = "conduct_interview"


# trigger -> (allowed source states, allowed target states)
# ``None`` as a source means the application does not exist yet.
TRANSITIONS: dict[
    ApplicationTrigger,
    tuple[frozenset[ApplicationStatus | None], frozenset[ApplicationStatus]],
] = {
    ApplicationTrigger.submit: (
        frozenset({None, ApplicationStatus.draft}),
        frozenset({ApplicationStatus.submitted}),
    ),
    ApplicationTrigger.advance_to_review: (
        frozenset({ApplicationStatus.submitted}),
        frozenset({ApplicationStatus.under_review}),
    ),
    ApplicationTrigger.schedule_interview: (
        frozenset({ApplicationStatus.under_review}),
        frozenset({ApplicationStatus.interview_scheduled}),
    ),
    ApplicationTrigger.conduct_interview: (
        frozenset({ApplicationStatus.interview_scheduled}),
        frozenset({ApplicationStatus.approved, ApplicationStatus.rejected}),
    ),
}

_TRIGGER_LABELS = {
    ApplicationTrigger.submit: "submitted",
    ApplicationTrigger.advance_to_review: "moved to review",
    ApplicationTrigger.schedule_interview: "scheduled for interview",
    ApplicationTrigger.conduct_interview: "decided by interview",
}


def apply_transition(
    current: ApplicationStatus | None,
    trigger: ApplicationTrigger,
    target: ApplicationStatus | None = None,
) -> ApplicationStatus:
    """Return the status ``trigger`` moves ``current`` to, or raise InvalidStateError.

    Triggers with a single outcome ignore ``target``; ``conduct_interview``
    requires it to pick approved or rejected.
    """
    sources, targets = TRANSITIONS[trigger]
    if current not in sources:
        state = current.value if current else "new"
        raise InvalidStateError(
            f"Application in status '{state}' cannot be {_TRIGGER_LABELS[trigger]}"
        )
    if target is None:
        if len(targets) != 1:
            raise InvalidStateError(
                f"Trigger '{trigger.value}' requires an explicit target status"
            )
        return next(iter(targets))
    if target not in targets:
        raise InvalidStateError(
            f"Trigger '{trigger.value}' cannot produce status '{target.value}'"
        )
    return target


def can_transition(current: ApplicationStatus | None, trigger: ApplicationTrigger) -> bool:
    return current in TRANSITIONS[trigger][0]


# ── Application numbers ──────────────────────────────────


class ApplicationNumberGenerator(Protocol):
    def __call__(self) -> str: ...


class RandomApplicationNumberGenerator:
    """``APP-YYYYMMDD-NNNN`` with a random four-digit suffix."""

    def __init__(self, clock: Clock = system_clock, rng: random.Random | None = None):
        self.clock = clock
        self.rng = rng or random.SystemRandom()

    def __call__(self) -> str:
        stamp = self.clock.now().strftime("%Y%m%d")
        return f"APP-{stamp}-{self.rng.randint(1000, 9999)}"


def persist_with_unique_number(
    generate: ApplicationNumberGenerator,
    persist: Callable[[str], None],
) -> str:
    """Call ``persist`` with fresh numbers until one is not a duplicate.

    ``persist`` must flush inside a savepoint so a collision only discards
    the failed attempt.
    """
    last_collision_error: IntegrityError | None = None

    for attempt in range(1, MAX_NUMBER_ATTEMPTS + 1):
        application_number = generate()
        try:
            persist(application_number)
            return application_number
        except IntegrityError as error:
            if not is_application_number_collision(error):
                raise
            last_collision_error = error
            logger.warning(
                "Application number collision on attempt %d/%d",
                attempt,
                MAX_NUMBER_ATTEMPTS,
            )

    raise ConflictError(
        f"Failed to generate a unique application number after "
        f"{MAX_NUMBER_ATTEMPTS} attempts"
    ) from last_collision_error


def is_application_number_collision(error: IntegrityError) -> bool:
    return integrity_error_matches(
        error, "uq_applications_number", "applications.application_number"
    )


def is_active_application_collision(error: IntegrityError) -> bool:
    return integrity_error_matches(
        error, "uq_applications_active_student", "applications.student_id"
    )
