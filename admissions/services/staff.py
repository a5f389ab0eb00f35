"""Staff records: creation, status changes and lookup."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from admissions.errors import ConflictError, InvalidStateError, NotFoundError, command, query
from admissions.models.staff import Staff
from admissions.models.user import User
from admissions.schemas.staff import StaffCreate, StaffRead, StaffStatusUpdate
from admissions.services.authorization import (
    Action,
    Actor,
    AuthorizationGuard,
    ResourceKind,
)
from admissions.services.clock import Clock, system_clock
from admissions.services.common import integrity_error_matches, parse_payload

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL_MESSAGE = "Staff with this email already exists"


class StaffService:
    def __init__(self, db: Session, clock: Clock = system_clock) -> None:
        self.db = db
        self.clock = clock
        self.guard = AuthorizationGuard(db)

    def _next_staff_number(self) -> str:
        """``STF-YYYY-NNNN``, numbered from one each year."""
        prefix = f"STF-{self.clock.now().year}-"
        latest = self.db.scalar(
            select(func.max(Staff.staff_number)).where(
                Staff.staff_number.like(f"{prefix}%")
            )
        )
        sequence = int(latest.rsplit("-", 1)[1]) + 1 if latest else 1
        return f"{prefix}{sequence:04d}"

    @command
    def create(self, actor: Actor, payload: StaffCreate | dict[str, Any]) -> Staff:
        self.guard.ensure(actor, ResourceKind.staff, Action.create)
        data = parse_payload(StaffCreate, payload)
        email = str(data.email).lower()

        if self.db.scalar(select(Staff.id).where(func.lower(Staff.email) == email)):
            raise ConflictError(DUPLICATE_EMAIL_MESSAGE)
        if data.user_id is not None and self.db.get(User, data.user_id) is None:
            raise NotFoundError("User not found")

        staff = Staff(
            user_id=data.user_id,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            middle_name=data.middle_name,
            date_of_birth=data.date_of_birth,
            gender=data.gender,
            email=email,
            phone_number=data.phone_number,
            staff_number=self._next_staff_number(),
            type=data.type,
            department=data.department,
            qualification=data.qualification,
            employment_date=data.employment_date or self.clock.today(),
            state_of_origin=data.state_of_origin,
            local_government=data.local_government,
            updated_by=actor.id,
        )
        try:
            with self.db.begin_nested():
                self.db.add(staff)
                self.db.flush()
        except IntegrityError as error:
            if integrity_error_matches(error, "uq_staff_email", "staff.email"):
                raise ConflictError(DUPLICATE_EMAIL_MESSAGE) from error
            if integrity_error_matches(error, "uq_staff_number", "staff.staff_number"):
                raise ConflictError("Staff number already assigned, retry") from error
            raise

        logger.info(
            "Created staff: %s (%s)",
            staff.id,
            staff.staff_number,
            extra={"actor_id": str(actor.id), "staff_id": str(staff.id)},
        )
        return staff

    @command
    def update_status(
        self,
        actor: Actor,
        staff_id: UUID | str,
        payload: StaffStatusUpdate | dict[str, Any],
    ) -> Staff:
        staff = self.guard.load(Staff, staff_id, actor, Action.update)
        data = parse_payload(StaffStatusUpdate, payload)
        if staff.status == data.status:
            raise InvalidStateError(f"Staff is already {data.status.value}")

        previous = staff.status
        staff.status = data.status
        staff.updated_by = actor.id
        self.db.flush()
        logger.info(
            "Staff %s status changed: %s -> %s",
            staff.id,
            previous.value,
            staff.status.value,
            extra={"actor_id": str(actor.id), "staff_id": str(staff.id)},
        )
        return staff

    @query
    def get(self, actor: Actor, staff_id: UUID | str) -> StaffRead:
        staff = self.guard.load(Staff, staff_id, actor, Action.read)
        return StaffRead.model_validate(staff)
