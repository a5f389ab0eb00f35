"""Student profiles owned by parent accounts."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from admissions.errors import (
    ConflictError,
    InvalidStateError,
    UnauthorizedError,
    ValidationFailedError,
    command,
    query,
)
from admissions.models.student import Student, StudentStatus
from admissions.models.user import User, UserRole, UserStatus
from admissions.schemas.student import StudentCreate, StudentRead, StudentUpdate
from admissions.services.authorization import (
    Action,
    Actor,
    AuthorizationGuard,
    ResourceKind,
    Scope,
)
from admissions.services.clock import Clock, system_clock
from admissions.services.common import paginate, parse_payload
from admissions.services.eligibility import calculate_age

logger = logging.getLogger(__name__)

MIN_STUDENT_AGE = 10
MAX_EXPECTED_AGE = 18
MAX_STUDENT_AGE = 25


class StudentService:
    def __init__(self, db: Session, clock: Clock = system_clock) -> None:
        self.db = db
        self.clock = clock
        self.guard = AuthorizationGuard(db)

    @command
    def create(self, actor: Actor, payload: StudentCreate | dict[str, Any]) -> Student:
        self.guard.ensure(actor, ResourceKind.student, Action.create)
        data = parse_payload(StudentCreate, payload)

        parent = self.db.get(User, actor.id)
        if parent is None or parent.role != UserRole.parent:
            raise UnauthorizedError()
        if parent.status != UserStatus.active:
            raise InvalidStateError("Parent account is not active")

        email = str(data.email).lower()
        if self.db.scalar(select(Student.id).where(Student.email == email)):
            raise ConflictError("A student with this email already exists")
        if self.db.scalar(
            select(Student.id).where(Student.phone_number == data.phone_number)
        ):
            raise ConflictError("A student with this phone number already exists")

        age = calculate_age(data.date_of_birth, self.clock.today())
        if age < MIN_STUDENT_AGE:
            raise ValidationFailedError(
                f"Student must be at least {MIN_STUDENT_AGE} years old"
            )
        if age > MAX_STUDENT_AGE:
            raise ValidationFailedError(
                f"Student cannot be older than {MAX_STUDENT_AGE} years"
            )
        if age > MAX_EXPECTED_AGE:
            logger.warning(
                "Creating student aged %d, above the usual secondary range",
                age,
                extra={"actor_id": str(actor.id)},
            )

        student = Student(
            parent_user_id=parent.id,
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            middle_name=data.middle_name,
            date_of_birth=data.date_of_birth,
            gender=data.gender,
            religion=data.religion,
            email=email,
            phone_number=data.phone_number,
            address=data.address.to_value(),
            previous_school=data.previous_school,
            previous_class=data.previous_class,
            state_of_origin=data.state_of_origin or parent.state_of_origin,
            local_government=data.local_government or parent.local_government,
            nationality=data.nationality or "Nigerian",
            status=StudentStatus.prospective,
            selected_stream=data.preferred_stream,
        )
        student.father_info = data.father_info.to_value()
        student.mother_info = data.mother_info.to_value()
        student.guardian_info = (
            data.guardian_info.to_value() if data.guardian_info else None
        )
        self.db.add(student)
        self.db.flush()
        logger.info(
            "Created student: %s for parent %s",
            student.id,
            parent.id,
            extra={"actor_id": str(actor.id), "student_id": str(student.id)},
        )
        return student

    @command
    def update(
        self,
        actor: Actor,
        student_id: UUID | str,
        payload: StudentUpdate | dict[str, Any],
    ) -> Student:
        student = self.guard.load(Student, student_id, actor, Action.update)
        data = parse_payload(StudentUpdate, payload)
        changes = data.model_dump(exclude_unset=True)

        for field in (
            "first_name",
            "last_name",
            "middle_name",
            "religion",
            "previous_school",
            "previous_class",
        ):
            if field in changes:
                setattr(student, field, changes[field])
        if "preferred_stream" in changes:
            student.selected_stream = data.preferred_stream
        # Value objects are replaced wholesale.
        if data.address is not None:
            student.address = data.address.to_value()
        if data.father_info is not None:
            student.father_info = data.father_info.to_value()
        if data.mother_info is not None:
            student.mother_info = data.mother_info.to_value()
        if "guardian_info" in changes:
            student.guardian_info = (
                data.guardian_info.to_value() if data.guardian_info else None
            )

        self.db.flush()
        logger.info(
            "Updated student: %s",
            student.id,
            extra={"actor_id": str(actor.id), "student_id": str(student.id)},
        )
        return student

    # ── Queries ──────────────────────────────────────────

    @query
    def get(self, actor: Actor, student_id: UUID | str) -> StudentRead:
        student = self.guard.load(Student, student_id, actor, Action.read)
        return StudentRead.model_validate(student)

    @query
    def list_for_parent(self, actor: Actor) -> list[StudentRead]:
        self.guard.ensure(actor, ResourceKind.student, Action.read)
        stmt = (
            select(Student)
            .where(Student.parent_user_id == actor.id)
            .order_by(Student.created_at.desc())
        )
        return [StudentRead.model_validate(s) for s in self.db.scalars(stmt).all()]

    @query
    def list_all(
        self, actor: Actor, *, page: int = 1, page_size: int = 25
    ) -> dict[str, Any]:
        scope = self.guard.ensure(actor, ResourceKind.student, Action.read)
        if scope != Scope.all:
            raise UnauthorizedError()
        stmt = select(Student).order_by(Student.last_name.asc(), Student.first_name.asc())
        page_data = paginate(self.db, stmt, page=page, page_size=page_size)
        page_data["items"] = [StudentRead.model_validate(s) for s in page_data["items"]]
        return page_data
