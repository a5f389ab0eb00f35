"""Application service: submission, review and the status timeline."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from admissions.errors import ConflictError, UnauthorizedError, command, query
from admissions.models.application import (
    ACTIVE_APPLICATION_STATUSES,
    Application,
    ApplicationStatus,
)
from admissions.models.interview import Interview, InterviewStatus
from admissions.models.student import Student
from admissions.models.user import User, UserRole, UserStatus
from admissions.schemas.application import (
    ApplicationRead,
    ApplicationReview,
    ApplicationStage,
    ApplicationStatusView,
    ApplicationSubmit,
    DocumentStatus,
    InterviewSummary,
)
from admissions.services.authorization import (
    Action,
    Actor,
    AuthorizationGuard,
    ResourceKind,
    Scope,
)
from admissions.services.clock import Clock, system_clock
from admissions.services.common import as_utc, parse_payload, require_uuid
from admissions.services.document import REQUIRED_DOCUMENT_TYPES, completeness, documents_for
from admissions.services.eligibility import check_eligibility
from admissions.services.lifecycle import (
    ApplicationNumberGenerator,
    ApplicationTrigger,
    RandomApplicationNumberGenerator,
    apply_transition,
    is_active_application_collision,
    persist_with_unique_number,
)

logger = logging.getLogger(__name__)

ACTIVE_APPLICATION_MESSAGE = "Student already has an active application"

_REVIEWED_STATUSES = frozenset(
    {
        ApplicationStatus.under_review,
        ApplicationStatus.interview_scheduled,
        ApplicationStatus.approved,
        ApplicationStatus.rejected,
        ApplicationStatus.waitlisted,
    }
)

_DECISION_STAGES = {
    ApplicationStatus.approved: "Application Approved",
    ApplicationStatus.rejected: "Application Rejected",
    ApplicationStatus.waitlisted: "Application Waitlisted",
}


class ApplicationService:
    def __init__(
        self,
        db: Session,
        clock: Clock = system_clock,
        number_generator: ApplicationNumberGenerator | None = None,
    ) -> None:
        self.db = db
        self.clock = clock
        self.guard = AuthorizationGuard(db)
        self.number_generator = number_generator or RandomApplicationNumberGenerator(
            clock
        )

    def _create_application_with_retry(
        self, actor: Actor, student: Student, data: ApplicationSubmit
    ) -> Application:
        """Insert a submitted application, regenerating the number on collisions."""
        application: Application | None = None
        status = apply_transition(None, ApplicationTrigger.submit)
        submitted_at = self.clock.now()

        def _persist_application(application_number: str) -> None:
            nonlocal application
            candidate = Application(
                application_number=application_number,
                student_id=student.id,
                user_id=actor.id,
                applying_for_level=data.applying_for_level,
                applying_for_class=data.applying_for_class,
                preferred_stream=data.preferred_stream,
                academic_year=data.academic_year,
                status=status,
                submitted_at=submitted_at,
            )
            with self.db.begin_nested():
                self.db.add(candidate)
                self.db.flush()
            application = candidate

        try:
            persist_with_unique_number(self.number_generator, _persist_application)
        except IntegrityError as error:
            if is_active_application_collision(error):
                raise ConflictError(ACTIVE_APPLICATION_MESSAGE) from error
            raise
        if application is None:
            raise RuntimeError("Failed to create application after generating a number")
        return application

    # ── Lifecycle ────────────────────────────────────────

    @command
    def submit(
        self, actor: Actor, payload: ApplicationSubmit | dict[str, Any]
    ) -> Application:
        data = parse_payload(ApplicationSubmit, payload)
        self.guard.ensure(actor, ResourceKind.application, Action.create)
        parent = self.db.get(User, actor.id)
        if (
            parent is None
            or parent.role != UserRole.parent
            or parent.status != UserStatus.active
        ):
            raise UnauthorizedError()

        student = self.guard.load(Student, data.student_id, actor, Action.read)

        active = self.db.scalar(
            select(Application.id).where(
                Application.student_id == student.id,
                Application.status.in_(ACTIVE_APPLICATION_STATUSES),
            )
        )
        if active:
            raise ConflictError(ACTIVE_APPLICATION_MESSAGE)

        check_eligibility(
            student.date_of_birth, data.applying_for_level, self.clock.today()
        )

        application = self._create_application_with_retry(actor, student, data)
        logger.info(
            "Application submitted: %s (%s)",
            application.id,
            application.application_number,
            extra={
                "actor_id": str(actor.id),
                "application_id": str(application.id),
                "student_id": str(student.id),
            },
        )
        return application

    @command
    def advance_to_review(
        self,
        actor: Actor,
        application_id: UUID | str,
        payload: ApplicationReview | dict[str, Any] | None = None,
    ) -> Application:
        data = parse_payload(ApplicationReview, payload or {})
        application = self.guard.load(Application, application_id, actor, Action.update)

        application.status = apply_transition(
            application.status, ApplicationTrigger.advance_to_review
        )
        application.reviewed_at = self.clock.now()
        application.reviewed_by = actor.id
        if data.review_notes is not None:
            application.review_notes = data.review_notes
        self.db.flush()
        logger.info(
            "Application %s moved to review by %s",
            application.id,
            actor.id,
            extra={"actor_id": str(actor.id), "application_id": str(application.id)},
        )
        return application

    # ── Queries ──────────────────────────────────────────

    @query
    def get(self, actor: Actor, application_id: UUID | str) -> ApplicationRead:
        application = self.guard.load(Application, application_id, actor, Action.read)
        return ApplicationRead.model_validate(application)

    @query
    def list_for_parent(
        self, actor: Actor, parent_id: UUID | str | None = None
    ) -> list[ApplicationRead]:
        scope = self.guard.ensure(actor, ResourceKind.application, Action.read)
        target = require_uuid(parent_id) if parent_id else actor.id
        if target != actor.id and scope != Scope.all:
            raise UnauthorizedError()
        stmt = (
            select(Application)
            .where(Application.user_id == target)
            .order_by(Application.created_at.desc())
        )
        return [
            ApplicationRead.model_validate(application)
            for application in self.db.scalars(stmt).all()
        ]

    @query
    def get_status(self, actor: Actor, application_id: UUID | str) -> ApplicationStatusView:
        """Status timeline for one application, with document and interview summaries."""
        application = self.guard.load(Application, application_id, actor, Action.read)
        student = self.db.get(Student, application.student_id)
        documents = documents_for(self.db, application.id)
        complete, verified = completeness(documents)
        interview = self.db.scalar(
            select(Interview).where(Interview.application_id == application.id)
        )

        present = {document.type for document in documents}
        stages = [
            ApplicationStage(
                name="Application Submitted",
                completed=application.submitted_at is not None,
                completed_at=application.submitted_at,
            ),
            ApplicationStage(
                name="Documents Uploaded",
                completed=complete,
                completed_at=max(
                    (as_utc(d.uploaded_at) for d in documents if d.uploaded_at), default=None
                )
                if complete
                else None,
                notes=(
                    f"{len(present & REQUIRED_DOCUMENT_TYPES)}/"
                    f"{len(REQUIRED_DOCUMENT_TYPES)} required documents uploaded"
                ),
            ),
            ApplicationStage(
                name="Under Review",
                completed=application.status in _REVIEWED_STATUSES,
                completed_at=application.reviewed_at,
                notes=application.review_notes,
            ),
            ApplicationStage(
                name="Interview Scheduled",
                completed=interview is not None,
                completed_at=interview.created_at if interview else None,
                notes=(
                    f"{interview.scheduled_date.isoformat()} at "
                    f"{interview.scheduled_time.strftime('%H:%M')}"
                    if interview
                    else None
                ),
            ),
            ApplicationStage(
                name="Interview Conducted",
                completed=bool(
                    interview and interview.status == InterviewStatus.completed
                ),
                completed_at=interview.conducted_at if interview else None,
                notes=(
                    f"Score: {interview.score}/100"
                    if interview and interview.score is not None
                    else None
                ),
            ),
            ApplicationStage(
                name=_DECISION_STAGES.get(application.status, "Decision Pending"),
                completed=application.status in _DECISION_STAGES,
                completed_at=application.decided_at,
                notes=application.decision_remarks,
            ),
        ]

        return ApplicationStatusView(
            application_id=application.id,
            application_number=application.application_number,
            student_name=student.full_name if student else "",
            status=application.status,
            submitted_at=application.submitted_at,
            decision_remarks=application.decision_remarks,
            documents_complete=complete,
            documents_verified=verified,
            stages=stages,
            documents=[
                DocumentStatus(
                    type=document.type,
                    file_name=document.file_name,
                    is_verified=document.is_verified,
                    verification_label=document.verification_label,
                )
                for document in documents
            ],
            interview=InterviewSummary(
                scheduled_date=interview.scheduled_date,
                scheduled_time=interview.scheduled_time,
                type=interview.type,
                status=interview.status,
                interviewer_name=interview.interviewer_name,
                score=interview.score,
            )
            if interview
            else None,
        )
