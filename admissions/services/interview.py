"""Interview scheduling, conduct and interviewer availability."""

import logging
from collections import Counter
from datetime import date, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from admissions.errors import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationFailedError,
    command,
    query,
)
from admissions.models.application import Application, ApplicationStatus
from admissions.models.interview import Interview, InterviewStatus
from admissions.models.staff import Staff, StaffStatus, StaffType
from admissions.models.student import Student
from admissions.schemas.interview import (
    InterviewConduct,
    InterviewerAvailability,
    InterviewRead,
    InterviewSchedule,
    UpcomingInterview,
)
from admissions.services.authorization import (
    Action,
    Actor,
    AuthorizationGuard,
    ResourceKind,
    Scope,
)
from admissions.services.clock import Clock, system_clock
from admissions.services.common import integrity_error_matches, parse_payload
from admissions.services.lifecycle import ApplicationTrigger, apply_transition

logger = logging.getLogger(__name__)

PASS_MARK = 70
MAX_DAILY_INTERVIEWS = 4
AVAILABILITY_LOOKAHEAD_DAYS = 7
EARLY_START = timedelta(minutes=15)
UPCOMING_LIMIT = 50

SLOT_TAKEN_MESSAGE = "Interviewer already has an interview scheduled at this time"


def decision_remarks(score: int, remarks: str | None) -> str:
    outcome = "passed" if score >= PASS_MARK else "failed"
    summary = f"Interview {outcome} with score: {score}/100."
    if remarks and remarks.strip():
        return f"{summary} {remarks.strip()}"
    return summary


def next_available_date(
    counts: Counter, staff_id: UUID, on_date: date
) -> tuple[bool, date | None]:
    """Availability on ``on_date`` and, when busy, the first open day.

    An available interviewer has no next date. Otherwise the following seven
    days are scanned; when all are full the eighth day is reported without
    checking it.
    """
    if counts[(staff_id, on_date)] < MAX_DAILY_INTERVIEWS:
        return True, None
    for offset in range(1, AVAILABILITY_LOOKAHEAD_DAYS + 1):
        candidate = on_date + timedelta(days=offset)
        if counts[(staff_id, candidate)] < MAX_DAILY_INTERVIEWS:
            return False, candidate
    return False, on_date + timedelta(days=AVAILABILITY_LOOKAHEAD_DAYS + 1)


class InterviewService:
    def __init__(self, db: Session, clock: Clock = system_clock) -> None:
        self.db = db
        self.clock = clock
        self.guard = AuthorizationGuard(db)

    @command
    def schedule(
        self, actor: Actor, payload: InterviewSchedule | dict[str, Any]
    ) -> Interview:
        self.guard.ensure(actor, ResourceKind.interview, Action.create)
        data = parse_payload(InterviewSchedule, payload)
        if data.scheduled_date < self.clock.today():
            raise ValidationFailedError("Interview date cannot be in the past")

        application = self.guard.load(
            Application, data.application_id, actor, Action.read
        )
        next_status = apply_transition(
            application.status, ApplicationTrigger.schedule_interview
        )

        interviewer = self.db.get(Staff, data.interviewer_id)
        if interviewer is None:
            raise NotFoundError("Interviewer not found")
        if interviewer.status != StaffStatus.active:
            raise ValidationFailedError("Interviewer is not active")
        if interviewer.type != StaffType.teaching:
            raise ValidationFailedError("Only teaching staff can conduct interviews")

        slot_taken = self.db.scalar(
            select(Interview.id).where(
                Interview.interviewer_id == interviewer.id,
                Interview.scheduled_date == data.scheduled_date,
                Interview.scheduled_time == data.scheduled_time,
                Interview.status == InterviewStatus.scheduled,
            )
        )
        if slot_taken:
            raise ConflictError(SLOT_TAKEN_MESSAGE)

        existing = self.db.scalar(
            select(Interview.id).where(Interview.application_id == application.id)
        )
        if existing:
            raise ConflictError("An interview already exists for this application")

        interview = Interview(
            application_id=application.id,
            student_id=application.student_id,
            interviewer_id=interviewer.id,
            interviewer_name=interviewer.full_name,
            scheduled_date=data.scheduled_date,
            scheduled_time=data.scheduled_time,
            type=data.type,
            meeting_link=data.meeting_link,
            meeting_id=data.meeting_id,
            status=InterviewStatus.scheduled,
            scheduled_by=actor.id,
        )
        try:
            with self.db.begin_nested():
                self.db.add(interview)
                self.db.flush()
        except IntegrityError as error:
            if integrity_error_matches(
                error,
                "uq_interviews_interviewer_slot",
                "interviews.interviewer_id",
                "interviews.scheduled_time",
            ):
                raise ConflictError(SLOT_TAKEN_MESSAGE) from error
            if integrity_error_matches(
                error, "uq_interviews_application", "interviews.application_id"
            ):
                raise ConflictError(
                    "An interview already exists for this application"
                ) from error
            raise

        application.status = next_status
        self.db.flush()
        logger.info(
            "Scheduled interview %s for application %s with %s",
            interview.id,
            application.id,
            interviewer.full_name,
            extra={
                "actor_id": str(actor.id),
                "application_id": str(application.id),
                "interview_id": str(interview.id),
                "staff_id": str(interviewer.id),
            },
        )
        return interview

    @command
    def conduct(
        self,
        actor: Actor,
        interview_id: UUID | str,
        payload: InterviewConduct | dict[str, Any],
    ) -> Interview:
        """Record the outcome and decide the application in the same transaction."""
        interview = self.guard.load(Interview, interview_id, actor, Action.conduct)
        data = parse_payload(InterviewConduct, payload)

        if interview.status != InterviewStatus.scheduled:
            raise InvalidStateError(f"Interview is already {interview.status.value}")
        now = self.clock.now()
        if now < interview.scheduled_at - EARLY_START:
            raise InvalidStateError(
                "Interview can only be conducted at or after scheduled time"
            )

        application = self.db.get(Application, interview.application_id)
        if application is None:
            raise NotFoundError("Application not found")
        target = (
            ApplicationStatus.approved
            if data.score >= PASS_MARK
            else ApplicationStatus.rejected
        )
        application.status = apply_transition(
            application.status, ApplicationTrigger.conduct_interview, target
        )
        application.decided_at = now
        application.decision_remarks = decision_remarks(data.score, data.remarks)

        interview.status = InterviewStatus.completed
        interview.score = data.score
        interview.feedback = data.feedback.strip()
        interview.remarks = data.remarks
        interview.conducted_at = now
        self.db.flush()
        logger.info(
            "Interview %s conducted, application %s %s with score %d",
            interview.id,
            application.id,
            application.status.value,
            data.score,
            extra={
                "actor_id": str(actor.id),
                "application_id": str(application.id),
                "interview_id": str(interview.id),
            },
        )
        return interview

    # ── Queries ──────────────────────────────────────────

    @query
    def find_available(
        self, actor: Actor, on_date: date
    ) -> list[InterviewerAvailability]:
        self.guard.ensure(actor, ResourceKind.interview, Action.create)
        interviewers = list(
            self.db.scalars(
                select(Staff).where(
                    Staff.status == StaffStatus.active,
                    Staff.type == StaffType.teaching,
                )
            ).all()
        )
        if not interviewers:
            return []

        horizon = on_date + timedelta(days=AVAILABILITY_LOOKAHEAD_DAYS)
        rows = self.db.execute(
            select(
                Interview.interviewer_id,
                Interview.scheduled_date,
                func.count(Interview.id),
            )
            .where(
                Interview.interviewer_id.in_([staff.id for staff in interviewers]),
                Interview.status == InterviewStatus.scheduled,
                Interview.scheduled_date >= on_date,
                Interview.scheduled_date <= horizon,
            )
            .group_by(Interview.interviewer_id, Interview.scheduled_date)
        ).all()
        counts: Counter = Counter(
            {(staff_id, day): total for staff_id, day, total in rows}
        )

        results = []
        for staff in interviewers:
            is_available, next_date = next_available_date(counts, staff.id, on_date)
            results.append(
                InterviewerAvailability(
                    staff_id=staff.id,
                    full_name=staff.full_name,
                    department=staff.department,
                    qualification=staff.qualification,
                    is_available=is_available,
                    next_available_date=next_date,
                )
            )
        results.sort(key=lambda item: (not item.is_available, item.full_name))
        return results

    @query
    def list_upcoming(self, actor: Actor) -> list[UpcomingInterview]:
        scope = self.guard.ensure(actor, ResourceKind.interview, Action.read)
        stmt = (
            select(Interview, Application, Student)
            .join(Application, Application.id == Interview.application_id)
            .join(Student, Student.id == Interview.student_id)
            .where(
                Interview.status == InterviewStatus.scheduled,
                Interview.scheduled_date >= self.clock.today(),
            )
        )
        if scope == Scope.owner:
            stmt = stmt.where(Application.user_id == actor.id)
        elif scope == Scope.interviewer:
            stmt = stmt.where(
                Interview.interviewer_id.in_(self.guard.staff_ids_for(actor.id))
            )
        elif scope != Scope.all:
            return []
        stmt = stmt.order_by(
            Interview.scheduled_date.asc(), Interview.scheduled_time.asc()
        ).limit(UPCOMING_LIMIT)

        return [
            UpcomingInterview(
                interview_id=interview.id,
                application_id=application.id,
                application_number=application.application_number,
                student_name=student.full_name,
                interviewer_name=interview.interviewer_name,
                scheduled_date=interview.scheduled_date,
                scheduled_time=interview.scheduled_time,
                type=interview.type,
                meeting_link=interview.meeting_link,
            )
            for interview, application, student in self.db.execute(stmt).all()
        ]

    @query
    def get_details(self, actor: Actor, interview_id: UUID | str) -> InterviewRead:
        interview = self.guard.load(Interview, interview_id, actor, Action.read)
        return InterviewRead.model_validate(interview)
