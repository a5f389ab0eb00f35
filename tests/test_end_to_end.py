"""Full admission journey from parent registration to an approved application."""

import random
import re
from datetime import UTC, datetime

from admissions.models import ApplicationStatus, DocumentType, InterviewStatus, UserRole
from admissions.services.application import ApplicationService
from admissions.services.document import DocumentService
from admissions.services.interview import InterviewService
from admissions.services.lifecycle import RandomApplicationNumberGenerator
from admissions.services.staff import StaffService
from admissions.services.student import StudentService
from admissions.services.user import UserService
from tests.conftest import actor_for, interview_slot, student_payload, years_ago


def test_parent_journey_to_approval(db_session, clock, make_user, admin):
    users = UserService(db_session, clock)
    students = StudentService(db_session, clock)
    applications = ApplicationService(
        db_session, clock, RandomApplicationNumberGenerator(clock, random.Random(7))
    )
    documents = DocumentService(db_session, clock)
    staff = StaffService(db_session, clock)
    interviews = InterviewService(db_session, clock)

    registered = users.register(
        {
            "email": "funke.ade@example.com",
            "phone_number": "08061234567",
            "password": "Admissions2026",
            "first_name": "Funke",
            "last_name": "Ade",
        }
    )
    assert registered.ok, registered.error
    verified = users.verify_email(registered.value.email_verification_token)
    assert verified.ok, verified.error
    login = users.login({"email": "funke.ade@example.com", "password": "Admissions2026"})
    assert login.ok, login.error
    parent = actor_for(verified.value)

    child = students.create(parent, student_payload(years_ago(14)))
    assert child.ok, child.error

    submitted = applications.submit(
        parent,
        {
            "student_id": str(child.value.id),
            "applying_for_level": "junior_secondary",
            "applying_for_class": "jss3",
            "academic_year": "2026/2027",
        },
    )
    assert submitted.ok, submitted.error
    application_id = submitted.value.id
    assert re.fullmatch(r"APP-20260302-\d{4}", submitted.value.application_number)

    uploaded = []
    for doc_type in (
        DocumentType.birth_certificate,
        DocumentType.previous_school_report,
        DocumentType.passport_photograph,
    ):
        result = documents.upload(
            parent,
            {
                "application_id": str(application_id),
                "type": doc_type.value,
                "file_name": f"funke-{doc_type.value}.pdf",
                "content_type": "application/pdf",
                "file_size": 150_000,
            },
        )
        assert result.ok, result.error
        uploaded.append(result.value.id)
    assert documents.is_complete(parent, application_id).value is True

    reviewed = applications.advance_to_review(
        admin, application_id, {"review_notes": "Documents in order"}
    )
    assert reviewed.ok, reviewed.error
    for document_id in uploaded:
        assert documents.verify(admin, document_id).ok
    assert documents.is_fully_verified(parent, application_id).value is True

    teacher_user = make_user(UserRole.teacher, first_name="Ibrahim", last_name="Musa")
    hired = staff.create(
        admin,
        {
            "user_id": str(teacher_user.id),
            "first_name": "Ibrahim",
            "last_name": "Musa",
            "email": "ibrahim.musa@example.com",
            "phone_number": "07011223344",
            "type": "teaching",
            "department": "science",
        },
    )
    assert hired.ok, hired.error

    available = interviews.find_available(admin, clock.today()).value
    assert [a.staff_id for a in available] == [hired.value.id]

    scheduled = interviews.schedule(
        admin,
        {
            "application_id": str(application_id),
            "interviewer_id": str(hired.value.id),
            **interview_slot(days_ahead=2, hour=11),
        },
    )
    assert scheduled.ok, scheduled.error
    assert [u.interview_id for u in interviews.list_upcoming(parent).value] == [
        scheduled.value.id
    ]

    clock.current = datetime(2026, 3, 4, 11, 5, tzinfo=UTC)
    conducted = interviews.conduct(
        actor_for(teacher_user),
        scheduled.value.id,
        {"score": 85, "feedback": "Confident and articulate", "remarks": "Admit"},
    )
    assert conducted.ok, conducted.error
    assert conducted.value.status == InterviewStatus.completed

    status = applications.get_status(parent, application_id)
    assert status.ok, status.error
    view = status.value
    assert view.status == ApplicationStatus.approved
    assert "85" in view.decision_remarks
    assert view.documents_complete and view.documents_verified
    assert [stage.name for stage in view.stages][-1] == "Application Approved"
    assert all(stage.completed for stage in view.stages)
    assert view.interview.score == 85
