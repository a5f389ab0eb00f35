import os
import uuid
from datetime import UTC, date, datetime, time, timedelta

# Point the package at an in-memory database BEFORE any admissions imports
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["JWT_SECRET"] = "test-secret-key-with-at-least-32-characters"
os.environ["JWT_ALGORITHM"] = "HS256"

import pytest  # noqa: E402

from admissions.db import Base, SessionLocal, engine  # noqa: E402
from admissions.models import (  # noqa: E402
    Application,
    ApplicationStatus,
    Staff,
    StaffStatus,
    StaffType,
    Student,
    User,
    UserRole,
    UserStatus,
)
from admissions.models.student import NigerianAddress, ParentInfo  # noqa: E402
from admissions.services.application import ApplicationService  # noqa: E402
from admissions.services.authorization import Actor  # noqa: E402
from admissions.services.clock import Clock  # noqa: E402

# Monday, 09:00 UTC
NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)
TODAY = NOW.date()


class FixedClock(Clock):
    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class SequenceNumberGenerator:
    """Hands out application numbers from a fixed list, then counts up."""

    def __init__(self, *numbers: str) -> None:
        self.numbers = list(numbers)
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.numbers:
            return self.numbers.pop(0)
        return f"APP-20260302-{1000 + self.calls}"


def years_ago(years: int, today: date = TODAY) -> date:
    return today.replace(year=today.year - years)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex}@example.com"


def _unique_phone() -> str:
    return "080" + str(uuid.uuid4().int)[:8]


def actor_for(user: User) -> Actor:
    return Actor(id=user.id, role=user.role)


def parent_info(name: str = "Musa Bello", relationship: str = "Father") -> dict:
    return {
        "full_name": name,
        "phone_number": _unique_phone(),
        "email": _unique_email(),
        "occupation": "Engineer",
        "relationship": relationship,
    }


def student_payload(date_of_birth: date | None = None, **overrides) -> dict:
    payload = {
        "first_name": "Amina",
        "last_name": "Bello",
        "date_of_birth": (date_of_birth or years_ago(14)).isoformat(),
        "gender": "female",
        "email": _unique_email(),
        "phone_number": _unique_phone(),
        "address": {
            "street": "12 Awolowo Road",
            "city": "Ikoyi",
            "lga": "Eti-Osa",
            "state": "Lagos",
            "postal_code": "101233",
        },
        "father_info": parent_info("Musa Bello", "Father"),
        "mother_info": parent_info("Hauwa Bello", "Mother"),
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def clock():
    return FixedClock(NOW)


@pytest.fixture()
def db_session():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db_session):
    def _make_user(
        role: UserRole = UserRole.parent,
        status: UserStatus = UserStatus.active,
        password_hash: str = "not-a-bcrypt-hash",
        first_name: str = "Test",
        last_name: str = "User",
    ) -> User:
        user = User(
            email=_unique_email(),
            phone_number=_unique_phone(),
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=status,
            is_email_verified=status == UserStatus.active,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_staff(db_session):
    def _make_staff(
        user: User | None = None,
        staff_type: StaffType = StaffType.teaching,
        status: StaffStatus = StaffStatus.active,
        first_name: str = "Ngozi",
        last_name: str = "Okafor",
    ) -> Staff:
        staff = Staff(
            user_id=user.id if user else None,
            first_name=first_name,
            last_name=last_name,
            email=_unique_email(),
            phone_number=_unique_phone(),
            staff_number=f"FX-{uuid.uuid4().hex[:12]}",
            type=staff_type,
            status=status,
        )
        db_session.add(staff)
        db_session.commit()
        db_session.refresh(staff)
        return staff

    return _make_staff


@pytest.fixture()
def make_student(db_session):
    def _make_student(parent: User, date_of_birth: date | None = None) -> Student:
        student = Student(
            parent_user_id=parent.id,
            first_name="Chidi",
            last_name="Eze",
            date_of_birth=date_of_birth or years_ago(14),
            gender="Male",
            email=_unique_email(),
            phone_number=_unique_phone(),
            address=NigerianAddress(
                street="4 Ogui Road", city="Enugu", lga="Enugu North", state="Enugu"
            ),
        )
        student.father_info = ParentInfo(
            full_name="Obi Eze",
            phone_number="08031234567",
            email="obi@example.com",
            occupation="Trader",
            relationship="Father",
        )
        student.mother_info = ParentInfo(
            full_name="Ada Eze",
            phone_number="08031234568",
            email="ada@example.com",
            occupation="Teacher",
            relationship="Mother",
        )
        db_session.add(student)
        db_session.commit()
        db_session.refresh(student)
        return student

    return _make_student


@pytest.fixture()
def parent_user(make_user):
    return make_user(UserRole.parent, first_name="Bola", last_name="Adeyemi")


@pytest.fixture()
def other_parent(make_user):
    return make_user(UserRole.parent, first_name="Kemi", last_name="Oni")


@pytest.fixture()
def admin_user(make_user):
    return make_user(UserRole.school_admin, first_name="Admin", last_name="User")


@pytest.fixture()
def officer_user(make_user):
    return make_user(UserRole.admission_officer, first_name="Officer", last_name="User")


@pytest.fixture()
def teacher_user(make_user):
    return make_user(UserRole.teacher, first_name="Ngozi", last_name="Okafor")


@pytest.fixture()
def parent(parent_user):
    return actor_for(parent_user)


@pytest.fixture()
def other_parent_actor(other_parent):
    return actor_for(other_parent)


@pytest.fixture()
def admin(admin_user):
    return actor_for(admin_user)


@pytest.fixture()
def officer(officer_user):
    return actor_for(officer_user)


@pytest.fixture()
def teacher(teacher_user):
    return actor_for(teacher_user)


@pytest.fixture()
def interviewer(make_staff, teacher_user):
    return make_staff(teacher_user)


@pytest.fixture()
def student(make_student, parent_user):
    return make_student(parent_user)


@pytest.fixture()
def number_generator():
    return SequenceNumberGenerator()


@pytest.fixture()
def application_service(db_session, clock, number_generator):
    return ApplicationService(db_session, clock, number_generator)


@pytest.fixture()
def submitted_application(application_service, parent, student) -> Application:
    result = application_service.submit(
        parent,
        {
            "student_id": str(student.id),
            "applying_for_level": "junior_secondary",
            "applying_for_class": "jss2",
        },
    )
    assert result.ok, result.error
    return result.value


@pytest.fixture()
def reviewed_application(application_service, admin, submitted_application):
    result = application_service.advance_to_review(admin, submitted_application.id)
    assert result.ok, result.error
    assert result.value.status == ApplicationStatus.under_review
    return result.value


def interview_slot(days_ahead: int = 1, hour: int = 10, minute: int = 0) -> dict:
    return {
        "scheduled_date": (TODAY + timedelta(days=days_ahead)).isoformat(),
        "scheduled_time": time(hour, minute).isoformat(),
    }
