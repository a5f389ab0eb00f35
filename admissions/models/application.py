import enum
import uuid
from datetime import datetime

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.db import Base, TimestampMixin
from admissions.models.student import SecondaryStream


class ApplicationStatus(str, enum.Enum):
    draft = "draft"
    submitted = "submitted"
    under_review = "under_review"
    interview_scheduled = "interview_scheduled"
    approved = "approved"
    rejected = "rejected"
    # Declared for a manual decision path; no transition produces it.
    waitlisted = "waitlisted"


ACTIVE_APPLICATION_STATUSES = frozenset(
    {
        ApplicationStatus.draft,
        ApplicationStatus.submitted,
        ApplicationStatus.under_review,
        ApplicationStatus.interview_scheduled,
    }
)

_ACTIVE_STATUS_SQL = "status IN ('draft', 'submitted', 'under_review', 'interview_scheduled')"


class EducationalLevel(str, enum.Enum):
    primary = "primary"
    junior_secondary = "junior_secondary"
    senior_secondary = "senior_secondary"


class ClassLevel(str, enum.Enum):
    jss1 = "jss1"
    jss2 = "jss2"
    jss3 = "jss3"
    sss1 = "sss1"
    sss2 = "sss2"
    sss3 = "sss3"


class Application(TimestampMixin, Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("application_number", name="uq_applications_number"),
        Index(
            "uq_applications_active_student",
            "student_id",
            unique=True,
            sqlite_where=text(_ACTIVE_STATUS_SQL),
            postgresql_where=text(_ACTIVE_STATUS_SQL),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    application_number: Mapped[str] = mapped_column(String(30), nullable=False)
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    applying_for_level: Mapped[EducationalLevel] = mapped_column(
        Enum(EducationalLevel), nullable=False
    )
    applying_for_class: Mapped[ClassLevel] = mapped_column(
        Enum(ClassLevel), nullable=False
    )
    preferred_stream: Mapped[SecondaryStream | None] = mapped_column(
        Enum(SecondaryStream)
    )
    academic_year: Mapped[str | None] = mapped_column(String(20))

    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus), default=ApplicationStatus.draft
    )
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id")
    )
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    review_notes: Mapped[str | None] = mapped_column(Text)
    decision_remarks: Mapped[str | None] = mapped_column(Text)
