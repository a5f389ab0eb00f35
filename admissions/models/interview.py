import enum
import uuid
from datetime import UTC, date, datetime, time

from sqlalchemy import (
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.db import Base, TimestampMixin


class InterviewType(str, enum.Enum):
    in_person = "in_person"
    virtual = "virtual"


class InterviewStatus(str, enum.Enum):
    scheduled = "scheduled"
    completed = "completed"
    cancelled = "cancelled"
    rescheduled = "rescheduled"


_SCHEDULED_SQL = "status = 'scheduled'"


class Interview(TimestampMixin, Base):
    __tablename__ = "interviews"
    __table_args__ = (
        UniqueConstraint("application_id", name="uq_interviews_application"),
        # One scheduled interview per interviewer per exact slot.
        Index(
            "uq_interviews_interviewer_slot",
            "interviewer_id",
            "scheduled_date",
            "scheduled_time",
            unique=True,
            sqlite_where=text(_SCHEDULED_SQL),
            postgresql_where=text(_SCHEDULED_SQL),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("applications.id"), nullable=False
    )
    student_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("students.id"), nullable=False, index=True
    )
    interviewer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("staff.id"), nullable=False, index=True
    )
    interviewer_name: Mapped[str] = mapped_column(String(170), nullable=False)

    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[time] = mapped_column(Time, nullable=False)
    type: Mapped[InterviewType] = mapped_column(
        Enum(InterviewType), default=InterviewType.in_person
    )
    meeting_link: Mapped[str | None] = mapped_column(String(512))
    meeting_id: Mapped[str | None] = mapped_column(String(120))

    status: Mapped[InterviewStatus] = mapped_column(
        Enum(InterviewStatus), default=InterviewStatus.scheduled
    )
    score: Mapped[int | None] = mapped_column(Integer)
    feedback: Mapped[str | None] = mapped_column(Text)
    remarks: Mapped[str | None] = mapped_column(Text)
    conducted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    scheduled_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    @property
    def scheduled_at(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.scheduled_time, tzinfo=UTC)
