import enum
import uuid
from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from admissions.db import Base, TimestampMixin


class StaffType(str, enum.Enum):
    teaching = "teaching"
    non_teaching = "non_teaching"
    administrative = "administrative"


class StaffStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"
    retired = "retired"


class Department(str, enum.Enum):
    science = "science"
    arts = "arts"
    commercial = "commercial"
    administration = "administration"
    accounts = "accounts"
    it = "it"


class Staff(TimestampMixin, Base):
    __tablename__ = "staff"
    __table_args__ = (
        UniqueConstraint("email", name="uq_staff_email"),
        UniqueConstraint("staff_number", name="uq_staff_number"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), index=True
    )

    first_name: Mapped[str] = mapped_column(String(80), nullable=False)
    last_name: Mapped[str] = mapped_column(String(80), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(80))
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    gender: Mapped[str | None] = mapped_column(String(20))

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(20))

    staff_number: Mapped[str] = mapped_column(String(30), nullable=False)
    type: Mapped[StaffType] = mapped_column(Enum(StaffType), default=StaffType.teaching)
    department: Mapped[Department | None] = mapped_column(Enum(Department))
    qualification: Mapped[str | None] = mapped_column(String(120))
    employment_date: Mapped[date | None] = mapped_column(Date)

    state_of_origin: Mapped[str | None] = mapped_column(String(80))
    local_government: Mapped[str | None] = mapped_column(String(120))

    status: Mapped[StaffStatus] = mapped_column(
        Enum(StaffStatus), default=StaffStatus.active
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def can_interview(self) -> bool:
        return self.status == StaffStatus.active and self.type == StaffType.teaching
