import enum
import uuid
from dataclasses import asdict, dataclass
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, Enum, ForeignKey, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, composite, mapped_column

from admissions.db import Base, TimestampMixin

# ── Value objects ────────────────────────────────────────


@dataclass(frozen=True)
class NigerianAddress:
    street: str
    city: str
    lga: str
    state: str
    postal_code: str | None = None


@dataclass(frozen=True)
class ParentInfo:
    full_name: str
    phone_number: str
    email: str
    occupation: str
    relationship: str

    def to_dict(self) -> dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict | None) -> "ParentInfo | None":
        if not data:
            return None
        return cls(**data)


# ── Enums ────────────────────────────────────────────────


class StudentStatus(str, enum.Enum):
    prospective = "prospective"
    admitted = "admitted"
    active = "active"
    graduated = "graduated"
    withdrawn = "withdrawn"
    suspended = "suspended"


class SecondaryStream(str, enum.Enum):
    science = "science"
    arts = "arts"
    commercial = "commercial"


# ── Student ──────────────────────────────────────────────


class Student(TimestampMixin, Base):
    __tablename__ = "students"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    parent_user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True
    )

    first_name: Mapped[str] = mapped_column(String(50), nullable=False)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    middle_name: Mapped[str | None] = mapped_column(String(50))
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    religion: Mapped[str | None] = mapped_column(String(40))

    email: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    address: Mapped[NigerianAddress] = composite(
        mapped_column("address_street", String(200), nullable=False),
        mapped_column("address_city", String(80), nullable=False),
        mapped_column("address_lga", String(100), nullable=False),
        mapped_column("address_state", String(80), nullable=False),
        mapped_column("address_postal_code", String(20)),
    )

    previous_school: Mapped[str | None] = mapped_column(String(200))
    previous_class: Mapped[str | None] = mapped_column(String(40))
    admission_number: Mapped[str | None] = mapped_column(String(40))
    admission_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    state_of_origin: Mapped[str | None] = mapped_column(String(80))
    local_government: Mapped[str | None] = mapped_column(String(120))
    nationality: Mapped[str] = mapped_column(String(60), default="Nigerian")

    status: Mapped[StudentStatus] = mapped_column(
        Enum(StudentStatus), default=StudentStatus.prospective
    )
    selected_stream: Mapped[SecondaryStream | None] = mapped_column(
        Enum(SecondaryStream)
    )

    father_info_data: Mapped[dict] = mapped_column("father_info", JSON, nullable=False)
    mother_info_data: Mapped[dict] = mapped_column("mother_info", JSON, nullable=False)
    guardian_info_data: Mapped[dict | None] = mapped_column("guardian_info", JSON)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    # Guardian records are replaced wholesale, never edited in place.
    @property
    def father_info(self) -> ParentInfo:
        return ParentInfo.from_dict(self.father_info_data)

    @father_info.setter
    def father_info(self, value: ParentInfo) -> None:
        self.father_info_data = value.to_dict()

    @property
    def mother_info(self) -> ParentInfo:
        return ParentInfo.from_dict(self.mother_info_data)

    @mother_info.setter
    def mother_info(self, value: ParentInfo) -> None:
        self.mother_info_data = value.to_dict()

    @property
    def guardian_info(self) -> ParentInfo | None:
        return ParentInfo.from_dict(self.guardian_info_data)

    @guardian_info.setter
    def guardian_info(self, value: ParentInfo | None) -> None:
        self.guardian_info_data = value.to_dict() if value else None
