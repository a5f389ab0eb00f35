from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from admissions.models.student import (
    NigerianAddress,
    ParentInfo,
    SecondaryStream,
    StudentStatus,
)
from admissions.schemas.user import NIGERIAN_PHONE_PATTERN

# ── Value objects ────────────────────────────────────────


class NigerianAddressSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    street: str = Field(min_length=1, max_length=200)
    city: str = Field(min_length=1, max_length=80)
    lga: str = Field(min_length=1, max_length=100)
    state: str = Field(min_length=1, max_length=80)
    postal_code: str | None = Field(default=None, max_length=20)

    def to_value(self) -> NigerianAddress:
        return NigerianAddress(
            street=self.street.strip(),
            city=self.city.strip(),
            lga=self.lga.strip(),
            state=self.state.strip(),
            postal_code=self.postal_code.strip() if self.postal_code else None,
        )


class ParentInfoSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    full_name: str = Field(min_length=1, max_length=150)
    phone_number: str = Field(pattern=NIGERIAN_PHONE_PATTERN)
    email: EmailStr
    occupation: str = Field(min_length=1, max_length=100)
    relationship: str = Field(min_length=1, max_length=40)

    def to_value(self) -> ParentInfo:
        return ParentInfo(
            full_name=self.full_name.strip(),
            phone_number=self.phone_number.strip(),
            email=str(self.email).lower(),
            occupation=self.occupation.strip(),
            relationship=self.relationship.strip(),
        )


# ── Student ──────────────────────────────────────────────


class StudentCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    middle_name: str | None = Field(default=None, max_length=50)
    date_of_birth: date
    gender: str
    religion: str | None = None
    email: EmailStr
    phone_number: str = Field(pattern=NIGERIAN_PHONE_PATTERN)
    address: NigerianAddressSchema
    previous_school: str | None = Field(default=None, max_length=200)
    previous_class: str | None = Field(default=None, max_length=40)
    state_of_origin: str | None = None
    local_government: str | None = None
    nationality: str | None = None
    preferred_stream: SecondaryStream | None = None
    father_info: ParentInfoSchema
    mother_info: ParentInfoSchema
    guardian_info: ParentInfoSchema | None = None

    @field_validator("gender")
    @classmethod
    def _gender(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"male", "female"}:
            raise ValueError("Gender must be either 'Male' or 'Female'")
        return normalized.capitalize()


class StudentUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=50)
    last_name: str | None = Field(default=None, min_length=1, max_length=50)
    middle_name: str | None = Field(default=None, max_length=50)
    religion: str | None = None
    previous_school: str | None = Field(default=None, max_length=200)
    previous_class: str | None = Field(default=None, max_length=40)
    preferred_stream: SecondaryStream | None = None
    address: NigerianAddressSchema | None = None
    father_info: ParentInfoSchema | None = None
    mother_info: ParentInfoSchema | None = None
    guardian_info: ParentInfoSchema | None = None


class StudentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    parent_user_id: UUID
    first_name: str
    last_name: str
    middle_name: str | None = None
    date_of_birth: date
    gender: str
    email: str
    phone_number: str
    address: NigerianAddressSchema
    status: StudentStatus
    selected_stream: SecondaryStream | None = None
    created_at: datetime
