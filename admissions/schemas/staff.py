from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from admissions.models.staff import Department, StaffStatus, StaffType
from admissions.schemas.user import NIGERIAN_PHONE_PATTERN


class StaffCreate(BaseModel):
    user_id: UUID | None = None
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    middle_name: str | None = Field(default=None, max_length=80)
    date_of_birth: date | None = None
    gender: str | None = None
    email: EmailStr
    phone_number: str = Field(pattern=NIGERIAN_PHONE_PATTERN)
    type: StaffType
    department: Department | None = None
    qualification: str | None = Field(default=None, max_length=120)
    employment_date: date | None = None
    state_of_origin: str | None = None
    local_government: str | None = None


class StaffStatusUpdate(BaseModel):
    status: StaffStatus


class StaffRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    user_id: UUID | None = None
    staff_number: str
    first_name: str
    last_name: str
    email: str
    type: StaffType
    department: Department | None = None
    qualification: str | None = None
    status: StaffStatus
    created_at: datetime
