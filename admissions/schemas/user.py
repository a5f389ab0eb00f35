from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from admissions.models.user import UserRole, UserStatus

NIGERIAN_PHONE_PATTERN = r"^(\+234|0)[789][01]\d{8}$"


class UserRegister(BaseModel):
    email: EmailStr
    phone_number: str = Field(pattern=NIGERIAN_PHONE_PATTERN)
    password: str = Field(min_length=8, max_length=128)
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    middle_name: str | None = Field(default=None, max_length=80)
    role: UserRole = UserRole.parent
    state_of_origin: str | None = None
    local_government: str | None = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    ip_address: str | None = None


class LoginResponse(BaseModel):
    user_id: UUID
    email: str
    full_name: str
    token: str
    expires_at: datetime
    role: UserRole
    status: UserStatus


class UserProfile(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    email: str
    phone_number: str
    first_name: str
    last_name: str
    middle_name: str | None = None
    role: UserRole
    status: UserStatus
    is_email_verified: bool = False
    last_login_at: datetime | None = None
    created_at: datetime
