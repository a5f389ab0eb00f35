from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from admissions.models.document import DocumentType


class DocumentUpload(BaseModel):
    application_id: UUID
    type: DocumentType
    file_name: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1, max_length=120)
    file_size: int = Field(ge=0)
    file_url: str | None = None
    description: str | None = Field(default=None, max_length=500)


class DocumentVerify(BaseModel):
    is_verified: bool = True
    verification_notes: str | None = Field(default=None, max_length=500)


class DocumentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    application_id: UUID | None = None
    student_id: UUID | None = None
    type: DocumentType
    file_name: str
    file_path: str
    content_type: str
    file_size: int
    is_verified: bool
    verification_label: str
    verification_notes: str | None = None
    verified_at: datetime | None = None
    uploaded_at: datetime | None = None
