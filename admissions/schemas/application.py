from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from admissions.models.application import (
    ApplicationStatus,
    ClassLevel,
    EducationalLevel,
)
from admissions.models.document import DocumentType
from admissions.models.interview import InterviewStatus, InterviewType
from admissions.models.student import SecondaryStream


class ApplicationSubmit(BaseModel):
    student_id: UUID
    applying_for_level: EducationalLevel
    applying_for_class: ClassLevel
    preferred_stream: SecondaryStream | None = None
    academic_year: str | None = Field(default=None, max_length=20)


class ApplicationReview(BaseModel):
    review_notes: str | None = Field(default=None, max_length=1000)


class ApplicationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    application_number: str
    student_id: UUID
    user_id: UUID
    applying_for_level: EducationalLevel
    applying_for_class: ClassLevel
    preferred_stream: SecondaryStream | None = None
    academic_year: str | None = None
    status: ApplicationStatus
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    decided_at: datetime | None = None
    decision_remarks: str | None = None


class ApplicationStage(BaseModel):
    name: str
    completed: bool
    completed_at: datetime | None = None
    notes: str | None = None


class DocumentStatus(BaseModel):
    type: DocumentType
    file_name: str
    is_verified: bool
    verification_label: str


class InterviewSummary(BaseModel):
    scheduled_date: date
    scheduled_time: time
    type: InterviewType
    status: InterviewStatus
    interviewer_name: str
    score: int | None = None


class ApplicationStatusView(BaseModel):
    application_id: UUID
    application_number: str
    student_name: str
    status: ApplicationStatus
    submitted_at: datetime | None = None
    decision_remarks: str | None = None
    documents_complete: bool
    documents_verified: bool
    stages: list[ApplicationStage] = Field(default_factory=list)
    documents: list[DocumentStatus] = Field(default_factory=list)
    interview: InterviewSummary | None = None
