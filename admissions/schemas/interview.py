from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from admissions.models.interview import InterviewStatus, InterviewType
from admissions.models.staff import Department

EARLIEST_INTERVIEW_TIME = time(8, 0)
LATEST_INTERVIEW_TIME = time(16, 0)


class InterviewSchedule(BaseModel):
    application_id: UUID
    interviewer_id: UUID
    scheduled_date: date
    scheduled_time: time
    type: InterviewType = InterviewType.in_person
    meeting_link: str | None = Field(default=None, max_length=512)
    meeting_id: str | None = Field(default=None, max_length=120)

    @field_validator("scheduled_time")
    @classmethod
    def _within_school_hours(cls, value: time) -> time:
        if not EARLIEST_INTERVIEW_TIME <= value <= LATEST_INTERVIEW_TIME:
            raise ValueError("Interview time must be between 08:00 and 16:00")
        return value

    @model_validator(mode="after")
    def _virtual_needs_link(self) -> "InterviewSchedule":
        if self.type == InterviewType.virtual:
            if not self.meeting_link or not self.meeting_link.startswith("https://"):
                raise ValueError(
                    "Virtual interviews require an https:// meeting link"
                )
        return self


class InterviewConduct(BaseModel):
    score: int = Field(ge=0, le=100)
    feedback: str = Field(min_length=1, max_length=1000)
    remarks: str | None = Field(default=None, max_length=500)


class InterviewRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    application_id: UUID
    student_id: UUID
    interviewer_id: UUID
    interviewer_name: str
    scheduled_date: date
    scheduled_time: time
    type: InterviewType
    meeting_link: str | None = None
    status: InterviewStatus
    score: int | None = None
    feedback: str | None = None
    remarks: str | None = None
    conducted_at: datetime | None = None


class UpcomingInterview(BaseModel):
    interview_id: UUID
    application_id: UUID
    application_number: str
    student_name: str
    interviewer_name: str
    scheduled_date: date
    scheduled_time: time
    type: InterviewType
    meeting_link: str | None = None


class InterviewerAvailability(BaseModel):
    staff_id: UUID
    full_name: str
    department: Department | None = None
    qualification: str | None = None
    is_available: bool
    next_available_date: date | None = None
