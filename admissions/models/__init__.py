from admissions.models.user import User, UserRole, UserStatus  # noqa: F401
from admissions.models.student import (  # noqa: F401
    NigerianAddress,
    ParentInfo,
    SecondaryStream,
    Student,
    StudentStatus,
)
from admissions.models.staff import Department, Staff, StaffStatus, StaffType  # noqa: F401
from admissions.models.application import (  # noqa: F401
    ACTIVE_APPLICATION_STATUSES,
    Application,
    ApplicationStatus,
    ClassLevel,
    EducationalLevel,
)
from admissions.models.document import (  # noqa: F401
    REQUIRED_DOCUMENT_TYPES,
    Document,
    DocumentType,
)
from admissions.models.interview import (  # noqa: F401
    Interview,
    InterviewStatus,
    InterviewType,
)
