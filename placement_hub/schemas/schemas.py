"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, ValidationInfo
from pydantic_core import PydanticCustomError
from typing import Optional, List, Any
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    student = "student"
    faculty = "faculty"
    admin = "admin"


class SignupRole(str, Enum):
    """Roles a user may pick for themselves at signup."""
    student = "student"
    faculty = "faculty"


class NotificationVariant(str, Enum):
    default = "default"
    destructive = "destructive"


STAFF_ROLES = (UserRole.faculty, UserRole.admin)
FILTER_ALL = "all"


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class Notification(BaseModel):
    """User-facing outcome of an operation."""
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.default

    @classmethod
    def success(cls, title: str, description: str) -> "Notification":
        return cls(title=title, description=description)

    @classmethod
    def error(cls, title: str, description: str) -> "Notification":
        return cls(title=title, description=description, variant=NotificationVariant.destructive)


class FieldViolation(BaseModel):
    field: str
    message: str


class ActionResponse(BaseModel):
    success: bool
    notification: Notification
    violations: List[FieldViolation] = []


# ============================================================
# AUTH SCHEMAS
# ============================================================

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str
    full_name: str = Field(..., min_length=2)
    roll_no: str = Field(..., min_length=1)
    role: SignupRole

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        # password is absent from info.data when it failed its own checks
        password = info.data.get("password")
        if password is not None and value != password:
            raise PydanticCustomError("passwords_mismatch", "Passwords don't match")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: Optional[str] = None


class SessionResponse(BaseModel):
    user_id: str
    email: str
    role: UserRole


class Identity(BaseModel):
    """An authenticated principal."""
    user_id: str
    email: str
    metadata: dict = {}


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class ProfileRow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: str
    role: UserRole = UserRole.student
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# STUDENT SCHEMAS
# ============================================================

class EducationEntry(BaseModel):
    """One past education item (12th grade, diploma, ...)."""
    model_config = ConfigDict(extra="ignore")

    qualification: str = Field(..., min_length=1)
    institution: Optional[str] = None
    year: Optional[int] = Field(None, ge=1900, le=2100)
    score: Optional[str] = None


OPTIONAL_TEXT_FIELDS = (
    "about_yourself", "phone", "skills", "expertise", "past_experience",
    "preferred_job_role", "past_education", "courses",
)


class StudentProfileForm(BaseModel):
    """Editable profile form. List-valued fields are comma separated text."""
    full_name: str = Field(..., min_length=2)
    about_yourself: str = ""
    email: EmailStr
    phone: str = ""
    college_roll_no: str = Field(..., min_length=1)
    stream: str = Field(..., min_length=1)
    year: int = Field(..., ge=1, le=4)
    skills: str = ""
    expertise: str = ""
    past_experience: str = ""
    preferred_job_role: str = ""
    past_education: str = ""
    courses: str = ""

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class StudentRecord(BaseModel):
    """A row of the students collection as it comes off the wire."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[str] = None
    user_id: str
    full_name: str
    email: str
    phone: Optional[str] = None
    college_roll_no: str
    stream: str
    year: int = Field(..., ge=1, le=4)
    about_yourself: Optional[str] = None
    past_experience: Optional[str] = None
    preferred_job_role: Optional[str] = None
    past_education: Optional[Any] = None
    skills: List[str] = []
    expertise: List[str] = []
    courses: List[str] = []
    certificate_urls: List[str] = []
    profile_image_url: Optional[str] = None
    resume_url: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("skills", "expertise", "courses", "certificate_urls", mode="before")
    @classmethod
    def null_list(cls, value: Any) -> Any:
        return [] if value is None else value


class StudentWritePayload(BaseModel):
    """Wire representation produced from a submitted form."""
    full_name: str
    about_yourself: Optional[str] = None
    email: str
    phone: Optional[str] = None
    college_roll_no: str
    stream: str
    year: int
    skills: List[str] = []
    expertise: List[str] = []
    past_experience: Optional[str] = None
    preferred_job_role: Optional[str] = None
    past_education: List[EducationEntry] = []
    courses: List[str] = []


class UploadedFile(BaseModel):
    """A file selected by the user and held in memory until uploaded."""
    filename: str
    content_type: Optional[str] = None
    data: bytes


class StudentProfileView(BaseModel):
    exists: bool
    form: Optional[StudentProfileForm] = None
    profile_image_url: Optional[str] = None
    certificate_urls: List[str] = []
    resume_url: Optional[str] = None


class ProfileSaveResponse(ActionResponse):
    profile: Optional[StudentProfileView] = None


class ResumeGenerationResponse(ActionResponse):
    resume_url: Optional[str] = None
    content: Optional[str] = None


# ============================================================
# FACULTY SCHEMAS
# ============================================================

class FilterState(BaseModel):
    search: str = ""
    stream: str = FILTER_ALL
    year: str = FILTER_ALL


class DirectoryStats(BaseModel):
    total_students: int
    active_profiles: int
    streams: List[str] = []


class DirectoryResponse(BaseModel):
    students: List[StudentRecord]
    total: int
    stats: DirectoryStats
    filters: FilterState
    notification: Optional[Notification] = None


class StudentExport(BaseModel):
    name: str
    email: str
    rollNo: str
    stream: str
    year: int
    skills: List[str] = []
    expertise: List[str] = []
    preferredRole: Optional[str] = None
