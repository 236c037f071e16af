"""
Schemas module - Request/Response schemas for API endpoints and the
wire/form representations used by the service layer.
"""

from placement_hub.schemas.schemas import (
    UserRole,
    SignupRole,
    Notification,
    FieldViolation,
    SignupRequest,
    StudentProfileForm,
    StudentRecord,
    StudentWritePayload,
    EducationEntry,
    UploadedFile,
    FilterState,
    ProfileRow,
    Identity,
)

__all__ = [
    "UserRole",
    "SignupRole",
    "Notification",
    "FieldViolation",
    "SignupRequest",
    "StudentProfileForm",
    "StudentRecord",
    "StudentWritePayload",
    "EducationEntry",
    "UploadedFile",
    "FilterState",
    "ProfileRow",
    "Identity",
]
