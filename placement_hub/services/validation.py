"""
Schema Validator - field constraints for the signup and profile forms.

validate_signup / validate_profile never raise for bad input; they return a
ValidationResult carrying either the typed record or the field violations.
Synchronous and side-effect free.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from placement_hub.core.exceptions import ValidationFailedError
from placement_hub.schemas.schemas import FieldViolation, SignupRequest, StudentProfileForm

T = TypeVar("T", bound=BaseModel)

# Messages shown next to the field, keyed by field name.
SIGNUP_MESSAGES = {
    "email": "Please enter a valid email address",
    "password": "Password must be at least 6 characters",
    "full_name": "Full name must be at least 2 characters",
    "roll_no": "Roll number is required",
    "role": "Please select your role",
}

PROFILE_MESSAGES = {
    "full_name": "Full name must be at least 2 characters",
    "email": "Please enter a valid email address",
    "college_roll_no": "Roll number is required",
    "stream": "Stream is required",
    "year": "Year must be a whole number between 1 and 4",
}

# Errors raised by our own validators already carry their final wording.
CUSTOM_ERROR_TYPES = {"passwords_mismatch"}


@dataclass
class ValidationResult(Generic[T]):
    value: Optional[T] = None
    violations: List[FieldViolation] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None and not self.violations

    def unwrap(self) -> T:
        """Return the record or raise ValidationFailedError with the violations."""
        if not self.ok:
            raise ValidationFailedError(self.violations)
        return self.value


def _violations(error: ValidationError, messages: Dict[str, str]) -> List[FieldViolation]:
    violations: List[FieldViolation] = []
    seen = set()
    for item in error.errors():
        name = str(item["loc"][0]) if item["loc"] else "__all__"
        if name in seen:
            continue
        seen.add(name)
        if item["type"] in CUSTOM_ERROR_TYPES:
            message = item["msg"]
        else:
            message = messages.get(name, item["msg"])
        violations.append(FieldViolation(field=name, message=message))
    return violations


def _validate(model: Type[T], payload: Any, messages: Dict[str, str]) -> ValidationResult[T]:
    if isinstance(payload, model):
        payload = payload.model_dump()
    if not isinstance(payload, Mapping):
        return ValidationResult(violations=[FieldViolation(field="__all__", message="Form data is missing")])
    try:
        return ValidationResult(value=model.model_validate(dict(payload)))
    except ValidationError as e:
        return ValidationResult(violations=_violations(e, messages))


def validate_signup(payload: Any) -> ValidationResult[SignupRequest]:
    return _validate(SignupRequest, payload, SIGNUP_MESSAGES)


def validate_profile(payload: Any) -> ValidationResult[StudentProfileForm]:
    return _validate(StudentProfileForm, payload, PROFILE_MESSAGES)
