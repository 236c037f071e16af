"""
Exception taxonomy shared by the service layer and the API.

The remote layer has no not-found error: a missing row comes
back as None. NotFoundError only exists for routes that must answer 404.
"""

from typing import List, Optional

from placement_hub.schemas.schemas import FieldViolation, Notification


class PortalError(Exception):
    """Base class for every expected failure in the portal."""

    status_code = 500
    title = "Error"

    def __init__(self, message: str, *, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if title:
            self.title = title

    def to_notification(self) -> Notification:
        return Notification.error(self.title, self.message)


class ValidationFailedError(PortalError):
    status_code = 422
    title = "Invalid input"

    def __init__(self, violations: List[FieldViolation]):
        fields = ", ".join(v.field for v in violations)
        super().__init__(f"Please correct the highlighted fields: {fields}")
        self.violations = violations


class NotFoundError(PortalError):
    status_code = 404
    title = "Not found"

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found: {identifier}")


class PermissionDeniedError(PortalError):
    status_code = 403
    title = "Access Denied"


class TransformError(PortalError):
    """Malformed stored JSON or malformed user-entered structured text."""

    status_code = 422
    title = "Invalid profile data"


class RemoteError(PortalError):
    """Any transport or storage failure from the Remote Data Client."""

    status_code = 502
    title = "Error"


class ConflictError(RemoteError):
    """Unique constraint violation (row or identity already exists)."""

    status_code = 409
    title = "Already exists"


class AuthenticationError(PortalError):
    status_code = 401
    title = "Sign in failed"


class ProfileSetupError(PortalError):
    """The lazy profile insert failed; the user is left in the setup state."""

    status_code = 503
    title = "Setting up your account"
