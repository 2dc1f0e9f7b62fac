"""
Exception hierarchy for ClubHub.

Services raise these; the API layer turns them into JSON error responses
using ``status_code``, ``code`` and the optional field-tagged ``errors`` list.

    ClubHubError
    ├── ValidationError            400
    ├── DuplicateKeyError          409
    ├── NotFoundError              404
    ├── InvalidCredentialsError    401
    ├── InvalidOrExpiredOTPError   400
    ├── AlreadyVerifiedError       400
    ├── InvalidTokenError          401
    ├── UnauthenticatedError       401
    ├── ForbiddenError             403
    │   └── DeactivatedError       403
    └── MailDispatchError          503
"""

from typing import Dict, List, Optional


class ClubHubError(Exception):
    """Base exception for all application errors."""

    status_code = 500
    code = "error"
    default_message = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[List[Dict[str, str]]] = None
    ):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    def to_dict(self) -> dict:
        result = {"detail": self.message, "code": self.code}
        if self.errors:
            result["errors"] = self.errors
        return result


class ValidationError(ClubHubError):
    """Input is missing or malformed. ``errors`` holds one entry per field."""

    status_code = 400
    code = "validation_error"
    default_message = "Validation failed"

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(errors=[{"field": field, "message": message}])

    @classmethod
    def from_pydantic(cls, exc) -> "ValidationError":
        """Build from a ``pydantic.ValidationError`` (or FastAPI's request variant)."""
        errors = []
        for err in exc.errors():
            loc = [str(part) for part in err.get("loc", ()) if part != "body"]
            message = err.get("msg", "Invalid value")
            # pydantic prefixes messages raised from validators
            if message.startswith("Value error, "):
                message = message[len("Value error, "):]
            errors.append({"field": ".".join(loc) or "general", "message": message})
        return cls(errors=errors)


class DuplicateKeyError(ClubHubError):
    """A unique field already holds this value."""

    status_code = 409
    code = "duplicate_key"

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(
            message or f"A record with this {field.replace('_', ' ')} already exists",
            errors=[{"field": field, "message": "Already exists"}]
        )


class NotFoundError(ClubHubError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class InvalidCredentialsError(ClubHubError):
    """Login failed. Same message for unknown email and wrong password."""

    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials"


class InvalidOrExpiredOTPError(ClubHubError):
    status_code = 400
    code = "invalid_or_expired_otp"
    default_message = "Invalid or expired OTP"


class AlreadyVerifiedError(ClubHubError):
    status_code = 400
    code = "already_verified"
    default_message = "Email is already verified"


class InvalidTokenError(ClubHubError):
    status_code = 401
    code = "invalid_token"
    default_message = "Invalid or expired token"


class UnauthenticatedError(ClubHubError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated"


class ForbiddenError(ClubHubError):
    status_code = 403
    code = "forbidden"
    default_message = "You are not allowed to perform this action"


class DeactivatedError(ForbiddenError):
    code = "account_deactivated"
    default_message = "Account is deactivated"


class MailDispatchError(ClubHubError):
    status_code = 503
    code = "mail_dispatch_failed"
    default_message = "Failed to send email"
