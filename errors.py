# errors.py
import enum
from typing import Dict, Optional


class ExpenseTrackerError(Exception):
    """Base for errors the API turns into an HTTP response."""

    status_code = 500
    detail = "Internal Server Error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ConfigError(ExpenseTrackerError):
    detail = "Server is not configured"


class AuthenticationFailure(ExpenseTrackerError):
    status_code = 401
    detail = "Invalid credentials"


class InvalidReason(str, enum.Enum):
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


class TokenInvalid(ExpenseTrackerError):
    status_code = 401
    detail = "Could not validate credentials"
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self, reason: InvalidReason = InvalidReason.MALFORMED):
        self.reason = reason
        super().__init__(
            "Token has expired" if reason is InvalidReason.EXPIRED else None
        )


class Forbidden(ExpenseTrackerError):
    status_code = 403
    detail = "Expense not found or not accessible"


class NotFound(ExpenseTrackerError):
    status_code = 404
    detail = "Expense not found"


class UsernameTaken(ExpenseTrackerError):
    status_code = 400
    detail = "Username already registered"


class InvalidUpload(ExpenseTrackerError):
    status_code = 400
    detail = "Invalid upload"
