"""
Error taxonomy for the OTP authentication flow.

Every error carries the HTTP status and the client-facing message; the
exception handler in app.exception_handlers renders them as
{"success": false, "message": ..., **extra}.
"""
from typing import Any, Dict, Optional


class AuthError(Exception):
    status_code = 400
    message = "Authentication failed"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.message
        self.extra: Dict[str, Any] = extra
        super().__init__(self.message)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": False, "message": self.message}
        payload.update(self.extra)
        return payload


class InputValidationError(AuthError):
    """Malformed request field; raised before any state is touched."""
    message = "Validation failed"


class OTPValidationError(InputValidationError):
    """Malformed mobile number or code in the OTP flow."""


class RateLimitExceeded(AuthError):
    status_code = 429
    message = "Too many OTP requests. Please try again later."


class ChallengeNotFound(AuthError):
    """
    Absent, expired, exhausted or already-consumed challenge.

    The public message is identical for every cause; `reason` is kept for
    logs only and never rendered.
    """
    message = "Invalid or expired OTP"

    def __init__(self, reason: str = "unknown"):
        super().__init__()
        self.reason = reason


class AttemptsExhausted(AuthError):
    message = "Too many failed attempts. Please request a new OTP."


class CodeMismatch(AuthError):
    message = "Invalid OTP"

    def __init__(self, attempts_remaining: int):
        super().__init__(attempts_remaining=attempts_remaining)
        self.attempts_remaining = attempts_remaining


class InvalidCredentials(AuthError):
    status_code = 401
    message = "Invalid mobile number or password"


class AccountDisabled(AuthError):
    status_code = 403
    message = "Account is not active"


class StorageFailure(AuthError):
    """Ledger or user store unavailable. Not retried."""
    status_code = 500
    message = "Operation failed"


class DeliveryFailure(Exception):
    """SMS channel could not deliver a code. Recovered by dev-mode fallback, never rendered."""
