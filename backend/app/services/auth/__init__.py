"""
Auth services package: OTP delivery, rate limiting, session tokens
"""
from .errors import (
    AuthError,
    InputValidationError,
    OTPValidationError,
    RateLimitExceeded,
    ChallengeNotFound,
    AttemptsExhausted,
    CodeMismatch,
    InvalidCredentials,
    AccountDisabled,
    StorageFailure,
    DeliveryFailure,
)
from .sms_channel import SMSChannel, TwilioSMSChannel, DeliveryReceipt, get_sms_channel
from .rate_limit import OTPRateLimiter, get_rate_limiter, reset_rate_limiter
from .tokens import SessionClaims, InvalidSessionToken, create_session_token, decode_session_token

__all__ = [
    "AuthError",
    "InputValidationError",
    "OTPValidationError",
    "RateLimitExceeded",
    "ChallengeNotFound",
    "AttemptsExhausted",
    "CodeMismatch",
    "InvalidCredentials",
    "AccountDisabled",
    "StorageFailure",
    "DeliveryFailure",
    "SMSChannel",
    "TwilioSMSChannel",
    "DeliveryReceipt",
    "get_sms_channel",
    "OTPRateLimiter",
    "get_rate_limiter",
    "reset_rate_limiter",
    "SessionClaims",
    "InvalidSessionToken",
    "create_session_token",
    "decode_session_token",
]
