"""
Phone OTP (One-Time Password) service

Stateless protocol handler behind generateOTP / validateOTP. Everything
needed to decide an outcome is re-read from the OTP ledger and the user
store on each call.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.env import is_local_env
from ..models import User
from ..utils.phone import validate_mobile_number, get_phone_last4
from .otp_ledger import OTPLedger, OTP_TTL_SECONDS, MAX_ATTEMPTS
from .user_service import UserService
from .auth import (
    OTPValidationError,
    RateLimitExceeded,
    ChallengeNotFound,
    AttemptsExhausted,
    CodeMismatch,
    AccountDisabled,
    StorageFailure,
    DeliveryFailure,
    get_sms_channel,
    get_rate_limiter,
    create_session_token,
)

logger = logging.getLogger(__name__)

OTP_LENGTH = 6


@dataclass
class ChallengeIssued:
    delivered: bool
    otp: Optional[str]  # only set when the code could not be delivered by SMS
    expires_in: int = OTP_TTL_SECONDS

    @property
    def message(self) -> str:
        return "OTP sent successfully" if self.delivered else "OTP generated (dev mode)"


@dataclass
class SessionIssued:
    token: str
    user: User
    message: str = "OTP verified successfully"


def _require_mobile_number(mobile_number: str) -> None:
    if not validate_mobile_number(mobile_number):
        raise OTPValidationError(
            errors=[{"field": "mobile_number", "message": "Please enter a valid mobile number"}]
        )


class OTPService:
    """Service for issuing and verifying OTP challenges"""

    @staticmethod
    def request_challenge(db: Session, mobile_number: str) -> ChallengeIssued:
        """
        Issue a new challenge for a mobile number and try to deliver it.

        Returns:
            ChallengeIssued; `otp` carries the code when SMS delivery is
            unavailable or failed (dev-mode fallback)

        Raises:
            OTPValidationError: Malformed mobile number
            RateLimitExceeded: Per-number quota used up for the current window
            StorageFailure: Ledger unavailable
        """
        _require_mobile_number(mobile_number)
        phone_last4 = get_phone_last4(mobile_number)

        allowed, _ = get_rate_limiter().hit(mobile_number)
        if not allowed:
            raise RateLimitExceeded()

        try:
            challenge = OTPLedger(db).issue(mobile_number)
            code = challenge.code
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[OTP] Failed to store challenge for ...{phone_last4}: {e}", exc_info=True)
            raise StorageFailure("Failed to generate OTP")

        channel = get_sms_channel()
        if channel is None:
            logger.info(f"[OTP] No SMS channel configured, returning code inline for ...{phone_last4}")
        else:
            try:
                channel.send(mobile_number, code)
                return ChallengeIssued(delivered=True, otp=None)
            except DeliveryFailure as e:
                logger.warning(f"[OTP] SMS delivery failed for ...{phone_last4}, falling back to dev mode: {e}")

        if is_local_env():
            logger.info(f"[OTP][DEV] Code for ...{phone_last4}: {code}")
        return ChallengeIssued(delivered=False, otp=code)

    @staticmethod
    def verify_challenge(db: Session, mobile_number: str, otp: str) -> SessionIssued:
        """
        Check a submitted code and, on success, log the user in.

        Returns:
            SessionIssued with a signed session token and the user

        Raises:
            OTPValidationError: Malformed mobile number or code length
            ChallengeNotFound: No active challenge (never issued, expired,
                exhausted or already used - deliberately indistinguishable)
            AttemptsExhausted: Third failure; a new OTP must be requested
            CodeMismatch: Wrong code, with attempts remaining
            AccountDisabled: Code was correct but the account is inactive or suspended
            StorageFailure: Ledger or user store unavailable
        """
        _require_mobile_number(mobile_number)
        if not isinstance(otp, str) or len(otp) != OTP_LENGTH:
            raise OTPValidationError(errors=[{"field": "otp", "message": "OTP must be 6 digits"}])

        phone_last4 = get_phone_last4(mobile_number)
        ledger = OTPLedger(db)

        try:
            challenge = ledger.find_active(mobile_number)
            if challenge is None:
                reason = ledger.classify_missing(mobile_number)
                logger.info(f"[OTP] No active challenge for ...{phone_last4} (reason={reason})")
                raise ChallengeNotFound(reason)

            if challenge.attempts >= MAX_ATTEMPTS:
                ledger.delete(challenge)
                logger.info(f"[OTP] Challenge for ...{phone_last4} already exhausted, deleted")
                raise AttemptsExhausted()

            if not secrets.compare_digest(otp.encode(), challenge.code.encode()):
                attempts = ledger.record_failed_attempt(challenge)
                remaining = max(MAX_ATTEMPTS - attempts, 0)
                logger.warning(f"[OTP] Wrong code for ...{phone_last4} (attempt {attempts}/{MAX_ATTEMPTS})")
                if remaining == 0:
                    raise AttemptsExhausted(attempts_remaining=0)
                raise CodeMismatch(attempts_remaining=remaining)

            if not ledger.mark_verified(challenge):
                # Lost the race to a concurrent verification of the same challenge
                logger.info(f"[OTP] Challenge for ...{phone_last4} consumed concurrently")
                raise ChallengeNotFound("consumed")

            user = UserService.get_or_create_by_mobile(db, mobile_number)
            if not user.is_active:
                logger.warning(f"[OTP] Login refused for ...{phone_last4}: account {user.status}")
                raise AccountDisabled()
            user = UserService.touch_last_login(db, user)
            token = create_session_token(user)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"[OTP] Storage error verifying ...{phone_last4}: {e}", exc_info=True)
            raise StorageFailure("Failed to validate OTP")

        logger.info(f"[OTP] Verification successful for ...{phone_last4} (user {user.id})")
        return SessionIssued(token=token, user=user)
