"""
Mobile OTP login, password login for admin-created accounts, and /me
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import get_current_user
from ..models import User
from ..schemas.auth import (
    GenerateOTPRequest,
    GenerateOTPResponse,
    ValidateOTPRequest,
    ValidateOTPResponse,
    PasswordLoginRequest,
    UserPublic,
)
from ..services.auth import (
    AuthError,
    AccountDisabled,
    InvalidCredentials,
    StorageFailure,
    create_session_token,
)
from ..services.otp_service import OTPService
from ..services.user_service import UserService
from ..utils.phone import get_phone_last4

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _session_response(message: str, token: str, user: User) -> ValidateOTPResponse:
    return ValidateOTPResponse(
        message=message,
        token=token,
        user_id=user.id,
        user=UserPublic.model_validate(user),
    )


@router.post("/generateOTP", response_model=GenerateOTPResponse, response_model_exclude_none=True)
def generate_otp(payload: GenerateOTPRequest, db: Session = Depends(get_db)):
    """
    Issue an OTP for a mobile number.

    Sends the code by SMS when Twilio is configured; otherwise (or when the
    send fails) the code is returned in the response body.
    """
    try:
        issued = OTPService.request_challenge(db, payload.mobile_number)
    except AuthError:
        raise
    except Exception as e:
        logger.error(f"[Auth][OTP] generateOTP failed for ...{get_phone_last4(payload.mobile_number)}: {e}", exc_info=True)
        raise StorageFailure("Failed to generate OTP")

    return GenerateOTPResponse(
        message=issued.message,
        otp=issued.otp,
        expires_in=issued.expires_in,
        delivered=issued.delivered,
    )


@router.post("/validateOTP", response_model=ValidateOTPResponse)
def validate_otp(payload: ValidateOTPRequest, db: Session = Depends(get_db)):
    """Verify an OTP and exchange it for a session token. Creates the user on first login."""
    try:
        session = OTPService.verify_challenge(db, payload.mobile_number, payload.otp)
    except AuthError:
        raise
    except Exception as e:
        logger.error(f"[Auth][OTP] validateOTP failed for ...{get_phone_last4(payload.mobile_number)}: {e}", exc_info=True)
        raise StorageFailure("Failed to validate OTP")

    return _session_response(session.message, session.token, session.user)


@router.post("/login", response_model=ValidateOTPResponse)
def password_login(payload: PasswordLoginRequest, db: Session = Depends(get_db)):
    user = UserService.authenticate(db, payload.mobile_number, payload.password)
    if user is None:
        logger.info(f"[Auth] Password login rejected for ...{get_phone_last4(payload.mobile_number)}")
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDisabled()

    user = UserService.touch_last_login(db, user)
    return _session_response("Login successful", create_session_token(user), user)


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": UserPublic.model_validate(user).model_dump()}
