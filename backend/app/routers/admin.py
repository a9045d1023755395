"""
Admin-only account management
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..db import get_db
from ..dependencies.auth import require_admin
from ..models import User
from ..schemas.auth import AdminCreateUserRequest, UserPublic
from ..services.auth import InputValidationError
from ..services.user_service import UserService, DuplicateUserError
from ..utils.phone import validate_mobile_number

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminCreateUserRequest,
    admin: User = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create an account ahead of its first login, optionally with a password."""
    if not validate_mobile_number(payload.mobile_number):
        raise InputValidationError(
            errors=[{"field": "mobile_number", "message": "Please enter a valid mobile number"}]
        )

    try:
        user = UserService.create_user(
            db,
            mobile_number=payload.mobile_number,
            name=payload.name.strip(),
            email=payload.email,
            password=payload.password,
            role=payload.role,
            created_by=admin.id,
        )
    except DuplicateUserError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    logger.info(f"[Admin] User {admin.id} created user {user.id} (role={user.role})")
    return {
        "success": True,
        "message": "User created successfully",
        "user": UserPublic.model_validate(user).model_dump(),
    }
