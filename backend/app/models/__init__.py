"""
Models package - organized by domain
"""
from .user import User, UserRole, UserStatus
from .otp_challenge import OTPChallenge
from .document import Document, DocumentTag, MajorHead

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "OTPChallenge",
    "Document",
    "DocumentTag",
    "MajorHead",
]
