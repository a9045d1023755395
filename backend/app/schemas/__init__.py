# Schemas package
from .auth import (
    GenerateOTPRequest,
    GenerateOTPResponse,
    ValidateOTPRequest,
    ValidateOTPResponse,
    PasswordLoginRequest,
    UserPublic,
    AdminCreateUserRequest,
)
from .document import (
    TagIn,
    DocumentEntryData,
    SearchValue,
    SearchDocumentRequest,
    SearchDocumentResponse,
    DocumentTagsRequest,
)

__all__ = [
    "GenerateOTPRequest", "GenerateOTPResponse",
    "ValidateOTPRequest", "ValidateOTPResponse",
    "PasswordLoginRequest", "UserPublic", "AdminCreateUserRequest",
    "TagIn", "DocumentEntryData", "SearchValue",
    "SearchDocumentRequest", "SearchDocumentResponse", "DocumentTagsRequest",
]
