"""
Request/response bodies for the auth endpoints.

Request fields are plain strings; format checks live in OTPService.
"""
from pydantic import BaseModel
from typing import Optional, Literal


class GenerateOTPRequest(BaseModel):
    mobile_number: str


class GenerateOTPResponse(BaseModel):
    success: bool = True
    message: str
    otp: Optional[str] = None  # present only in dev-mode fallback
    expires_in: int
    delivered: bool


class ValidateOTPRequest(BaseModel):
    mobile_number: str
    otp: str


class UserPublic(BaseModel):
    id: int
    mobile_number: str
    name: str
    role: str

    class Config:
        from_attributes = True


class ValidateOTPResponse(BaseModel):
    success: bool = True
    message: str
    token: str
    user_id: int
    user: UserPublic


class PasswordLoginRequest(BaseModel):
    mobile_number: str
    password: str


class AdminCreateUserRequest(BaseModel):
    mobile_number: str
    name: str
    email: Optional[str] = None
    password: Optional[str] = None
    role: Literal["user", "admin"] = "user"
