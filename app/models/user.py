from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


class Role(str, Enum):
    SUPER_ADMIN = "super-admin"
    ORGANIZER = "organizer"
    USER = "user"


class AdminUser(BaseModel):
    """Usuario del back office. Nunca incluye el password."""
    id: int
    name: Optional[str] = None
    username: str
    role: Role = Role.ORGANIZER


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    success: bool = True
    user: AdminUser
    token: str


class OtpRequest(BaseModel):
    phone: str = Field(..., description="E.164 phone, e.g. +919876543210")


class OtpVerifyRequest(BaseModel):
    phone: str
    otp: str


class OtpResponse(BaseModel):
    success: bool = True
    message: str
    token: Optional[str] = None
