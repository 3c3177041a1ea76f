from typing import Optional

from pydantic import ConfigDict, EmailStr, field_validator

from app.core.security import MAX_PASSWORD_BYTES
from app.models.user import NAME_MAX_LENGTH
from app.schemas.common import CamelModel

MIN_PASSWORD_LENGTH = 8


def _check_password_length(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if len(value.encode()) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return value


def _check_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required.")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"Name must be at most {NAME_MAX_LENGTH} characters.")
    return value


class RegisterRequest(CamelModel):
    name: str
    email: EmailStr
    password: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, value):
        return _check_name(value)

    @field_validator("password")
    @classmethod
    def _password_length(cls, value):
        return _check_password_length(value)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserPublic(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    avatar: Optional[str] = None


class AuthResponse(CamelModel):
    success: bool = True
    token: str
    user: UserPublic


class UserEnvelope(CamelModel):
    success: bool = True
    user: UserPublic


class ProfileUpdate(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name_required(cls, value):
        return _check_name(value)


class PasswordChange(CamelModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def _password_length(cls, value):
        return _check_password_length(value)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str
    new_password: str

    @field_validator("token")
    @classmethod
    def _token_required(cls, value):
        if not value.strip():
            raise ValueError("Invalid token or password.")
        return value.strip()

    @field_validator("new_password")
    @classmethod
    def _password_length(cls, value):
        return _check_password_length(value)


class GoogleAuthRequest(CamelModel):
    credential: str


class AvatarResponse(CamelModel):
    success: bool = True
    message: str
    avatar: Optional[str]
    full_avatar_url: Optional[str] = None
