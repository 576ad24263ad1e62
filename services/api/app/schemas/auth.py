"""Authentication schemas."""
import re
from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional

from common.models import Identity


def validate_email(email: str) -> str:
    """Simple email validation."""
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    email = email.strip()
    if not re.match(pattern, email):
        raise ValueError('Please enter a valid email address')
    return email.lower()


class RegisterRequest(BaseModel):
    """Email/password registration request."""
    email: str
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2)
    role: Literal['patient', 'doctor'] = 'patient'
    specialization: Optional[str] = None

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return validate_email(v)


class LoginRequest(BaseModel):
    """Email/password login request."""
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email_field(cls, v: str) -> str:
        return validate_email(v)


class TokenRequest(BaseModel):
    """Body carrying a session or provider token."""
    token: Optional[str] = None


class GoogleRegisterRequest(TokenRequest):
    """Federated registration request."""
    role: Literal['patient', 'doctor'] = 'patient'
    specialization: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2)
    profile_image: Optional[str] = None
    specialization: Optional[str] = None


class PasswordUpdateRequest(BaseModel):
    current_password: Optional[str] = None
    new_password: str = Field(..., min_length=6)


class NotificationSettingsRequest(BaseModel):
    email: Optional[bool] = None
    sms: Optional[bool] = None
    push: Optional[bool] = None


class UserResponse(BaseModel):
    """User response without sensitive data."""
    id: str
    email: str
    name: str
    role: str
    profile_image: Optional[str] = None
    specialization: Optional[str] = None
    verification_status: Optional[str] = None
    notification_settings: Optional[dict] = None

    @classmethod
    def from_identity(cls, identity: Identity) -> "UserResponse":
        return cls(
            id=identity.id,
            email=identity.email,
            name=identity.name,
            role=identity.role.value,
            profile_image=identity.profile_image or None,
            specialization=identity.specialization,
            verification_status=identity.verification_status.value if identity.verification_status else None,
            notification_settings=identity.notification_settings.model_dump(),
        )


class AuthResponse(BaseModel):
    """Session token response."""
    success: bool = True
    token: str
    user: UserResponse


class VerifyResponse(AuthResponse):
    message: str = "Token is valid"


class UserEnvelope(BaseModel):
    success: bool = True
    user: UserResponse


class UserListResponse(BaseModel):
    success: bool = True
    users: list[UserResponse]


class VerificationUpdateRequest(BaseModel):
    status: Literal['pending', 'approved', 'rejected']


class MessageResponse(BaseModel):
    """Simple message response."""
    message: str
    success: bool = True
