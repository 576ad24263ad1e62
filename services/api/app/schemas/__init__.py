from .auth import (
    RegisterRequest,
    LoginRequest,
    TokenRequest,
    GoogleRegisterRequest,
    ProfileUpdateRequest,
    PasswordUpdateRequest,
    NotificationSettingsRequest,
    VerificationUpdateRequest,
    UserResponse,
    AuthResponse,
    VerifyResponse,
    UserEnvelope,
    UserListResponse,
    MessageResponse,
)
from .ai import HealthAssistantRequest, AssistantAnswer

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "TokenRequest",
    "GoogleRegisterRequest",
    "ProfileUpdateRequest",
    "PasswordUpdateRequest",
    "NotificationSettingsRequest",
    "VerificationUpdateRequest",
    "UserResponse",
    "AuthResponse",
    "VerifyResponse",
    "UserEnvelope",
    "UserListResponse",
    "MessageResponse",
    "HealthAssistantRequest",
    "AssistantAnswer",
]
