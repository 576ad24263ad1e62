"""Authentication router."""
from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.dependencies import CurrentIdentity, get_auth_service, get_current_identity
from app.schemas.auth import (
    AuthResponse,
    GoogleRegisterRequest,
    LoginRequest,
    MessageResponse,
    NotificationSettingsRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    TokenRequest,
    UserEnvelope,
    UserResponse,
    VerifyResponse,
)
from app.services.auth_service import AuthResult, AuthService
from common.exceptions import BadRequest

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

Auth = Annotated[AuthService, Depends(get_auth_service)]
Current = Annotated[CurrentIdentity, Depends(get_current_identity)]


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(token=result.token, user=UserResponse.from_identity(result.identity))


def _provider_token(body: TokenRequest) -> str:
    if not body.token:
        raise BadRequest("No token provided")
    return body.token


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, auth: Auth):
    """Register a patient or doctor with email and password."""
    return _auth_response(auth.register(
        email=data.email,
        password=data.password,
        name=data.name,
        role=data.role,
        specialization=data.specialization,
    ))


@router.post("/register-google", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_google(data: GoogleRegisterRequest, auth: Auth):
    """Register with a Firebase ID token."""
    return _auth_response(auth.federated_register(
        _provider_token(data), role=data.role, specialization=data.specialization
    ))


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, auth: Auth):
    """Authenticate with email and password."""
    return _auth_response(auth.login(data.email, data.password))


@router.post("/admin-login", response_model=AuthResponse)
def admin_login(data: LoginRequest, auth: Auth):
    """Authenticate an administrator."""
    return _auth_response(auth.admin_login(data.email, data.password))


@router.post("/google", response_model=AuthResponse)
def google_login(data: TokenRequest, auth: Auth):
    """Exchange a Firebase ID token for a session token.

    Existing accounts are matched by email, doctors first, then patients,
    then generic persons. Unknown emails get a new patient account.
    """
    return _auth_response(auth.federated_login(_provider_token(data)))


@router.post("/authenticate", response_model=AuthResponse)
def authenticate(data: TokenRequest, auth: Auth):
    """Refresh a session token with the identity's current data."""
    return _auth_response(auth.refresh(data.token))


@router.post("/verify", response_model=VerifyResponse)
def verify(data: TokenRequest, auth: Auth):
    """Check that a token is still valid and its account usable."""
    result = auth.refresh(data.token)
    return VerifyResponse(token=result.token, user=UserResponse.from_identity(result.identity))


# Protected routes


@router.get("/me", response_model=UserEnvelope)
def get_me(current: Current, auth: Auth):
    """Get current user info."""
    return UserEnvelope(user=UserResponse.from_identity(auth.get_identity(current.identity_id)))


@router.get("/verify", response_model=UserEnvelope)
def verify_bearer(current: Current, auth: Auth):
    """Confirm the bearer token and return the user it belongs to."""
    return UserEnvelope(user=UserResponse.from_identity(auth.get_identity(current.identity_id)))


@router.put("/profile", response_model=UserEnvelope)
def update_profile(data: ProfileUpdateRequest, current: Current, auth: Auth):
    identity = auth.update_profile(current.identity_id, data.model_dump(exclude_none=True))
    return UserEnvelope(user=UserResponse.from_identity(identity))


@router.put("/password", response_model=MessageResponse)
def update_password(data: PasswordUpdateRequest, current: Current, auth: Auth):
    auth.change_password(current.identity_id, data.current_password, data.new_password)
    return MessageResponse(message="Password updated successfully")


@router.put("/notification-settings", response_model=UserEnvelope)
def update_notification_settings(data: NotificationSettingsRequest, current: Current, auth: Auth):
    identity = auth.update_notification_settings(current.identity_id, data.model_dump(exclude_none=True))
    return UserEnvelope(user=UserResponse.from_identity(identity))
