"""Admin review of doctor accounts."""
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies import CurrentIdentity, authorize, get_auth_service
from app.schemas.auth import UserEnvelope, UserListResponse, UserResponse, VerificationUpdateRequest
from app.services.auth_service import AuthService
from common.models import Role, VerificationStatus

router = APIRouter(prefix="/api/verification", tags=["Verification"])

AdminOnly = Annotated[CurrentIdentity, Depends(authorize(Role.ADMIN.value))]


@router.get("/doctors", response_model=UserListResponse)
def list_doctors(
    _: AdminOnly,
    auth: Annotated[AuthService, Depends(get_auth_service)],
    status: Optional[Literal["pending", "approved", "rejected"]] = Query(None),
):
    doctors = auth.list_doctors(VerificationStatus(status) if status else None)
    return UserListResponse(users=[UserResponse.from_identity(d) for d in doctors])


@router.put("/doctors/{doctor_id}", response_model=UserEnvelope)
def update_doctor_status(
    doctor_id: str,
    data: VerificationUpdateRequest,
    _: AdminOnly,
    auth: Annotated[AuthService, Depends(get_auth_service)],
):
    doctor = auth.set_verification_status(doctor_id, VerificationStatus(data.status))
    return UserEnvelope(user=UserResponse.from_identity(doctor))
