"""Identity model.

Doctors, patients and generic persons share one document shape; ``kind``
tells the variants apart and ``role`` is what session tokens carry.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from pydantic import BaseModel, Field


class IdentityKind(str, Enum):
    DOCTOR = "doctor"
    PATIENT = "patient"
    PERSON = "person"


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"
    GENERIC = "generic"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Email resolution order: first match wins.
KIND_PRECEDENCE = (IdentityKind.DOCTOR, IdentityKind.PATIENT, IdentityKind.PERSON)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class NotificationSettings(BaseModel):
    """Per-channel notification opt-ins."""
    email: bool = True
    sms: bool = True
    push: bool = True


class Identity(BaseModel):
    """A user account of any variant."""

    id: Optional[str] = None
    kind: IdentityKind
    role: Role
    email: str
    name: str
    password_hash: Optional[str] = None
    profile_image: str = ""
    firebase_uid: Optional[str] = None
    specialization: Optional[str] = None
    verification_status: Optional[VerificationStatus] = None
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_doctor(self) -> bool:
        return self.kind == IdentityKind.DOCTOR

    @property
    def is_verified(self) -> bool:
        """Only doctors go through verification; everyone else is verified."""
        if not self.is_doctor:
            return True
        return self.verification_status == VerificationStatus.APPROVED

    def to_document(self) -> Dict[str, Any]:
        """Serialize for storage; the store owns ``_id``."""
        doc = self.model_dump(mode="json", exclude={"id"})
        doc["created_at"] = self.created_at
        doc["updated_at"] = self.updated_at
        return doc

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Identity":
        data = {k: v for k, v in doc.items() if k != "_id"}
        data["id"] = str(doc["_id"])
        if not data.get("role"):
            # Legacy person records without a role sign in as patients.
            kind = data.get("kind")
            data["role"] = kind if kind in (Role.DOCTOR.value, Role.PATIENT.value) else Role.PATIENT.value
        return cls.model_validate(data)

    @classmethod
    def new_patient(cls, email: str, name: str, **fields) -> "Identity":
        return cls(kind=IdentityKind.PATIENT, role=Role.PATIENT,
                   email=normalize_email(email), name=name, **fields)

    @classmethod
    def new_doctor(cls, email: str, name: str, **fields) -> "Identity":
        fields.setdefault("verification_status", VerificationStatus.PENDING)
        return cls(kind=IdentityKind.DOCTOR, role=Role.DOCTOR,
                   email=normalize_email(email), name=name, **fields)

    @classmethod
    def new_admin(cls, email: str, name: str, **fields) -> "Identity":
        return cls(kind=IdentityKind.PERSON, role=Role.ADMIN,
                   email=normalize_email(email), name=name, **fields)


def resolve_precedence(candidates: Iterable[Identity]) -> Optional[Identity]:
    """Pick the identity that wins for an email: doctor, then patient, then person."""
    by_kind: Dict[IdentityKind, Identity] = {}
    for identity in candidates:
        by_kind.setdefault(identity.kind, identity)
    for kind in KIND_PRECEDENCE:
        if kind in by_kind:
            return by_kind[kind]
    return None
