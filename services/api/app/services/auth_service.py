"""Account and session operations behind the auth endpoints."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from common.exceptions import (
    BadRequest,
    DuplicateEmail,
    Forbidden,
    InvalidCredentials,
    InvalidToken,
    NotFound,
    PendingVerification,
    Unauthenticated,
)
from common.models import Identity, IdentityKind, Role, VerificationStatus
from common.utils.security import TokenService, hash_password, verify_password

from .identity_store import IdentityStore

logger = logging.getLogger(__name__)

SIGNUP_ROLES = (Role.PATIENT.value, Role.DOCTOR.value)


@dataclass
class AuthResult:
    token: str
    identity: Identity


class AuthService:
    """Resolves credentials to identities and mints session tokens."""

    def __init__(self, store: IdentityStore, tokens: TokenService, federated=None):
        self.store = store
        self.tokens = tokens
        self.federated = federated

    def _session(self, identity: Identity) -> AuthResult:
        return AuthResult(token=self.tokens.issue(identity.id, identity.role.value), identity=identity)

    @staticmethod
    def _new_identity(role: str, email: str, name: str, specialization: Optional[str] = None, **fields) -> Identity:
        if role == Role.DOCTOR.value:
            return Identity.new_doctor(email, name, specialization=specialization, **fields)
        if role == Role.PATIENT.value:
            return Identity.new_patient(email, name, **fields)
        raise BadRequest(f"Cannot register with role '{role}'")

    # Password credentials

    def register(
        self,
        email: str,
        password: str,
        name: str,
        role: str = Role.PATIENT.value,
        specialization: Optional[str] = None,
    ) -> AuthResult:
        if self.store.find_by_email(email) is not None:
            raise DuplicateEmail()

        identity = self._new_identity(
            role, email, name, specialization, password_hash=hash_password(password)
        )
        identity = self.store.create(identity)
        logger.info(f"Registered {identity.role.value} account {identity.id}")
        return self._session(identity)

    def login(self, email: str, password: str) -> AuthResult:
        identity = self.store.find_by_email(email)
        if identity is None or not verify_password(password, identity.password_hash):
            logger.warning(f"Failed login attempt for {email}")
            raise InvalidCredentials()
        return self._session(identity)

    def admin_login(self, email: str, password: str) -> AuthResult:
        result = self.login(email, password)
        if result.identity.role != Role.ADMIN:
            logger.warning(f"Non-admin account {result.identity.id} tried admin login")
            raise Forbidden("Access denied. Admin privileges required.")
        return result

    # Federated credentials

    def federated_login(self, provider_token: str) -> AuthResult:
        """Sign in with a provider token, creating a patient on first sign-in."""
        profile = self.federated.exchange(provider_token)

        identity = self.store.find_by_email(profile.email)
        if identity is None:
            identity = self.store.create(Identity.new_patient(
                profile.email,
                profile.name or profile.email.split("@")[0],
                firebase_uid=profile.subject_id,
                profile_image=profile.picture_url or "",
            ))
            logger.info(f"Created patient {identity.id} from federated sign-in")

        if identity.firebase_uid != profile.subject_id:
            identity = self.store.update(identity.id, {"firebase_uid": profile.subject_id})

        return self._session(identity)

    def federated_register(
        self,
        provider_token: str,
        role: str = Role.PATIENT.value,
        specialization: Optional[str] = None,
    ) -> AuthResult:
        profile = self.federated.exchange(provider_token)
        if self.store.find_by_email(profile.email) is not None:
            raise DuplicateEmail()

        identity = self._new_identity(
            role,
            profile.email,
            profile.name or profile.email.split("@")[0],
            specialization,
            firebase_uid=profile.subject_id,
            profile_image=profile.picture_url or "",
        )
        identity = self.store.create(identity)
        logger.info(f"Registered {identity.role.value} account {identity.id} via federated sign-in")
        return self._session(identity)

    # Session refresh

    def refresh(self, token: Optional[str]) -> AuthResult:
        """Re-validate a token against the current identity and re-sign it."""
        if not token:
            raise BadRequest("No token provided")
        try:
            claims = self.tokens.verify(token)
        except InvalidToken:
            raise Unauthenticated("Invalid or expired token")

        identity = self.store.get(claims.identity_id)
        if identity is None:
            raise Unauthenticated("User no longer exists")
        if not identity.is_verified:
            raise PendingVerification()
        return self._session(identity)

    # Self-service

    def get_identity(self, identity_id: str) -> Identity:
        identity = self.store.get(identity_id)
        if identity is None:
            raise NotFound("User not found")
        return identity

    def update_profile(self, identity_id: str, changes: Dict[str, Any]) -> Identity:
        identity = self.get_identity(identity_id)
        if not identity.is_doctor:
            changes.pop("specialization", None)
        if not changes:
            return identity
        return self.store.update(identity_id, changes) or self.get_identity(identity_id)

    def change_password(self, identity_id: str, current_password: Optional[str], new_password: str) -> None:
        identity = self.get_identity(identity_id)
        if identity.password_hash and not verify_password(current_password or "", identity.password_hash):
            raise InvalidCredentials("Current password is incorrect")
        self.store.update(identity_id, {"password_hash": hash_password(new_password)})
        logger.info(f"Password updated for {identity_id}")

    def update_notification_settings(self, identity_id: str, changes: Dict[str, bool]) -> Identity:
        identity = self.get_identity(identity_id)
        merged = identity.notification_settings.model_copy(update=changes)
        return self.store.update(identity_id, {"notification_settings": merged}) or identity

    # Doctor verification

    def list_doctors(self, status: Optional[VerificationStatus] = None) -> List[Identity]:
        return self.store.list_doctors(status)

    def set_verification_status(self, doctor_id: str, status: VerificationStatus) -> Identity:
        identity = self.store.get(doctor_id)
        if identity is None or identity.kind != IdentityKind.DOCTOR:
            raise NotFound("Doctor not found")
        updated = self.store.update(doctor_id, {"verification_status": status})
        logger.info(f"Doctor {doctor_id} verification status set to {status.value}")
        return updated

    def seed_admin(self, email: str, password: str, name: str) -> Optional[Identity]:
        """Create the configured admin account if it does not exist yet."""
        if self.store.find_by_email(email) is not None:
            return None
        identity = self.store.create(Identity.new_admin(email, name, password_hash=hash_password(password)))
        logger.info(f"Seeded admin account {identity.email}")
        return identity
