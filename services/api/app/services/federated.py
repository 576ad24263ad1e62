"""Firebase ID token verification for federated (Google) sign-in."""

import logging
from dataclasses import dataclass
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials, exceptions

from common.exceptions import FederatedAuthError, InternalError, ServiceUnavailable

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "healthpal"


@dataclass(frozen=True)
class FederatedProfile:
    """Profile returned by the identity provider for a verified token."""
    email: str
    name: Optional[str]
    picture_url: Optional[str]
    subject_id: str


class FirebaseTokenVerifier:
    """Owns the process-wide Firebase app.

    ``start`` is called once from the application lifespan and ``close`` on
    shutdown. Without credentials or a project id the verifier stays
    unconfigured and every exchange is refused.
    """

    def __init__(self, credentials_path: str = "", project_id: str = ""):
        self.credentials_path = credentials_path
        self.project_id = project_id
        self._app: Optional[firebase_admin.App] = None

    @property
    def configured(self) -> bool:
        return self._app is not None

    def start(self) -> None:
        if self._app is not None:
            return
        if not self.credentials_path and not self.project_id:
            logger.warning("Firebase: not configured - federated sign-in disabled")
            return

        if self.credentials_path:
            cred = credentials.Certificate(self.credentials_path)
        else:
            cred = credentials.ApplicationDefault()
        options = {"projectId": self.project_id} if self.project_id else None
        self._app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)
        logger.info("Firebase Admin initialized successfully")

    def close(self) -> None:
        if self._app is not None:
            firebase_admin.delete_app(self._app)
            self._app = None

    def exchange(self, provider_token: str) -> FederatedProfile:
        """Verify a Firebase ID token and return the caller's profile."""
        if self._app is None:
            raise ServiceUnavailable("Federated sign-in is not configured")

        try:
            decoded = auth.verify_id_token(provider_token, app=self._app, clock_skew_seconds=60)
        except auth.CertificateFetchError as e:
            logger.error(f"Could not fetch Firebase public keys: {e}")
            raise InternalError("Federated sign-in is temporarily unavailable") from e
        except (ValueError, exceptions.FirebaseError) as e:
            logger.warning(f"Firebase token rejected: {e}")
            raise FederatedAuthError("Authentication failed") from e

        email = decoded.get("email")
        if not email:
            raise FederatedAuthError("Federated account has no email address")

        return FederatedProfile(
            email=email,
            name=decoded.get("name"),
            picture_url=decoded.get("picture"),
            subject_id=decoded["uid"],
        )
