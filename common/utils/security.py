"""Security utilities: password hashing and session tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from common.exceptions import InvalidToken

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
TOKEN_EXPIRE_DAYS = 30


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a password against a hash. Missing or unreadable hashes never match."""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        return False


@dataclass(frozen=True)
class TokenClaims:
    """What a session token proves about its bearer."""
    identity_id: str
    role: str


class TokenService:
    """Issues and verifies stateless session tokens.

    Tokens are signed JWTs carrying the identity id (``sub``) and role. There
    is no server-side record of issued tokens, so a token stays valid until it
    expires.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = ALGORITHM,
        expires_delta: timedelta = timedelta(days=TOKEN_EXPIRE_DAYS),
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_delta = expires_delta

    def issue(self, identity_id: str, role: str, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.utcnow()
        payload = {
            "sub": str(identity_id),
            "role": str(role),
            "iat": issued_at,
            "exp": issued_at + self.expires_delta,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise InvalidToken() from e

        identity_id = payload.get("sub")
        role = payload.get("role")
        if not identity_id or not role:
            raise InvalidToken("Token is missing identity claims")
        return TokenClaims(identity_id=identity_id, role=role)
