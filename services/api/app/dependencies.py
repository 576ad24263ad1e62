from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from common.exceptions import Forbidden, InvalidToken, Unauthenticated
from common.utils.security import TokenClaims, TokenService

from app.services.auth_service import AuthService
from app.services.identity_store import IdentityStore

security = HTTPBearer(auto_error=False)

# The verified claims of the caller: identity id and role.
CurrentIdentity = TokenClaims


def get_identity_store(request: Request) -> IdentityStore:
    return request.app.state.store


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_assistant(request: Request):
    return request.app.state.assistant


def get_auth_service(request: Request) -> AuthService:
    state = request.app.state
    return AuthService(state.store, state.tokens, state.federated)


async def get_current_identity(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> CurrentIdentity:
    """Validate the bearer token and return the caller's claims."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authorized, no token")
    try:
        return tokens.verify(credentials.credentials)
    except InvalidToken:
        raise Unauthenticated("Not authorized, token failed")


def authorize(*allowed_roles: str):
    """Build a dependency that only lets the given roles through."""

    async def check_role(
        current: Annotated[CurrentIdentity, Depends(get_current_identity)],
    ) -> CurrentIdentity:
        if current.role not in allowed_roles:
            raise Forbidden(f"User role {current.role} is not authorized to access this route")
        return current

    return check_role
