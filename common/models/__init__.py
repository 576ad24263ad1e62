from .identity import (
    Identity,
    IdentityKind,
    NotificationSettings,
    Role,
    VerificationStatus,
    KIND_PRECEDENCE,
    normalize_email,
    resolve_precedence,
)

__all__ = [
    "Identity",
    "IdentityKind",
    "NotificationSettings",
    "Role",
    "VerificationStatus",
    "KIND_PRECEDENCE",
    "normalize_email",
    "resolve_precedence",
]
