"""
Request authentication helpers (FastAPI dependencies).

Identity comes from a Firebase ID token in the Authorization header
("Bearer <token>"); the role comes from the user's profile row.
"""

import logging
from typing import Dict, Optional

from fastapi import Depends, Header

from uerra.config.backend import BackendClient, BackendError, Identity
from uerra.config.firebase import get_backend
from uerra.core.errors import AuthenticationError, AuthorizationError, PersistenceError
from uerra.services.capabilities import Capability, resolve_capability
from uerra.services.user_service import UserService

logger = logging.getLogger(__name__)


def parse_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the token from an Authorization header.

    Returns None when the header is absent; raises AuthenticationError when
    it is present but not a bearer token.
    """
    if not authorization or not authorization.strip():
        return None
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Invalid Authorization header, expected 'Bearer <token>'")
    return parts[1].strip()


def get_optional_identity(
    authorization: Optional[str] = Header(None),
    backend: BackendClient = Depends(get_backend)
) -> Optional[Identity]:
    """Signed-in identity, or None for anonymous requests."""
    token = parse_bearer_token(authorization)
    if token is None:
        return None

    try:
        identity = backend.verify_session(token)
    except BackendError as e:
        logger.error(f"Session lookup failed: {e}", exc_info=True)
        raise PersistenceError("Failed to verify session")

    if identity is None:
        raise AuthenticationError("Session expired or invalid, please sign in again")
    return identity


def get_current_identity(identity: Optional[Identity] = Depends(get_optional_identity)) -> Identity:
    if identity is None:
        raise AuthenticationError("Authentication required")
    return identity


def get_current_profile(
    identity: Identity = Depends(get_current_identity),
    backend: BackendClient = Depends(get_backend)
) -> Dict:
    """Profile of the signed-in user; inactive or missing profiles are rejected."""
    profile = UserService(backend).get_profile(identity.id)
    if profile is None:
        raise AuthorizationError("No user profile found, complete sign-up first")
    if not profile.get("is_active", True):
        raise AuthorizationError("Your account has been deactivated")
    return profile


def require_capability(*allowed: Capability):
    """
    Dependency factory gating a route on the caller's capability.

    Usage:
        profile: Dict = Depends(require_capability(Capability.ADMIN, Capability.SUPERADMIN))
    """
    allowed_set = frozenset(allowed)

    def dependency(profile: Dict = Depends(get_current_profile)) -> Dict:
        capability = resolve_capability(profile.get("role"))
        if capability not in allowed_set:
            raise AuthorizationError("You do not have permission to perform this action")
        return profile

    return dependency
