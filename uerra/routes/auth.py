"""
Authentication endpoints - session info for the signed-in user.

Sign-in itself happens in the browser against Firebase Authentication;
the dashboard sends the resulting ID token as a bearer token.
"""

from fastapi import APIRouter, Depends
from uerra.config.backend import BackendClient, Identity
from uerra.config.firebase import get_backend
from uerra.models.user import ProfileRequest, SessionResponse, UserProfile
from uerra.services.capabilities import navigation_for, resolve_capability
from uerra.services.user_service import UserService
from uerra.utils.security import get_current_identity, get_current_profile
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _session(profile: dict) -> SessionResponse:
    capability = resolve_capability(profile.get("role"))
    return SessionResponse(
        profile=UserProfile(**profile),
        capability=capability.value if capability else None,
        navigation=navigation_for(capability)
    )


@router.get("/me", response_model=SessionResponse)
def get_current_user(profile: dict = Depends(get_current_profile)):
    """
    Get the signed-in user's profile, capability and sidebar navigation.

    Returns:
        SessionResponse
    """
    return _session(profile)


@router.post("/profile", response_model=SessionResponse)
def ensure_profile(
    request: ProfileRequest,
    identity: Identity = Depends(get_current_identity),
    backend: BackendClient = Depends(get_backend)
):
    """
    Create the caller's profile on first sign-in (as a citizen).

    Idempotent: an existing profile is returned as-is, apart from filling
    in a missing name.
    """
    profile = UserService(backend).ensure_profile(identity, request.name)
    return _session(profile)
