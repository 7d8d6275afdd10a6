"""
Role gate - confirms the submitting identity currently holds the citizen
capability before any report write.
"""

from typing import Dict, Optional
import logging

from uerra.config.backend import BackendClient, BackendError, Identity, USERS
from uerra.core.errors import AuthenticationError, AuthorizationError, PersistenceError
from uerra.services.capabilities import Capability, resolve_capability

logger = logging.getLogger(__name__)


class RoleGate:

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def require_citizen(self, identity: Optional[Identity]) -> Dict:
        """
        Fail unless the identity's profile holds the citizen role.

        One profile read. Returns the profile on success.

        Raises:
            AuthenticationError: no identity
            AuthorizationError: missing, inactive or non-citizen profile
            PersistenceError: the profile read failed
        """
        if identity is None or not identity.id:
            raise AuthenticationError("User must be authenticated to submit reports")

        try:
            profile = self.backend.get(USERS, identity.id)
        except BackendError as e:
            logger.error(f"Role lookup failed for {identity.id}: {e}", exc_info=True)
            raise PersistenceError("Failed to verify user role")

        if profile is None:
            raise AuthorizationError("Failed to verify user role")

        if not profile.get("is_active", True):
            raise AuthorizationError("Your account has been deactivated")

        if resolve_capability(profile.get("role")) != Capability.CITIZEN:
            logger.info(f"Rejected report write by {identity.id} with role {profile.get('role')!r}")
            raise AuthorizationError("Only citizens are authorized to submit emergency reports")

        return profile
