"""
User Service - Manage user profiles in Firestore.

Profiles are keyed by the Firebase Authentication uid. Sign-in itself is
handled by Firebase; this service owns the role and agency membership.
"""

from typing import Dict, List, Optional
import logging
import uuid

from uerra.config.backend import AGENCIES, BackendClient, BackendError, Identity, USERS
from uerra.core.errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from uerra.models.user import UserCreate, UserRole, UserUpdate
from uerra.services.capabilities import Capability, resolve_capability

logger = logging.getLogger(__name__)

PRIVILEGED_ROLES = {UserRole.ADMIN.value, UserRole.SUPERADMIN.value}


class UserService:
    """
    Service for user profile management.
    """

    def __init__(self, backend: BackendClient):
        self.backend = backend

    def get_profile(self, user_id: str) -> Optional[Dict]:
        try:
            return self.backend.get(USERS, user_id)
        except BackendError as e:
            logger.error(f"Failed to get profile {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to load user profile: {e}")

    def require_profile(self, user_id: str) -> Dict:
        profile = self.get_profile(user_id)
        if profile is None:
            raise NotFoundError(f"User {user_id} not found")
        return profile

    def ensure_profile(self, identity: Identity, name: Optional[str] = None) -> Dict:
        """
        Create the profile on first sign-in, otherwise return it unchanged.

        New profiles are always citizens; roles are only granted by admins.
        """
        existing = self.get_profile(identity.id)
        if existing:
            if name and not existing.get("name"):
                try:
                    existing = self.backend.update(USERS, identity.id, {"name": name.strip()}) or existing
                except BackendError as e:
                    raise PersistenceError(f"Failed to update user profile: {e}")
            return existing

        try:
            profile = self.backend.insert(USERS, {
                "email": identity.email,
                "name": name.strip() if name else None,
                "role": UserRole.CITIZEN.value,
                "agency_id": None,
                "is_active": True,
            }, doc_id=identity.id)
        except BackendError as e:
            logger.error(f"Failed to create profile for {identity.id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to create user profile: {e}")

        logger.info(f"User profile created: {identity.id} ({identity.email})")
        return profile

    def list_users(self, role: Optional[str] = None, search: Optional[str] = None) -> List[Dict]:
        filters = [("role", "==", role)] if role else None
        try:
            users = self.backend.query(USERS, filters=filters)
        except BackendError as e:
            logger.error(f"Failed to list users: {e}", exc_info=True)
            raise PersistenceError(f"Failed to fetch users: {e}")

        if search:
            needle = search.strip().lower()
            users = [
                u for u in users
                if needle in (u.get("name") or "").lower() or needle in (u.get("email") or "").lower()
            ]

        users.sort(key=lambda u: (u.get("name") or u.get("email") or "").lower())
        return users

    def role_counts(self) -> Dict[str, int]:
        counts = {role.value: 0 for role in UserRole}
        for user in self.list_users():
            role = user.get("role")
            if role in counts:
                counts[role] += 1
        return counts

    def _check_privilege(self, actor: Dict, *roles: Optional[str]) -> None:
        """Only superadmins may create, edit or grant admin-level accounts."""
        if any(role in PRIVILEGED_ROLES for role in roles):
            if resolve_capability(actor.get("role")) != Capability.SUPERADMIN:
                raise AuthorizationError("Only superadmins can manage admin accounts")

    def _check_agency(self, role: Optional[str], agency_id: Optional[str]) -> None:
        if role == UserRole.AGENCY.value and not agency_id:
            raise ValidationError(["Agency users must belong to an agency"])
        if agency_id:
            try:
                agency = self.backend.get(AGENCIES, agency_id)
            except BackendError as e:
                raise PersistenceError(f"Failed to verify agency: {e}")
            if agency is None:
                raise ValidationError([f"Unknown agency: {agency_id}"])

    def create_user(self, request: UserCreate, actor: Dict) -> Dict:
        data = request.model_dump()
        data["role"] = request.role.value
        self._check_privilege(actor, data["role"])
        self._check_agency(data["role"], data.get("agency_id"))

        user_id = data.pop("id", None) or uuid.uuid4().hex
        data["email"] = data["email"].strip().lower()
        data["name"] = data["name"].strip()

        if self.get_profile(user_id) is not None:
            raise ValidationError([f"User {user_id} already exists"])

        try:
            profile = self.backend.insert(USERS, data, doc_id=user_id)
        except BackendError as e:
            logger.error(f"Failed to create user: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save user: {e}")

        logger.info(f"User created by {actor.get('id')}: {user_id} ({data['role']})")
        return profile

    def update_user(self, user_id: str, request: UserUpdate, actor: Dict) -> Dict:
        existing = self.require_profile(user_id)
        data = request.model_dump(exclude_unset=True)
        if data.get("role") is not None:
            data["role"] = UserRole(data["role"]).value

        for field in ("email", "name", "role"):
            if field in data and not data[field]:
                raise ValidationError(["Email, name, and role are required."])
        if "email" in data:
            data["email"] = data["email"].strip().lower()

        self._check_privilege(actor, existing.get("role"), data.get("role"))
        role = data.get("role", existing.get("role"))
        agency_id = data["agency_id"] if "agency_id" in data else existing.get("agency_id")
        self._check_agency(role, agency_id)

        if user_id == actor.get("id") and data.get("is_active") is False:
            raise ValidationError(["You cannot deactivate your own account"])

        if not data:
            return existing

        try:
            profile = self.backend.update(USERS, user_id, data)
        except BackendError as e:
            logger.error(f"Failed to update user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to save user: {e}")
        if profile is None:
            raise NotFoundError(f"User {user_id} not found")

        logger.info(f"User {user_id} updated by {actor.get('id')}: {sorted(data)}")
        return profile

    def set_active(self, user_id: str, is_active: bool, actor: Dict) -> Dict:
        return self.update_user(user_id, UserUpdate(is_active=is_active), actor)

    def delete_user(self, user_id: str, actor: Dict) -> None:
        if user_id == actor.get("id"):
            raise ValidationError(["You cannot delete your own account"])

        existing = self.require_profile(user_id)
        self._check_privilege(actor, existing.get("role"))

        try:
            self.backend.delete(USERS, user_id)
        except BackendError as e:
            logger.error(f"Failed to delete user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete user: {e}")

        logger.info(f"User {user_id} deleted by {actor.get('id')}")
