"""
Admin endpoints - user management, dashboard statistics and system info.

SCOPE OF ADMIN:
- Admins manage citizen and agency accounts and see statistics
- Superadmins additionally manage admin accounts and see system info
- Report triage lives under /triage, directory CRUD under /categories
  and /agencies
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status

from uerra.config.backend import BackendClient
from uerra.config.firebase import get_backend
from uerra.models.base import BaseResponse
from uerra.models.user import ActiveRequest, UserCreate, UserProfile, UserUpdate
from uerra.services.analytics_service import AnalyticsService
from uerra.services.capabilities import Capability
from uerra.services.user_service import UserService
from uerra.utils.security import require_capability
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])

admins_only = require_capability(Capability.ADMIN, Capability.SUPERADMIN)
superadmin_only = require_capability(Capability.SUPERADMIN)


@router.get("/users", response_model=List[UserProfile])
def list_users(
    role: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100, description="Matches name or email"),
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return UserService(backend).list_users(role=role, search=search)


@router.get("/users/counts")
def user_role_counts(
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Number of accounts per role."""
    return UserService(backend).role_counts()


@router.get("/users/{user_id}", response_model=UserProfile)
def get_user(
    user_id: str,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return UserService(backend).require_profile(user_id)


@router.post("/users", response_model=UserProfile, status_code=status.HTTP_201_CREATED)
def create_user(
    request: UserCreate,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """
    Create a user profile.

    **Rules:**
    - Email, name and role are required
    - Agency accounts must reference an existing agency
    - Only superadmins can create admin or superadmin accounts
    """
    return UserService(backend).create_user(request, profile)


@router.patch("/users/{user_id}", response_model=UserProfile)
def update_user(
    user_id: str,
    request: UserUpdate,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return UserService(backend).update_user(user_id, request, profile)


@router.put("/users/{user_id}/active", response_model=UserProfile)
def set_user_active(
    user_id: str,
    request: ActiveRequest,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Activate or deactivate an account (never your own)."""
    return UserService(backend).set_active(user_id, request.is_active, profile)


@router.delete("/users/{user_id}", response_model=BaseResponse)
def delete_user(
    user_id: str,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    UserService(backend).delete_user(user_id, profile)
    return BaseResponse(success=True, message=f"User {user_id} deleted")


@router.get("/stats")
def dashboard_stats(
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Dashboard cards: active reports, responders online, average response time, resolved today."""
    return AnalyticsService(backend).dashboard_stats()


@router.get("/stats/categories")
def category_distribution(
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return AnalyticsService(backend).category_distribution()


@router.get("/stats/timeline")
def reports_over_time(
    days: int = Query(7, ge=1, le=90),
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return AnalyticsService(backend).reports_over_time(days=days)


@router.get("/stats/status")
def status_distribution(
    days: int = Query(30, ge=1, le=365),
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Reports per status over the date range (pie chart)."""
    return AnalyticsService(backend).status_distribution(days=days)


@router.get("/stats/priority")
def priority_distribution(
    days: int = Query(30, ge=1, le=365),
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Reports per priority over the date range (bar chart)."""
    return AnalyticsService(backend).priority_distribution(days=days)


@router.get("/stats/activity")
def activity_log(
    days: int = Query(30, ge=1, le=365),
    limit: int = Query(50, ge=1, le=500),
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    """Recent report updates with the acting user and the report title."""
    return AnalyticsService(backend).activity_log(days=days, limit=limit)


@router.get("/system")
def system_info(
    profile: Dict = Depends(superadmin_only),
    backend: BackendClient = Depends(get_backend)
):
    """Record counts per collection and backend health."""
    return AnalyticsService(backend).system_info()
