"""
Emergency category endpoints.

Any signed-in user can read categories (the report form needs them);
only superadmins manage them.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, status

from uerra.config.backend import BackendClient
from uerra.config.firebase import get_backend
from uerra.models.base import BaseResponse
from uerra.models.category import CategoryCreate, CategoryResponse, CategoryUpdate
from uerra.services.capabilities import Capability
from uerra.services.directory_service import CategoryService
from uerra.utils.security import get_current_profile, require_capability

router = APIRouter(prefix="/categories", tags=["Categories"])

superadmin_only = require_capability(Capability.SUPERADMIN)


@router.get("", response_model=List[CategoryResponse])
def list_categories(
    profile: Dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend)
):
    return CategoryService(backend).list()


@router.get("/{category_id}", response_model=CategoryResponse)
def get_category(
    category_id: str,
    profile: Dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend)
):
    """Category with its safety tips and suggested equipment."""
    return CategoryService(backend).get(category_id)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    request: CategoryCreate,
    profile: Dict = Depends(superadmin_only),
    backend: BackendClient = Depends(get_backend)
):
    return CategoryService(backend).create(request)


@router.patch("/{category_id}", response_model=CategoryResponse)
def update_category(
    category_id: str,
    request: CategoryUpdate,
    profile: Dict = Depends(superadmin_only),
    backend: BackendClient = Depends(get_backend)
):
    return CategoryService(backend).update(category_id, request)


@router.delete("/{category_id}", response_model=BaseResponse)
def delete_category(
    category_id: str,
    profile: Dict = Depends(superadmin_only),
    backend: BackendClient = Depends(get_backend)
):
    CategoryService(backend).delete(category_id)
    return BaseResponse(success=True, message=f"Category {category_id} deleted")
