"""
Responder agency endpoints.

Signed-in users can list agencies; admins and superadmins manage them.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, status

from uerra.config.backend import BackendClient
from uerra.config.firebase import get_backend
from uerra.models.base import BaseResponse
from uerra.models.category import AgencyCreate, AgencyResponse, AgencyUpdate
from uerra.services.capabilities import Capability
from uerra.services.directory_service import AgencyService
from uerra.utils.security import get_current_profile, require_capability

router = APIRouter(prefix="/agencies", tags=["Agencies"])

admins_only = require_capability(Capability.ADMIN, Capability.SUPERADMIN)


@router.get("", response_model=List[AgencyResponse])
def list_agencies(
    profile: Dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend)
):
    return AgencyService(backend).list()


@router.get("/{agency_id}", response_model=AgencyResponse)
def get_agency(
    agency_id: str,
    profile: Dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend)
):
    return AgencyService(backend).get(agency_id)


@router.post("", response_model=AgencyResponse, status_code=status.HTTP_201_CREATED)
def create_agency(
    request: AgencyCreate,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return AgencyService(backend).create(request)


@router.patch("/{agency_id}", response_model=AgencyResponse)
def update_agency(
    agency_id: str,
    request: AgencyUpdate,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    return AgencyService(backend).update(agency_id, request)


@router.delete("/{agency_id}", response_model=BaseResponse)
def delete_agency(
    agency_id: str,
    profile: Dict = Depends(admins_only),
    backend: BackendClient = Depends(get_backend)
):
    AgencyService(backend).delete(agency_id)
    return BaseResponse(success=True, message=f"Agency {agency_id} deleted")
