"""Map routes - report locations for the dashboard's live incident map.

The response shape is fixed by the map widget, so it is declared here with
Pydantic models and FastAPI validates it on the way out.
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from uerra.config.backend import BackendClient
from uerra.config.firebase import get_backend
from uerra.services.map_service import MapService
from uerra.utils.security import get_current_profile


class MapPin(BaseModel):
    id: str
    description: str = ""
    location: Dict[str, float]
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    category_color: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[datetime] = None


class PastLocation(BaseModel):
    id: str
    location: Dict[str, float]
    created_at: Optional[datetime] = None


class MapFeed(BaseModel):
    today: List[MapPin] = []
    past: List[PastLocation] = []


router = APIRouter(prefix="/map", tags=["Map"])


@router.get("/reports", response_model=MapFeed)
def map_reports(
    profile: Dict = Depends(get_current_profile),
    backend: BackendClient = Depends(get_backend)
):
    """
    Pins for reports submitted today (UTC) and heatmap points for older ones.

    Only reports with a location appear.
    """
    return MapService(backend).map_reports()
