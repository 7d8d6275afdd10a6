"""
Emergency categories and responder agencies.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#e53935", max_length=20, description="Display color for charts and map pins")
    tips: List[str] = Field(default_factory=list, description="Safety tips shown to citizens")
    suggested_equipment: List[str] = Field(default_factory=list, description="Equipment suggested to responders")
    agency_ids: List[str] = Field(default_factory=list, description="Agencies that usually respond")


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    color: Optional[str] = Field(None, max_length=20)
    tips: Optional[List[str]] = None
    suggested_equipment: Optional[List[str]] = None
    agency_ids: Optional[List[str]] = None


class CategoryResponse(BaseModel):
    id: str
    name: str
    color: str = "#e53935"
    tips: List[str] = Field(default_factory=list)
    suggested_equipment: List[str] = Field(default_factory=list)
    agency_ids: List[str] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class AgencyLocation(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class AgencyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    type: Optional[str] = Field(None, max_length=50, description="e.g. fire, police, medical, rescue")
    contact: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=300)
    location: Optional[AgencyLocation] = None


class AgencyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    type: Optional[str] = Field(None, max_length=50)
    contact: Optional[str] = Field(None, max_length=100)
    address: Optional[str] = Field(None, max_length=300)
    location: Optional[AgencyLocation] = None


class AgencyResponse(BaseModel):
    id: str
    name: str
    type: Optional[str] = None
    contact: Optional[str] = None
    address: Optional[str] = None
    location: Optional[AgencyLocation] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"
