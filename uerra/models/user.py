"""
User profile models.

Identity (sign-in) lives in Firebase Authentication; the profile row in the
users collection carries the role and agency membership.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, List, Optional
from enum import Enum


class UserRole(str, Enum):
    CITIZEN = "citizen"
    AGENCY = "agency"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class UserProfile(BaseModel):
    id: str = Field(..., description="Firebase Authentication uid")
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = UserRole.CITIZEN.value
    agency_id: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class ProfileRequest(BaseModel):
    """Sent by the dashboard after sign-in to make sure a profile exists."""
    name: Optional[str] = Field(None, max_length=100)


class UserCreate(BaseModel):
    id: Optional[str] = Field(None, description="Firebase uid; generated when omitted")
    email: str = Field(..., min_length=3, max_length=254)
    name: str = Field(..., min_length=1, max_length=100)
    role: UserRole
    agency_id: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    is_active: bool = True


class UserUpdate(BaseModel):
    email: Optional[str] = Field(None, min_length=3, max_length=254)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    role: Optional[UserRole] = None
    agency_id: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=300)
    is_active: Optional[bool] = None


class ActiveRequest(BaseModel):
    is_active: bool


class SessionResponse(BaseModel):
    """What the dashboard needs after sign-in."""
    profile: UserProfile
    capability: Optional[str] = None
    navigation: List[Dict] = Field(default_factory=list)
