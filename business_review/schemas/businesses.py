"""
Schemas for businesses and locations
"""
from pydantic import BaseModel
from typing import Optional, Dict, Any


class UpdateBusinessRequest(BaseModel):
    business_name: Optional[str] = None
    category: Optional[str] = None
    tax_id: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: Optional[bool] = None
    metadata: Optional[Dict[str, Any]] = None


class LocationFields(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state_region: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    google_place_id: Optional[str] = None
    timezone: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    operating_hours: Optional[Dict[str, Any]] = None
    notes: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class CreateLocationRequest(LocationFields):
    location_name: str
    formatted_address: str
    is_primary: bool = False


class UpdateLocationRequest(LocationFields):
    location_name: Optional[str] = None
    formatted_address: Optional[str] = None
    is_primary: Optional[bool] = None
    is_active: Optional[bool] = None


class SetPrimaryLocationRequest(BaseModel):
    location_id: str
