from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any
from decimal import Decimal
from app.models.schedule import Slot


class VenueDetails(BaseModel):
    address: Optional[str] = None
    description: Optional[str] = None
    map_url: Optional[str] = None
    equipment: Optional[str] = None


class Venue(BaseModel):
    """Venue publicado con sus slots disponibles"""
    id: int
    name: Optional[str] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    cost_per_slot: Optional[Decimal] = Field(None, ge=0)
    amenities: List[str] = []
    details: VenueDetails = VenueDetails()
    menu: Optional[Any] = None
    gallery: List[str] = []
    event_photos: List[str] = []
    available_slots: List[Slot] = []

    class Config:
        from_attributes = True

    @field_validator('amenities', 'gallery', 'event_photos', 'available_slots', mode='before')
    @classmethod
    def null_as_empty(cls, v):
        return v or []

    @field_validator('details', mode='before')
    @classmethod
    def null_details(cls, v):
        return v or {}
