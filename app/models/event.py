from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any
from decimal import Decimal


class TicketType(BaseModel):
    """Tipo de entrada ofrecido por un evento"""
    name: str = Field(..., min_length=1)
    price: Decimal = Field(..., ge=0)
    description: str = ""
    permits: int = Field(1, ge=0, description="People admitted per ticket")


class EventPublic(BaseModel):
    """Evento tal como se muestra en el sitio publico"""
    id: int
    title: Optional[str] = None
    category: Optional[str] = None
    event_date: Optional[Any] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    venue_id: Optional[int] = None
    organizer_id: Optional[int] = None
    price_display: Optional[str] = None
    price_value: Optional[Decimal] = None
    poster_images: List[str] = []
    ticket_types: List[TicketType] = []
    event_details: Optional[str] = None
    terms_and_conditions: Optional[str] = None
    google_map_url: Optional[str] = None
    venue_name: Optional[str] = None
    organizer_name: Optional[str] = None

    class Config:
        from_attributes = True

    @field_validator('poster_images', 'ticket_types', mode='before')
    @classmethod
    def null_as_empty(cls, v):
        return v or []
