from pydantic import BaseModel
from typing import Optional
import datetime
from enum import Enum


class BookingStatus(str, Enum):
    UPCOMING = "upcoming"
    PAST = "past"


class Booking(BaseModel):
    """Reserva de entradas en el historial del usuario"""
    id: str
    event_name: str
    venue_name: Optional[str] = None
    date: Optional[datetime.date] = None
    status: BookingStatus = BookingStatus.UPCOMING
    image_url: Optional[str] = None


class StreakResponse(BaseModel):
    streak: int
