from pydantic import BaseModel, Field, field_validator
from typing import Optional
from enum import Enum
from app.core.exceptions import ValidationError


class Period(str, Enum):
    """Mitad del dia en la representacion de 12 horas"""
    AM = "AM"
    PM = "PM"


class Weekday(str, Enum):
    """Dia de la semana de un slot"""
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"


class DisplayTime(BaseModel):
    """Hora de 12 horas tal como la muestra el selector del admin"""
    hour12: int = Field(..., ge=1, le=12)
    minute: int = Field(..., ge=0, le=59)
    period: Period

    model_config = {"frozen": True}

    def as_tuple(self) -> tuple:
        return (self.hour12, self.minute, self.period.value)


class Slot(BaseModel):
    """Ventana reservable de un venue. Su identidad es la posicion en la lista."""
    day: Weekday
    name: str = ""
    start: str = Field(..., description="24h HH:MM")
    end: str = Field(..., description="24h HH:MM")

    @field_validator('start', 'end', mode='before')
    @classmethod
    def validate_time24(cls, v):
        from app.services.time_encoding import parse_time24
        try:
            hour, minute = parse_time24(v)
        except ValidationError as e:
            raise ValueError(e.message)
        return f"{hour:02d}:{minute:02d}"


class SlotDraft(BaseModel):
    """Slot tal como se edita en el formulario del venue"""
    day: Weekday = Weekday.MON
    name: str = ""
    start: DisplayTime = DisplayTime(hour12=8, minute=0, period=Period.PM)
    end: DisplayTime = DisplayTime(hour12=11, minute=59, period=Period.PM)
    transient_id: Optional[str] = Field(None, description="UI wiring only, never persisted")


class SlotDraftCreate(BaseModel):
    """Schema para agregar un slot a un venue existente"""
    day: Weekday
    name: str = ""
    start: Optional[DisplayTime] = None
    end: Optional[DisplayTime] = None
