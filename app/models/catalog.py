from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from enum import Enum
from app.models.event import EventPublic
from app.models.venue import Venue
from app.models.promo import Promo


class CategoryIcon(str, Enum):
    """Iconos disponibles para categorias"""
    MUSIC = "music"
    GLASS_WATER = "glass-water"
    DISC = "disc"
    HEADPHONES = "headphones"
    PLUG_ZAP = "plug-zap"
    PARTY_POPPER = "party-popper"
    ROCKET = "rocket"
    BEER = "beer"
    STAR = "star"
    AWARD = "award"
    CAMERA = "camera"


class Category(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    icon: Optional[str] = None


class Partner(BaseModel):
    id: int
    name: Optional[str] = None
    logo_url: Optional[str] = None
    website_url: Optional[str] = None


class GalleryItem(BaseModel):
    id: int
    event_id: Optional[int] = None
    event_title: Optional[str] = None
    image_urls: List[str] = []
    caption: Optional[str] = None

    @field_validator("image_urls", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return v or []


class Story(BaseModel):
    type: Literal["image", "video"]
    url: str


class Highlight(BaseModel):
    id: int
    event_id: Optional[int] = None
    event_title: Optional[str] = None
    media_url: List[str] = []
    caption: Optional[str] = None
    stories: List[Story] = []

    @field_validator("media_url", mode="before")
    @classmethod
    def null_as_empty(cls, v):
        return v or []


class CatalogSnapshot(BaseModel):
    """Todo el contenido publico en una sola respuesta"""
    events: List[EventPublic] = Field(default_factory=list)
    venues: List[Venue] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    promos: List[Promo] = Field(default_factory=list)
    partners: List[Partner] = Field(default_factory=list)
    galleries: List[GalleryItem] = Field(default_factory=list)
    highlights: List[Highlight] = Field(default_factory=list)
