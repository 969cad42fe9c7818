from pydantic import BaseModel, Field
from typing import Optional, Literal, Union
from enum import Enum


class PromoLinkType(str, Enum):
    EVENT = "event"
    URL = "url"


class EventLink(BaseModel):
    link_type: Literal["event"] = "event"
    event_id: int


class UrlLink(BaseModel):
    link_type: Literal["url"] = "url"
    url: str = Field(..., min_length=1)


PromoLink = Union[EventLink, UrlLink]


class Promo(BaseModel):
    """Banner promocional del home"""
    id: int
    title: Optional[str] = None
    subtitle: Optional[str] = None
    background_url: Optional[str] = None
    link_type: Optional[PromoLinkType] = None
    event_id: Optional[int] = None
    button_link: Optional[str] = None
    button_text: Optional[str] = None

    class Config:
        from_attributes = True
