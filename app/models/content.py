from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Union
from enum import Enum


class EntityKind(str, Enum):
    """Tipos de contenido administrables desde el back office"""
    EVENT = "event"
    VENUE = "venue"
    CATEGORY = "category"
    PROMO = "promo"
    PARTNER = "partner"
    GALLERY = "gallery"
    HIGHLIGHT = "highlight"
    ORGANIZER = "organizer"

    @property
    def collection(self) -> str:
        return COLLECTIONS[self]

    @classmethod
    def from_collection(cls, name: str) -> "EntityKind":
        for kind, collection in COLLECTIONS.items():
            if collection == name or kind.value == name:
                return kind
        raise ValueError(f"Unknown content collection '{name}'")


COLLECTIONS = {
    EntityKind.EVENT: "events",
    EntityKind.VENUE: "venues",
    EntityKind.CATEGORY: "categories",
    EntityKind.PROMO: "promos",
    EntityKind.PARTNER: "partners",
    EntityKind.GALLERY: "galleries",
    EntityKind.HIGHLIGHT: "highlights",
    EntityKind.ORGANIZER: "users",
}


class ContentSubmission(BaseModel):
    """Formulario enviado desde el editor de contenido"""
    form_session: Optional[str] = Field(None, description="Editor instance that produced this submission")
    id: Optional[Union[int, str]] = Field(None, description="Entity id, absent or client-generated for new items")
    is_persisted: Optional[bool] = Field(None, description="True when the entity came from the store")
    fields: Dict[str, Any] = Field(default_factory=dict)
    uploads: Dict[str, Any] = Field(default_factory=dict, description="Uploader values keyed by camelCase field")


class SaveResult(BaseModel):
    success: bool = True
    created: bool
    item: Dict[str, Any]


class DeleteResult(BaseModel):
    success: bool = True
    id: int


class SelectorOption(BaseModel):
    value: Union[int, str]
    label: str


class FormOptions(BaseModel):
    """Opciones de selectores para el formulario de un tipo de contenido"""
    kind: EntityKind
    selectors: Dict[str, List[SelectorOption]] = Field(default_factory=dict)
