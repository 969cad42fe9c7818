"""
Normalization of admin form submissions into store payloads.

Editor forms send UI field names (camelCase uploader keys, aliases such as
`address` or `cost`, JSON typed into textareas, picker triples for times).
Each kind has a rename table and a column whitelist; after normalization
only column names remain.

Only fields present in the submission are written, so an update never
clears a column the form did not send. Venue `details` is merged over the
previous value.
"""
import json
import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional, List

from app.core.exceptions import ValidationError
from app.models.catalog import CategoryIcon
from app.models.content import EntityKind, ContentSubmission
from app.models.event import TicketType
from app.models.promo import PromoLinkType, EventLink, UrlLink, PromoLink
from app.models.schedule import SlotDraft
from app.models.user import Role
from app.services.time_encoding import coerce_time_field
from app.services.venue_slots import SlotList, validate_slots

logger = logging.getLogger(__name__)

# Client-generated ids (Date.now()) are above this bound
LEGACY_MAX_DB_ID = 1_000_000

ICON_SET = [icon.value for icon in CategoryIcon]

RENAMES: Dict[EntityKind, Dict[str, str]] = {
    EntityKind.EVENT: {"price": "price_value"},
    EntityKind.VENUE: {"address": "location", "cost": "cost_per_slot"},
    EntityKind.PROMO: {"url": "button_link"},
}

VENUE_DETAIL_FIELDS = {
    "full_address": "address",
    "description": "description",
    "map_url": "map_url",
    "equipment": "equipment",
}

COLUMNS: Dict[EntityKind, tuple] = {
    EntityKind.EVENT: (
        "title", "category", "event_date", "start_time", "end_time", "venue_id",
        "organizer_id", "price_display", "price_value", "poster_images",
        "ticket_types", "event_details", "terms_and_conditions", "google_map_url",
    ),
    EntityKind.VENUE: (
        "name", "location", "image_url", "capacity", "cost_per_slot", "amenities",
        "details", "menu", "gallery", "event_photos", "available_slots",
    ),
    EntityKind.CATEGORY: ("name", "icon"),
    EntityKind.PROMO: (
        "title", "subtitle", "background_url", "event_id", "link_type",
        "button_link", "button_text",
    ),
    EntityKind.PARTNER: ("name", "logo_url", "website_url"),
    EntityKind.GALLERY: ("event_id", "image_urls", "caption"),
    EntityKind.HIGHLIGHT: ("event_id", "media_url", "caption"),
    EntityKind.ORGANIZER: ("name", "username", "password", "role"),
}

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def camel_to_snake(name: str) -> str:
    """posterImages -> poster_images; snake_case names pass through"""
    return _CAMEL_BOUNDARY.sub('_', name).lower()


# ============================================================================
# Coercions
# ============================================================================

def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def to_int(value, field: str) -> Optional[int]:
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        return int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} must be an integer", {"field": field, "value": value})


def to_decimal(value, field: str) -> Optional[Decimal]:
    if _is_blank(value):
        return None
    try:
        return Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number", {"field": field, "value": value})


def to_list(value) -> List[Any]:
    if _is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if not _is_blank(v)]
    return [value]


def first_of(value) -> Optional[str]:
    """Single-valued columns take the first uploader entry"""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    if _is_blank(value):
        return None
    return value


def split_tags(value) -> List[str]:
    if isinstance(value, (list, tuple)):
        parts = value
    elif _is_blank(value):
        return []
    else:
        parts = str(value).split(",")
    return [str(p).strip() for p in parts if str(p).strip()]


def parse_json(value, field: str, default=None):
    if _is_blank(value):
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise ValidationError(f"{field} is not valid JSON", {"field": field, "error": str(e)})


# ============================================================================
# Promo link union
# ============================================================================

class PromoLinkForm:
    """
    Link editor of the promo form. Both branch values are kept while the
    operator toggles between them; only the selected one is resolved.
    """

    def __init__(self, link_type: str = PromoLinkType.EVENT.value, event_id=None, url: Optional[str] = None):
        self.link_type = self._check_type(link_type)
        self.event_id = event_id
        self.url = url

    @staticmethod
    def _check_type(link_type) -> PromoLinkType:
        try:
            return PromoLinkType(getattr(link_type, 'value', link_type))
        except ValueError:
            raise ValidationError(f"Invalid link type '{link_type}', expected 'event' or 'url'")

    @classmethod
    def from_promo(cls, promo: Dict[str, Any]) -> "PromoLinkForm":
        return cls(
            link_type=promo.get("link_type") or PromoLinkType.EVENT.value,
            event_id=promo.get("event_id"),
            url=promo.get("button_link")
        )

    def switch(self, link_type) -> None:
        self.link_type = self._check_type(link_type)

    def resolve(self) -> PromoLink:
        if self.link_type == PromoLinkType.EVENT:
            event_id = to_int(self.event_id, "event_id")
            if event_id is None:
                raise ValidationError("Please select an event for the promo link.")
            return EventLink(event_id=event_id)

        if _is_blank(self.url):
            raise ValidationError("Please enter a URL for the promo link.")
        return UrlLink(url=str(self.url).strip())


def link_columns(link: PromoLink) -> Dict[str, Any]:
    if isinstance(link, EventLink):
        return {"link_type": link.link_type, "event_id": link.event_id, "button_link": None}
    return {"link_type": link.link_type, "event_id": None, "button_link": link.url}


# ============================================================================
# Per-kind normalizers
# ============================================================================

def _copy(data: Dict[str, Any], payload: Dict[str, Any], *keys):
    for key in keys:
        if key in data:
            payload[key] = data[key]


def _normalize_event(data, existing):
    payload = {}
    _copy(data, payload, "title", "category", "price_display", "event_details",
          "terms_and_conditions", "google_map_url")

    if "event_date" in data:
        payload["event_date"] = None if _is_blank(data["event_date"]) else str(data["event_date"]).strip()

    for key in ("venue_id", "organizer_id"):
        if key in data:
            payload[key] = to_int(data[key], key)

    if "price_value" in data:
        payload["price_value"] = to_decimal(data["price_value"], "price_value")

    if "poster_images" in data:
        payload["poster_images"] = to_list(data["poster_images"])

    if "ticket_types" in data:
        raw = parse_json(data["ticket_types"], "ticket_types", default=[])
        if not isinstance(raw, list):
            raise ValidationError("ticket_types must be a list")
        try:
            payload["ticket_types"] = [TicketType.model_validate(t).model_dump(mode="json") for t in raw]
        except ValueError as e:
            raise ValidationError("Invalid ticket type", {"error": str(e)})

    for key in ("start_time", "end_time"):
        picker = [f"{key}_hour", f"{key}_minute", f"{key}_period"]
        if key in data or any(p in data for p in picker):
            payload[key] = coerce_time_field(
                data.get(key),
                data.get(picker[0]),
                data.get(picker[1]),
                data.get(picker[2])
            )

    return payload


def _normalize_venue(data, existing):
    payload = {}
    _copy(data, payload, "name", "location")

    if "image_url" in data:
        payload["image_url"] = first_of(data["image_url"])

    if "capacity" in data:
        capacity = to_int(data["capacity"], "capacity")
        if capacity is not None and capacity < 0:
            raise ValidationError("capacity must be zero or more")
        payload["capacity"] = capacity

    if "cost_per_slot" in data:
        cost = to_decimal(data["cost_per_slot"], "cost_per_slot")
        if cost is not None and cost < 0:
            raise ValidationError("cost_per_slot must be zero or more")
        payload["cost_per_slot"] = cost

    if "amenities" in data:
        payload["amenities"] = split_tags(data["amenities"])

    for key in ("gallery", "event_photos"):
        if key in data:
            payload[key] = to_list(data[key])

    detail_updates = {}
    if isinstance(data.get("details"), dict):
        detail_updates.update(data["details"])
    for ui_field, detail_key in VENUE_DETAIL_FIELDS.items():
        if ui_field in data:
            detail_updates[detail_key] = data[ui_field]
    if detail_updates or existing is None:
        details = dict((existing or {}).get("details") or {})
        details.update(detail_updates)
        payload["details"] = details

    if "menu" in data:
        payload["menu"] = parse_json(data["menu"], "menu", default=[])

    if "slot_drafts" in data:
        try:
            drafts = [SlotDraft.model_validate(d) for d in data["slot_drafts"] or []]
        except ValueError as e:
            raise ValidationError("Invalid slot", {"error": str(e)})
        payload["available_slots"] = SlotList(drafts).serialize()
    elif "available_slots" in data:
        payload["available_slots"] = validate_slots(
            parse_json(data["available_slots"], "available_slots", default=[])
        )

    return payload


def _normalize_category(data, existing):
    payload = {}
    _copy(data, payload, "name")
    if "icon" in data:
        icon = data["icon"]
        if icon not in ICON_SET:
            raise ValidationError(f"Unknown icon '{icon}'", {"allowed": ICON_SET})
        payload["icon"] = icon
    return payload


def _normalize_promo(data, existing):
    payload = {}
    _copy(data, payload, "title", "subtitle", "button_text")

    if "background_url" in data:
        payload["background_url"] = first_of(data["background_url"])

    if any(key in data for key in ("link_type", "event_id", "button_link")):
        form = PromoLinkForm.from_promo(existing or {})
        if "link_type" in data and not _is_blank(data["link_type"]):
            form.switch(data["link_type"])
        if "event_id" in data:
            form.event_id = data["event_id"]
        if "button_link" in data:
            form.url = data["button_link"]
        payload.update(link_columns(form.resolve()))

    return payload


def _normalize_partner(data, existing):
    payload = {}
    _copy(data, payload, "name", "website_url")
    if "logo_url" in data:
        payload["logo_url"] = first_of(data["logo_url"])
    return payload


def _normalize_media(list_column):
    def normalize(data, existing):
        payload = {}
        _copy(data, payload, "caption")
        if "event_id" in data:
            payload["event_id"] = to_int(data["event_id"], "event_id")
        if list_column in data:
            payload[list_column] = to_list(data[list_column])
        return payload
    return normalize


def _normalize_organizer(data, existing):
    payload = {}
    _copy(data, payload, "name", "username")

    if not _is_blank(data.get("password")):
        payload["password"] = data["password"]
    elif existing is None:
        raise ValidationError("Please enter a password for the new user.")

    role = data.get("role")
    if _is_blank(role):
        if existing is None:
            payload["role"] = Role.ORGANIZER.value
    else:
        try:
            payload["role"] = Role(role).value
        except ValueError:
            raise ValidationError(f"Invalid role '{role}'")

    return payload


NORMALIZERS = {
    EntityKind.EVENT: _normalize_event,
    EntityKind.VENUE: _normalize_venue,
    EntityKind.CATEGORY: _normalize_category,
    EntityKind.PROMO: _normalize_promo,
    EntityKind.PARTNER: _normalize_partner,
    EntityKind.GALLERY: _normalize_media("image_urls"),
    EntityKind.HIGHLIGHT: _normalize_media("media_url"),
    EntityKind.ORGANIZER: _normalize_organizer,
}


def normalize(
    kind: EntityKind,
    form: Dict[str, Any],
    uploads: Optional[Dict[str, Any]] = None,
    existing: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build the store payload for one submission.

    Args:
        kind: Content kind being saved
        form: Form fields, UI names
        uploads: Uploader values keyed by camelCase field name
        existing: Stored entity when updating, used for nested merges

    Returns:
        Dict with column names only
    """
    data = {camel_to_snake(key): value for key, value in (form or {}).items()}
    for key, value in (uploads or {}).items():
        data[camel_to_snake(key)] = value

    for ui_name, column in RENAMES.get(kind, {}).items():
        if ui_name in data:
            value = data.pop(ui_name)
            data.setdefault(column, value)

    payload = NORMALIZERS[kind](data, existing)
    columns = COLUMNS[kind]
    return {key: value for key, value in payload.items() if key in columns}


def resolve_save_target(submission: ContentSubmission) -> Optional[int]:
    """
    Return the id to update, or None when the submission creates a new entity.

    Entities returned by the store carry is_persisted. Submissions without
    the flag use the legacy rule: a positive integer id below 1,000,000 is a
    database id, anything else was generated by the client.
    """
    entity_id = submission.id

    if submission.is_persisted is not None:
        if not submission.is_persisted or _is_blank(entity_id):
            return None
        resolved = to_int(entity_id, "id")
        if resolved is None or resolved <= 0:
            raise ValidationError("Persisted entity has an invalid id", {"id": entity_id})
        return resolved

    if isinstance(entity_id, bool) or not isinstance(entity_id, (int, str)):
        return None
    if isinstance(entity_id, str):
        if not entity_id.strip().isdigit():
            return None
        entity_id = int(entity_id.strip())
    if 0 < entity_id < LEGACY_MAX_DB_ID:
        return entity_id
    return None
