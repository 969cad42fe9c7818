import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional, Dict, Any, List, Set

from app.core.exceptions import APIError, ConflictError, NotFoundError, TransportError, ValidationError
from app.models.content import EntityKind, ContentSubmission
from app.models.schedule import Weekday, SlotDraftCreate
from app.models.user import Role
from app.services.catalog_service import CatalogState
from app.services.content_store import ContentStore
from app.services.normalization import normalize, resolve_save_target, ICON_SET
from app.services.venue_slots import SlotList, draft_from_create

logger = logging.getLogger(__name__)

# Kinds whose rows belong to an organizer
SCOPED_KINDS = {EntityKind.EVENT}


class SubmissionGuard:
    """Rejects a submission while another one from the same form is in flight"""

    def __init__(self):
        self._in_flight: Set[str] = set()

    def is_busy(self, form_session: str) -> bool:
        return form_session in self._in_flight

    @asynccontextmanager
    async def hold(self, form_session: str):
        if form_session in self._in_flight:
            logger.warning(f"Overlapping submission rejected for form {form_session}")
            raise ConflictError("This form is already being saved. Please wait.", {"form_session": form_session})

        self._in_flight.add(form_session)
        try:
            yield
        finally:
            self._in_flight.discard(form_session)


def _check_scope(kind: EntityKind, entity: Dict[str, Any], organizer_scope: Optional[int]):
    if organizer_scope is None or kind not in SCOPED_KINDS:
        return
    if entity.get("organizer_id") != organizer_scope:
        raise NotFoundError(f"{kind.value.capitalize()} not found", {"id": entity.get("id")})


async def _refresh_catalog(catalog: Optional[CatalogState], kind: EntityKind):
    if catalog is None:
        return
    try:
        await catalog.refresh(kind)
    except APIError as e:
        # Write succeeded; the next read reloads
        logger.warning(f"Catalog refresh for {kind.collection} failed: {e.message}")
        catalog.invalidate(kind)


# ============================================================================
# Read
# ============================================================================

async def list_items(store: ContentStore, kind: EntityKind, organizer_scope: Optional[int] = None) -> List[Dict[str, Any]]:
    filters = None
    if organizer_scope is not None and kind in SCOPED_KINDS:
        filters = {"organizer_id": organizer_scope}
    return await store.list(kind, filters)


async def get_item(store: ContentStore, kind: EntityKind, entity_id: int, organizer_scope: Optional[int] = None) -> Dict[str, Any]:
    item = await store.get(kind, entity_id)
    if item is None:
        raise NotFoundError(f"{kind.value.capitalize()} not found", {"id": entity_id})
    _check_scope(kind, item, organizer_scope)
    return item


# ============================================================================
# Save / delete
# ============================================================================

async def save_item(
    store: ContentStore,
    kind: EntityKind,
    submission: ContentSubmission,
    catalog: Optional[CatalogState] = None,
    guard: Optional[SubmissionGuard] = None,
    organizer_scope: Optional[int] = None,
    subject: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create or update one entity from an editor submission.

    The payload is fully normalized before the single store call. On any
    failure nothing is written and the error propagates to the caller,
    which keeps the form open.

    Submissions without a form session are keyed by caller, kind and target,
    so a repeated create from the same caller is rejected while one is in flight.
    """
    guard = guard or SubmissionGuard()
    target_id = resolve_save_target(submission)
    form_key = submission.form_session or f"{subject or 'anonymous'}:{kind.value}:{target_id or 'new'}"

    async with guard.hold(form_key):
        existing = None
        if target_id is not None:
            existing = await get_item(store, kind, target_id, organizer_scope)

        payload = normalize(kind, submission.fields, submission.uploads, existing)
        if organizer_scope is not None and kind in SCOPED_KINDS:
            payload["organizer_id"] = organizer_scope

        if target_id is None:
            item = await store.create(kind, payload)
            created = True
        else:
            item = await store.update(kind, target_id, payload)
            if item is None:
                raise NotFoundError(f"{kind.value.capitalize()} not found", {"id": target_id})
            created = False

    await _refresh_catalog(catalog, kind)

    logger.info(f"{'Created' if created else 'Updated'} {kind.value} {item.get('id')}")
    return {"success": True, "created": created, "item": item}


async def delete_item(
    store: ContentStore,
    kind: EntityKind,
    entity_id: int,
    confirm: bool = False,
    catalog: Optional[CatalogState] = None,
    organizer_scope: Optional[int] = None
) -> Dict[str, Any]:
    if not confirm:
        raise ValidationError(
            f"Deleting this {kind.value} cannot be undone. Resend with confirm=true to proceed.",
            {"id": entity_id}
        )

    await get_item(store, kind, entity_id, organizer_scope)

    if not await store.delete(kind, entity_id):
        raise NotFoundError(f"{kind.value.capitalize()} not found", {"id": entity_id})

    await _refresh_catalog(catalog, kind)
    return {"success": True, "id": entity_id}


# ============================================================================
# Venue slots
# ============================================================================

async def _write_slots(store: ContentStore, venue_id: int, slots: SlotList, catalog: Optional[CatalogState]):
    venue = await store.update(EntityKind.VENUE, venue_id, {"available_slots": slots.serialize()})
    if venue is None:
        raise NotFoundError("Venue not found", {"id": venue_id})
    await _refresh_catalog(catalog, EntityKind.VENUE)
    return venue


async def add_venue_slot(
    store: ContentStore,
    venue_id: int,
    data: SlotDraftCreate,
    catalog: Optional[CatalogState] = None
) -> Dict[str, Any]:
    venue = await get_item(store, EntityKind.VENUE, venue_id)
    slots = SlotList.deserialize(venue.get("available_slots"))
    transient_id = slots.add_slot(draft_from_create(data))
    venue = await _write_slots(store, venue_id, slots, catalog)
    return {"success": True, "transient_id": transient_id, "item": venue}


async def remove_venue_slot(
    store: ContentStore,
    venue_id: int,
    index: int,
    catalog: Optional[CatalogState] = None
) -> Dict[str, Any]:
    venue = await get_item(store, EntityKind.VENUE, venue_id)
    slots = SlotList.deserialize(venue.get("available_slots"))
    slots.remove_slot(index)
    venue = await _write_slots(store, venue_id, slots, catalog)
    return {"success": True, "item": venue}


# ============================================================================
# Form options
# ============================================================================

async def _venue_options(store: ContentStore):
    venues = await store.list(EntityKind.VENUE)
    return sorted(
        ({"value": v["id"], "label": v.get("name") or f"Venue {v['id']}"} for v in venues),
        key=lambda o: o["label"].lower()
    )


async def _organizer_options(store: ContentStore):
    users = await store.list(EntityKind.ORGANIZER)
    return sorted(
        (
            {"value": u["id"], "label": u.get("name") or u.get("username")}
            for u in users if u.get("role") != Role.SUPER_ADMIN.value
        ),
        key=lambda o: o["label"].lower()
    )


async def _category_options(store: ContentStore):
    categories = await store.list(EntityKind.CATEGORY)
    return sorted(
        ({"value": c["name"], "label": c["name"]} for c in categories if c.get("name")),
        key=lambda o: o["label"].lower()
    )


async def _event_options(store: ContentStore):
    events = await store.list(EntityKind.EVENT)
    return [{"value": e["id"], "label": e.get("title") or f"Event {e['id']}"} for e in events]


async def _static(options: List[str]):
    return [{"value": o, "label": o} for o in options]


SELECTORS = {
    EntityKind.EVENT: {"venues": _venue_options, "organizers": _organizer_options, "categories": _category_options},
    EntityKind.GALLERY: {"events": _event_options},
    EntityKind.HIGHLIGHT: {"events": _event_options},
    EntityKind.PROMO: {"events": _event_options},
}


async def get_form_options(store: ContentStore, kind: EntityKind) -> Dict[str, Any]:
    """
    Load the selector options a form needs.

    A failed fetch raises TransportError naming the selector instead of
    presenting an empty dropdown.
    """
    static = {
        EntityKind.CATEGORY: {"icons": ICON_SET},
        EntityKind.VENUE: {"days": [day.value for day in Weekday]},
        EntityKind.ORGANIZER: {"roles": [Role.SUPER_ADMIN.value, Role.ORGANIZER.value]},
    }.get(kind, {})

    selectors = dict(SELECTORS.get(kind, {}))
    names = list(selectors) + list(static)
    results = await asyncio.gather(
        *(selectors[name](store) for name in selectors),
        *(_static(values) for values in static.values()),
        return_exceptions=True
    )

    options = {}
    for name, result in zip(names, results):
        if isinstance(result, TransportError):
            raise TransportError(f"Could not load {name} for the {kind.value} form", {"selector": name})
        if isinstance(result, BaseException):
            raise result
        options[name] = result

    return {"kind": kind.value, "selectors": options}
