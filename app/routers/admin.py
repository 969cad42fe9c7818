from fastapi import APIRouter, Depends, Query
from typing import List, Dict, Any
from app.core.dependencies import (
    CurrentUser, require_admin, get_content_store, get_catalog, get_submission_guard
)
from app.core.exceptions import AuthorizationError, NotFoundError
from app.models.content import EntityKind, ContentSubmission, SaveResult, DeleteResult, FormOptions
from app.models.schedule import SlotDraftCreate
from app.services import content_service

router = APIRouter()


def resolve_kind(collection: str, user: CurrentUser) -> EntityKind:
    try:
        kind = EntityKind.from_collection(collection)
    except ValueError:
        raise NotFoundError(f"Unknown content type '{collection}'")

    if kind == EntityKind.ORGANIZER and not user.is_super_admin:
        raise AuthorizationError("Only super admins can manage users")
    return kind


# ============================================================================
# Venue slots
# ============================================================================

@router.post("/venues/{venue_id}/slots")
async def add_slot(
    venue_id: int,
    data: SlotDraftCreate,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store),
    catalog=Depends(get_catalog)
):
    """
    Append a slot to a venue. Start and end default to 8:00 PM and 11:59 PM.
    The whole slot list is written back.
    """
    return await content_service.add_venue_slot(store, venue_id, data, catalog)


@router.delete("/venues/{venue_id}/slots/{index}")
async def remove_slot(
    venue_id: int,
    index: int,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store),
    catalog=Depends(get_catalog)
):
    """Remove the slot at the given position"""
    return await content_service.remove_venue_slot(store, venue_id, index, catalog)


# ============================================================================
# Generic content CRUD
# ============================================================================

@router.get("/{collection}/options", response_model=FormOptions)
async def form_options(
    collection: str,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store)
):
    """Selector options for the editor form of a content type"""
    kind = resolve_kind(collection, user)
    return await content_service.get_form_options(store, kind)


@router.get("/{collection}", response_model=List[Dict[str, Any]])
async def list_content(
    collection: str,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store)
):
    kind = resolve_kind(collection, user)
    return await content_service.list_items(store, kind, user.organizer_scope)


@router.get("/{collection}/{entity_id}", response_model=Dict[str, Any])
async def get_content(
    collection: str,
    entity_id: int,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store)
):
    kind = resolve_kind(collection, user)
    return await content_service.get_item(store, kind, entity_id, user.organizer_scope)


@router.post("/{collection}", response_model=SaveResult)
async def save_content(
    collection: str,
    submission: ContentSubmission,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store),
    catalog=Depends(get_catalog),
    guard=Depends(get_submission_guard)
):
    """
    Save an editor submission.

    Updates when the submission is a persisted entity with an id,
    creates otherwise. On error nothing is written.
    """
    kind = resolve_kind(collection, user)
    return await content_service.save_item(
        store, kind, submission,
        catalog=catalog,
        guard=guard,
        organizer_scope=user.organizer_scope,
        subject=user.subject
    )


@router.put("/{collection}/{entity_id}", response_model=SaveResult)
async def update_content(
    collection: str,
    entity_id: int,
    submission: ContentSubmission,
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store),
    catalog=Depends(get_catalog),
    guard=Depends(get_submission_guard)
):
    kind = resolve_kind(collection, user)
    submission = submission.model_copy(update={"id": entity_id, "is_persisted": True})
    return await content_service.save_item(
        store, kind, submission,
        catalog=catalog,
        guard=guard,
        organizer_scope=user.organizer_scope,
        subject=user.subject
    )


@router.delete("/{collection}/{entity_id}", response_model=DeleteResult)
async def delete_content(
    collection: str,
    entity_id: int,
    confirm: bool = Query(False, description="Must be true to delete"),
    user: CurrentUser = Depends(require_admin),
    store=Depends(get_content_store),
    catalog=Depends(get_catalog)
):
    kind = resolve_kind(collection, user)
    return await content_service.delete_item(
        store, kind, entity_id,
        confirm=confirm,
        catalog=catalog,
        organizer_scope=user.organizer_scope
    )
