from fastapi import APIRouter, Depends
from typing import List
from app.core.dependencies import get_catalog
from app.models.catalog import Category, Partner, GalleryItem, Highlight, CatalogSnapshot
from app.models.event import EventPublic
from app.models.promo import Promo
from app.models.venue import Venue

router = APIRouter()


@router.get("/events", response_model=List[EventPublic])
async def list_public_events(catalog=Depends(get_catalog)):
    """
    List all events with venue and organizer names.
    No authentication required.
    """
    return await catalog.events()


@router.get("/events/{event_id}", response_model=EventPublic)
async def get_public_event(event_id: int, catalog=Depends(get_catalog)):
    return await catalog.event(event_id)


@router.get("/venues", response_model=List[Venue])
async def list_public_venues(catalog=Depends(get_catalog)):
    return await catalog.venues()


@router.get("/venues/{venue_id}", response_model=Venue)
async def get_public_venue(venue_id: int, catalog=Depends(get_catalog)):
    return await catalog.venue(venue_id)


@router.get("/categories", response_model=List[Category])
async def list_public_categories(catalog=Depends(get_catalog)):
    return await catalog.categories()


@router.get("/promos", response_model=List[Promo])
async def list_public_promos(catalog=Depends(get_catalog)):
    return await catalog.promos()


@router.get("/partners", response_model=List[Partner])
async def list_public_partners(catalog=Depends(get_catalog)):
    return await catalog.partners()


@router.get("/galleries", response_model=List[GalleryItem])
async def list_public_galleries(catalog=Depends(get_catalog)):
    """Gallery items, newest first, with the event title"""
    return await catalog.galleries()


@router.get("/highlights", response_model=List[Highlight])
async def list_public_highlights(catalog=Depends(get_catalog)):
    """Highlights with event title and their stories (image or video)"""
    return await catalog.highlights()


@router.get("/catalog", response_model=CatalogSnapshot)
async def get_catalog_snapshot(catalog=Depends(get_catalog)):
    """All public content in one response"""
    return await catalog.snapshot()
