"""
Public catalog working set.

Holds one list per content kind, loaded through the ContentStore and
refreshed per kind. Public views (events with venue and organizer names,
galleries and highlights with event titles) are joined on read so that a
refresh of one kind is reflected everywhere it appears.
"""
import asyncio
import logging
import time
from typing import Dict, List, Any, Optional, Callable, Awaitable
from urllib.parse import urlparse

from app.core.exceptions import NotFoundError
from app.models.content import EntityKind
from app.services.content_store import ContentStore

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm", ".mov", ".m4v", ".ogv")


def story_type(url: str) -> str:
    path = urlparse(url or "").path.lower()
    return "video" if path.endswith(VIDEO_EXTENSIONS) else "image"


def compose_stories(media_urls: Optional[List[str]]) -> List[Dict[str, str]]:
    return [{"type": story_type(url), "url": url} for url in media_urls or [] if url]


class CatalogState:
    """Explicit container for the public working set"""

    def __init__(self, store: ContentStore, ttl_seconds: float = 60, clock: Callable[[], float] = time.monotonic):
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._items: Dict[EntityKind, List[Dict[str, Any]]] = {}
        self._loaded_at: Dict[EntityKind, float] = {}
        self._locks: Dict[EntityKind, asyncio.Lock] = {kind: asyncio.Lock() for kind in EntityKind}
        self._refreshers: Dict[EntityKind, Callable[[], Awaitable[List[Dict[str, Any]]]]] = {
            EntityKind.EVENT: lambda: self.store.list(EntityKind.EVENT),
            EntityKind.VENUE: lambda: self.store.list(EntityKind.VENUE),
            EntityKind.CATEGORY: lambda: self.store.list(EntityKind.CATEGORY),
            EntityKind.PROMO: lambda: self.store.list(EntityKind.PROMO),
            EntityKind.PARTNER: lambda: self.store.list(EntityKind.PARTNER),
            EntityKind.GALLERY: lambda: self.store.list(EntityKind.GALLERY),
            EntityKind.HIGHLIGHT: lambda: self.store.list(EntityKind.HIGHLIGHT),
            EntityKind.ORGANIZER: lambda: self.store.list(EntityKind.ORGANIZER),
        }

    def invalidate(self, kind: Optional[EntityKind] = None):
        if kind is None:
            self._loaded_at.clear()
        else:
            self._loaded_at.pop(kind, None)

    async def _load(self, kind: EntityKind) -> List[Dict[str, Any]]:
        items = await self._refreshers[kind]()
        self._items[kind] = items
        self._loaded_at[kind] = self._clock()
        logger.debug(f"Catalog refreshed {kind.collection}: {len(items)} items")
        return items

    async def refresh(self, kind: EntityKind) -> List[Dict[str, Any]]:
        """Reload one kind from the store"""
        async with self._locks[kind]:
            return await self._load(kind)

    async def refresh_all(self):
        await asyncio.gather(*(self.refresh(kind) for kind in EntityKind))

    def _is_fresh(self, kind: EntityKind) -> bool:
        loaded_at = self._loaded_at.get(kind)
        return loaded_at is not None and self._clock() - loaded_at < self.ttl_seconds

    async def items(self, kind: EntityKind) -> List[Dict[str, Any]]:
        if self._is_fresh(kind):
            return self._items[kind]
        async with self._locks[kind]:
            if self._is_fresh(kind):
                return self._items[kind]
            return await self._load(kind)

    async def _names(self, kind: EntityKind, field: str) -> Dict[Any, Any]:
        return {item["id"]: item.get(field) for item in await self.items(kind)}

    # ============================================================================
    # Public views
    # ============================================================================

    async def events(self) -> List[Dict[str, Any]]:
        events, venue_names, organizer_names = await asyncio.gather(
            self.items(EntityKind.EVENT),
            self._names(EntityKind.VENUE, "name"),
            self._names(EntityKind.ORGANIZER, "name"),
        )
        return [
            {
                **event,
                "venue_name": venue_names.get(event.get("venue_id")),
                "organizer_name": organizer_names.get(event.get("organizer_id")),
            }
            for event in events
        ]

    async def event(self, event_id: int) -> Dict[str, Any]:
        for event in await self.events():
            if event["id"] == event_id:
                return event
        raise NotFoundError("Event not found", {"id": event_id})

    async def venues(self) -> List[Dict[str, Any]]:
        venues = await self.items(EntityKind.VENUE)
        return sorted(venues, key=lambda v: (v.get("name") or "").lower())

    async def venue(self, venue_id: int) -> Dict[str, Any]:
        for venue in await self.items(EntityKind.VENUE):
            if venue["id"] == venue_id:
                return venue
        raise NotFoundError("Venue not found", {"id": venue_id})

    async def categories(self) -> List[Dict[str, Any]]:
        categories = await self.items(EntityKind.CATEGORY)
        return sorted(
            ({"name": c.get("name"), "icon": c.get("icon")} for c in categories),
            key=lambda c: (c["name"] or "").lower()
        )

    async def promos(self) -> List[Dict[str, Any]]:
        return await self.items(EntityKind.PROMO)

    async def partners(self) -> List[Dict[str, Any]]:
        return await self.items(EntityKind.PARTNER)

    async def galleries(self) -> List[Dict[str, Any]]:
        galleries, titles = await asyncio.gather(
            self.items(EntityKind.GALLERY),
            self._names(EntityKind.EVENT, "title"),
        )
        return [{**g, "event_title": titles.get(g.get("event_id"))} for g in galleries]

    async def highlights(self) -> List[Dict[str, Any]]:
        highlights, titles = await asyncio.gather(
            self.items(EntityKind.HIGHLIGHT),
            self._names(EntityKind.EVENT, "title"),
        )
        return [
            {
                **h,
                "event_title": titles.get(h.get("event_id")),
                "stories": compose_stories(h.get("media_url")),
            }
            for h in highlights
        ]

    async def snapshot(self) -> Dict[str, List[Dict[str, Any]]]:
        events, venues, categories, promos, partners, galleries, highlights = await asyncio.gather(
            self.events(), self.venues(), self.categories(), self.promos(),
            self.partners(), self.galleries(), self.highlights()
        )
        return {
            "events": events,
            "venues": venues,
            "categories": categories,
            "promos": promos,
            "partners": partners,
            "galleries": galleries,
            "highlights": highlights,
        }
