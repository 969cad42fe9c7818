"""
Tests for admin content operations.
"""
import asyncio
import pytest

from app.core.exceptions import ConflictError, NotFoundError, TransportError, ValidationError
from app.models.content import EntityKind, ContentSubmission
from app.models.schedule import SlotDraftCreate, Weekday
from app.services import content_service
from tests.utils.factories import EventFactory, UserFactory, VenueFactory


class TestSaveItem:

    @pytest.mark.asyncio
    async def test_create_then_update(self, store, catalog, guard):
        created = await content_service.save_item(
            store, EntityKind.CATEGORY,
            ContentSubmission(id=1700000000000, fields={"name": "Techno", "icon": "disc"}),
            catalog=catalog, guard=guard
        )
        assert created["created"] is True
        item = created["item"]
        assert item["is_persisted"] is True

        updated = await content_service.save_item(
            store, EntityKind.CATEGORY,
            ContentSubmission(id=item["id"], is_persisted=True, fields={"name": "Deep Techno"}),
            catalog=catalog, guard=guard
        )
        assert updated["created"] is False
        assert updated["item"]["name"] == "Deep Techno"
        assert updated["item"]["icon"] == "disc"
        assert len(store.rows[EntityKind.CATEGORY]) == 1

    @pytest.mark.asyncio
    async def test_invalid_submission_writes_nothing(self, store, guard):
        with pytest.raises(ValidationError):
            await content_service.save_item(
                store, EntityKind.CATEGORY,
                ContentSubmission(fields={"name": "Bad", "icon": "skull"}),
                guard=guard
            )
        assert store.writes == []

    @pytest.mark.asyncio
    async def test_update_missing_entity(self, store):
        with pytest.raises(NotFoundError):
            await content_service.save_item(
                store, EntityKind.PARTNER,
                ContentSubmission(id=99, is_persisted=True, fields={"name": "Ghost"})
            )

    @pytest.mark.asyncio
    async def test_overlapping_submission_is_rejected(self, store, guard):
        release = asyncio.Event()

        class SlowStore(type(store)):
            async def create(self, kind, payload):
                await release.wait()
                return await super().create(kind, payload)

        slow = SlowStore()
        submission = ContentSubmission(form_session="form-1", fields={"name": "Partner"})
        first = asyncio.create_task(content_service.save_item(slow, EntityKind.PARTNER, submission, guard=guard))
        await asyncio.sleep(0)
        assert guard.is_busy("form-1")

        with pytest.raises(ConflictError):
            await content_service.save_item(slow, EntityKind.PARTNER, submission, guard=guard)

        release.set()
        result = await first
        assert result["created"] is True
        assert not guard.is_busy("form-1")
        assert len(slow.rows[EntityKind.PARTNER]) == 1

    @pytest.mark.asyncio
    async def test_double_create_without_form_session(self, store, guard):
        release = asyncio.Event()

        class SlowStore(type(store)):
            async def create(self, kind, payload):
                await release.wait()
                return await super().create(kind, payload)

        slow = SlowStore()
        submission = ContentSubmission(fields={"name": "Partner"})
        first = asyncio.create_task(
            content_service.save_item(slow, EntityKind.PARTNER, submission, guard=guard, subject="1")
        )
        second = asyncio.create_task(
            content_service.save_item(slow, EntityKind.PARTNER, submission, guard=guard, subject="1")
        )
        await asyncio.sleep(0)
        assert guard.is_busy("1:partner:new")

        release.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        assert results[0]["created"] is True
        assert isinstance(results[1], ConflictError)
        assert len(slow.rows[EntityKind.PARTNER]) == 1
        assert not guard.is_busy("1:partner:new")

    @pytest.mark.asyncio
    async def test_catalog_refresh_failure_keeps_the_write(self, store, catalog):
        store.seed(EntityKind.PARTNER, {"name": "Before"})
        original_refresh = catalog.refresh

        async def failing_refresh(kind):
            raise TransportError("down")

        catalog.refresh = failing_refresh
        result = await content_service.save_item(
            store, EntityKind.PARTNER, ContentSubmission(fields={"name": "After"}), catalog=catalog
        )
        catalog.refresh = original_refresh

        assert result["success"] is True
        assert [p["name"] for p in await catalog.partners()] == ["Before", "After"]


class TestOrganizerScope:

    @pytest.mark.asyncio
    async def test_organizer_sees_only_own_events(self, store):
        store.seed(EntityKind.EVENT, EventFactory.create(organizer_id=2, title="Mine"))
        theirs = store.seed(EntityKind.EVENT, EventFactory.create(organizer_id=3, title="Theirs"))

        items = await content_service.list_items(store, EntityKind.EVENT, organizer_scope=2)
        assert [e["title"] for e in items] == ["Mine"]

        with pytest.raises(NotFoundError):
            await content_service.get_item(store, EntityKind.EVENT, theirs["id"], organizer_scope=2)

    @pytest.mark.asyncio
    async def test_organizer_events_are_stamped_with_owner(self, store):
        result = await content_service.save_item(
            store, EntityKind.EVENT,
            ContentSubmission(fields={"title": "New", "organizer_id": 9}),
            organizer_scope=2
        )
        assert result["item"]["organizer_id"] == 2


class TestDeleteItem:

    @pytest.mark.asyncio
    async def test_requires_confirmation(self, store):
        partner = store.seed(EntityKind.PARTNER, {"name": "P"})

        with pytest.raises(ValidationError, match="cannot be undone"):
            await content_service.delete_item(store, EntityKind.PARTNER, partner["id"])
        assert partner["id"] in store.rows[EntityKind.PARTNER]

        result = await content_service.delete_item(store, EntityKind.PARTNER, partner["id"], confirm=True)
        assert result == {"success": True, "id": partner["id"]}
        assert store.rows[EntityKind.PARTNER] == {}

    @pytest.mark.asyncio
    async def test_missing_entity(self, store):
        with pytest.raises(NotFoundError):
            await content_service.delete_item(store, EntityKind.PARTNER, 404, confirm=True)


class TestVenueSlots:

    @pytest.mark.asyncio
    async def test_add_and_remove(self, store, catalog):
        venue = store.seed(EntityKind.VENUE, VenueFactory.create(available_slots=[]))

        result = await content_service.add_venue_slot(store, venue["id"], SlotDraftCreate(day=Weekday.SAT), catalog)
        assert result["transient_id"]
        assert result["item"]["available_slots"] == [{"day": "Sat", "name": "", "start": "20:00", "end": "23:59"}]

        result = await content_service.remove_venue_slot(store, venue["id"], 0, catalog)
        assert result["item"]["available_slots"] == []

    @pytest.mark.asyncio
    async def test_remove_unknown_index(self, store):
        venue = store.seed(EntityKind.VENUE, VenueFactory.create())
        with pytest.raises(NotFoundError):
            await content_service.remove_venue_slot(store, venue["id"], 7)


class TestFormOptions:

    @pytest.mark.asyncio
    async def test_event_form_selectors(self, store):
        store.seed(EntityKind.VENUE, VenueFactory.create(name="Zeta"))
        store.seed(EntityKind.VENUE, VenueFactory.create(name="alpha"))
        store.seed(EntityKind.ORGANIZER, UserFactory.create(name="Boss", role="super-admin"))
        store.seed(EntityKind.ORGANIZER, UserFactory.create(name="DJ Kiran"))
        store.seed(EntityKind.CATEGORY, {"name": "Techno", "icon": "disc"})

        options = await content_service.get_form_options(store, EntityKind.EVENT)
        selectors = options["selectors"]

        assert [o["label"] for o in selectors["venues"]] == ["alpha", "Zeta"]
        assert [o["label"] for o in selectors["organizers"]] == ["DJ Kiran"]
        assert selectors["categories"] == [{"value": "Techno", "label": "Techno"}]

    @pytest.mark.asyncio
    async def test_static_options(self, store):
        options = await content_service.get_form_options(store, EntityKind.CATEGORY)
        assert {"value": "disc", "label": "disc"} in options["selectors"]["icons"]

    @pytest.mark.asyncio
    async def test_failed_selector_is_named(self, store):
        store.fail(EntityKind.VENUE)

        with pytest.raises(TransportError) as exc:
            await content_service.get_form_options(store, EntityKind.EVENT)
        assert exc.value.details == {"selector": "venues"}
