"""
Tests for ticket quote, checkout and payment result.
"""
import pytest
from datetime import date
from httpx import AsyncClient

from app.core.security import create_session_token
from app.models.content import EntityKind
from tests.utils.factories import EventFactory, VenueFactory

CONTACT = {"name": "Asha", "phone": "+919876543210", "email": "asha@gmail.com"}


@pytest.fixture
def event(store):
    venue = store.seed(EntityKind.VENUE, VenueFactory.create(name="Skyline"))
    return store.seed(EntityKind.EVENT, EventFactory.create(title="Rave", venue_id=venue["id"]))


class TestQuote:

    @pytest.mark.asyncio
    async def test_quote(self, client: AsyncClient, event):
        response = await client.post("/bookings/quote", json={"event_id": event["id"], "quantities": [2, 1]})

        assert response.status_code == 200
        data = response.json()
        assert data["total_payable"] == "1000.00"
        assert data["lines"][0]["unit_price"] == "250.00"
        assert data["lines"][0]["subtotal"] == "500.00"
        assert data["total_people"] == 4
        assert len(data["lines"]) == 2

    @pytest.mark.asyncio
    async def test_empty_quote(self, client: AsyncClient, event):
        response = await client.post("/bookings/quote", json={"event_id": event["id"], "quantities": [-3]})

        data = response.json()
        assert data["lines"] == []
        assert data["message"] == "No tickets selected."
        assert data["total_payable"] == "0.00"
        assert data["total_tickets_price"] == "0.00"

    @pytest.mark.asyncio
    async def test_event_without_tickets(self, client: AsyncClient, store):
        event = store.seed(EntityKind.EVENT, EventFactory.create(ticket_types=[]))
        response = await client.post("/bookings/quote", json={"event_id": event["id"], "quantities": [1]})
        assert response.status_code == 400


class TestCheckout:

    @pytest.mark.asyncio
    async def test_requires_login(self, client: AsyncClient, event):
        response = await client.post("/bookings/checkout", json={
            "event_id": event["id"], "quantities": [1], "contact": CONTACT, "accepted_terms": True
        })
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_validation_runs_before_gateway(self, client: AsyncClient, user_headers, event, gateway):
        response = await client.post("/bookings/checkout", headers=user_headers, json={
            "event_id": event["id"], "quantities": [1], "contact": CONTACT, "accepted_terms": False
        })

        assert response.status_code == 400
        assert response.json()["message"] == "Please agree to the Terms & Conditions."
        assert gateway.orders == []

    @pytest.mark.asyncio
    async def test_paid_checkout_records_booking(self, client: AsyncClient, user_headers, event, gateway):
        response = await client.post("/bookings/checkout", headers=user_headers, json={
            "event_id": event["id"], "quantities": [2, 1], "contact": CONTACT, "accepted_terms": True
        })

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "pending_payment"
        assert data["amount"] == 100000
        assert data["description"] == "Booking for Rave"
        assert data["prefill"]["email"] == CONTACT["email"]

        order_id = data["order_id"]
        assert (await client.get("/bookings/me", headers=user_headers)).json() == []

        response = await client.post(f"/payments/{order_id}/result", headers=user_headers, json={
            "outcome": "success", "payment_id": "pay_1", "signature": gateway.sign(order_id, "pay_1")
        })
        assert response.status_code == 200
        assert response.json()["message"] == "Payment successful! ID: pay_1. Your ticket is confirmed."

        bookings = (await client.get("/bookings/me", headers=user_headers)).json()
        assert len(bookings) == 1
        assert bookings[0]["event_name"] == "Rave"
        assert bookings[0]["venue_name"] == "Skyline"
        assert bookings[0]["status"] == "upcoming"

    @pytest.mark.asyncio
    async def test_cancelled_payment_records_nothing(self, client: AsyncClient, user_headers, event, ledger):
        data = (await client.post("/bookings/checkout", headers=user_headers, json={
            "event_id": event["id"], "quantities": [1], "contact": CONTACT, "accepted_terms": True
        })).json()

        response = await client.post(f"/payments/{data['order_id']}/result", headers=user_headers, json={"outcome": "cancelled"})
        assert response.json()["message"] == "Payment was not completed."
        assert ledger.list(CONTACT["phone"]) == []

    @pytest.mark.asyncio
    async def test_free_tickets_confirm_immediately(self, client: AsyncClient, user_headers, store, gateway):
        event = store.seed(EntityKind.EVENT, EventFactory.create(
            ticket_types=[{"name": "Guestlist", "price": "0", "permits": 1}]
        ))

        response = await client.post("/bookings/checkout", headers=user_headers, json={
            "event_id": event["id"], "quantities": [1], "contact": CONTACT, "accepted_terms": True
        })

        data = response.json()
        assert data["status"] == "confirmed"
        assert data["booking_id"]
        assert gateway.orders == []


class TestPaymentResult:

    @pytest.mark.asyncio
    async def test_forged_signature(self, client: AsyncClient, user_headers, event):
        data = (await client.post("/bookings/checkout", headers=user_headers, json={
            "event_id": event["id"], "quantities": [1], "contact": CONTACT, "accepted_terms": True
        })).json()

        response = await client.post(f"/payments/{data['order_id']}/result", headers=user_headers, json={
            "outcome": "success", "payment_id": "pay_1", "signature": "forged"
        })
        assert response.status_code == 402

    @pytest.mark.asyncio
    async def test_other_users_session(self, client: AsyncClient, user_headers, event):
        data = (await client.post("/bookings/checkout", headers=user_headers, json={
            "event_id": event["id"], "quantities": [1], "contact": CONTACT, "accepted_terms": True
        })).json()

        response = await client.post(
            f"/payments/{data['order_id']}/result",
            headers={"Authorization": f"Bearer {create_session_token('+911111111111', 'user')}"},
            json={"outcome": "cancelled"}
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_unknown_order(self, client: AsyncClient):
        response = await client.post("/payments/order_missing/result", json={"outcome": "cancelled"})
        assert response.status_code == 404


class TestHistory:

    @pytest.mark.asyncio
    async def test_streak(self, client: AsyncClient, user_headers, user_phone, ledger):
        ledger.record(user_phone, "Last night", event_date=date.today(), status="past")

        response = await client.get("/bookings/me/streak", headers=user_headers)
        assert response.json() == {"streak": 1}

        response = await client.get("/bookings/me?status=past", headers=user_headers)
        assert [b["event_name"] for b in response.json()] == ["Last night"]
