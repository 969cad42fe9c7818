"""
Tests for the payment session registry and the Razorpay signature.
"""
import hashlib
import hmac
import pytest

from app.core.exceptions import NotFoundError, PaymentError, ValidationError
from app.models.payment import PaymentOutcome
from app.services.gateways import get_gateway
from app.services.gateways.razorpay import RazorpayGateway
from app.services.payments_service import PaymentSessionRegistry


class Continuations:
    """Records which continuation ran."""

    def __init__(self):
        self.calls = []

    async def on_success(self, payment_id):
        self.calls.append(("success", payment_id))
        return f"paid {payment_id}"

    async def on_failure(self, error_description):
        self.calls.append(("failure", error_description))
        return f"failed {error_description}"

    async def on_cancel(self):
        self.calls.append(("cancel",))
        return "cancelled"


async def open_session(registry, continuations, amount=50000):
    return await registry.open(
        amount, "INR", "Booking for Party", {"event_id": 1},
        continuations.on_success, continuations.on_failure, continuations.on_cancel,
        subject="+919876543210"
    )


class TestPaymentSessionRegistry:

    @pytest.mark.asyncio
    async def test_verified_success_runs_on_success_once(self, registry, gateway):
        continuations = Continuations()
        order = await open_session(registry, continuations)

        result = await registry.resolve(
            order.gateway_order_id, PaymentOutcome.SUCCESS,
            payment_id="pay_1", signature=gateway.sign(order.gateway_order_id, "pay_1")
        )

        assert result["success"] is True
        assert result["status"] == "paid"
        assert result["message"] == "paid pay_1"
        assert continuations.calls == [("success", "pay_1")]

        with pytest.raises(NotFoundError):
            await registry.resolve(order.gateway_order_id, PaymentOutcome.CANCELLED)
        assert len(continuations.calls) == 1

    @pytest.mark.asyncio
    async def test_bad_signature_keeps_session_open(self, registry, gateway):
        continuations = Continuations()
        order = await open_session(registry, continuations)

        with pytest.raises(PaymentError):
            await registry.resolve(order.gateway_order_id, PaymentOutcome.SUCCESS, payment_id="pay_1", signature="forged")

        assert continuations.calls == []
        assert registry.get(order.gateway_order_id) is not None

    @pytest.mark.asyncio
    async def test_failure_and_cancel(self, registry):
        continuations = Continuations()
        failed = await open_session(registry, continuations)
        cancelled = await open_session(registry, continuations)

        result = await registry.resolve(failed.gateway_order_id, PaymentOutcome.FAILED, error_description="Card declined")
        assert result["success"] is False
        assert result["message"] == "failed Card declined"

        result = await registry.resolve(cancelled.gateway_order_id, PaymentOutcome.CANCELLED)
        assert result["status"] == "cancelled"
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_zero_amount_is_rejected(self, registry, gateway):
        with pytest.raises(ValidationError):
            await open_session(registry, Continuations(), amount=0)
        assert gateway.orders == []

    @pytest.mark.asyncio
    async def test_purge_stale(self, gateway):
        now = [1000.0]
        registry = PaymentSessionRegistry(gateway, clock=lambda: now[0], ttl_seconds=60)
        await open_session(registry, Continuations())
        now[0] += 61

        assert registry.purge_stale() == 1
        assert len(registry) == 0


class TestRazorpaySignature:

    def test_hmac_of_order_and_payment(self):
        gateway = RazorpayGateway(key_id="rzp_test", key_secret="s3cret")
        signature = hmac.new(b"s3cret", b"order_A|pay_B", hashlib.sha256).hexdigest()

        assert gateway.verify_signature("order_A", "pay_B", signature) is True
        assert gateway.verify_signature("order_A", "pay_C", signature) is False
        assert gateway.verify_signature("order_A", "pay_B", "") is False

    def test_gateway_lookup(self):
        assert get_gateway("razorpay").name == "razorpay"
        with pytest.raises(ValueError):
            get_gateway("paypal")
