"""
Configuración global de pytest y fixtures compartidos.
"""
import os
import sys

# Settings se leen al importar la app
os.environ.setdefault("JWT_SECRET", "test-secret-key")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "rzp_test_secret")

# Raiz del repo en el path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from typing import AsyncGenerator
from datetime import datetime
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.core import dependencies
from app.core.security import create_session_token
from app.services.bookings_service import BookingLedger
from app.services.catalog_service import CatalogState
from app.services.content_service import SubmissionGuard
from app.services.otp_service import OtpService
from app.services.payments_service import PaymentSessionRegistry
from tests.utils.mocks import InMemoryContentStore, MockSmsClient, MockGateway, MockR2Service


# ============================================================================
# Colaboradores en memoria
# ============================================================================

class FakeClock:
    """Reloj manual para OTP"""

    def __init__(self, now: datetime = datetime(2025, 1, 1, 12, 0, 0)):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store() -> InMemoryContentStore:
    return InMemoryContentStore()


@pytest.fixture
def sms_client() -> MockSmsClient:
    return MockSmsClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def otp_service(sms_client, clock) -> OtpService:
    return OtpService(sms_client, clock=clock, code_generator=lambda: "123456")


@pytest.fixture
def gateway() -> MockGateway:
    return MockGateway()


@pytest.fixture
def registry(gateway) -> PaymentSessionRegistry:
    return PaymentSessionRegistry(gateway)


@pytest.fixture
def catalog(store) -> CatalogState:
    # ttl 0: cada lectura va al store
    return CatalogState(store, ttl_seconds=0)


@pytest.fixture
def ledger() -> BookingLedger:
    return BookingLedger()


@pytest.fixture
def guard() -> SubmissionGuard:
    return SubmissionGuard()


@pytest.fixture
def uploader() -> MockR2Service:
    return MockR2Service()


@pytest.fixture(autouse=True)
def override_dependencies(store, sms_client, otp_service, gateway, registry, catalog, ledger, guard, uploader):
    """Reemplaza los singletons de la app por los fakes del test."""
    app.dependency_overrides.update({
        dependencies.get_content_store: lambda: store,
        dependencies.get_sms_client: lambda: sms_client,
        dependencies.get_otp_service: lambda: otp_service,
        dependencies.get_payment_gateway: lambda: gateway,
        dependencies.get_payment_registry: lambda: registry,
        dependencies.get_catalog: lambda: catalog,
        dependencies.get_booking_ledger: lambda: ledger,
        dependencies.get_submission_guard: lambda: guard,
        dependencies.get_uploader: lambda: uploader,
    })
    yield
    app.dependency_overrides.clear()


# ============================================================================
# Cliente HTTP Async
# ============================================================================

@pytest.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Cliente HTTP async para hacer requests al API."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Autenticación
# ============================================================================

def bearer(subject, role: str) -> dict:
    return {"Authorization": f"Bearer {create_session_token(str(subject), role)}"}


@pytest.fixture
def super_admin_headers() -> dict:
    return bearer(1, "super-admin")


@pytest.fixture
def organizer_headers() -> dict:
    return bearer(2, "organizer")


@pytest.fixture
def user_phone() -> str:
    return "+919876543210"


@pytest.fixture
def user_headers(user_phone) -> dict:
    return bearer(user_phone, "user")
