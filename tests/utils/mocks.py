"""
Mocks para servicios externos y dependencias.
"""
import hashlib
from typing import Optional, List, Any, Dict, Set
from datetime import datetime

from app.core.exceptions import ExternalServiceError, TransportError
from app.models.content import EntityKind
from app.services.content_store import ContentStore, stamp_persisted
from app.services.gateways.base import BaseGateway, PaymentOrder
from app.services.normalization import COLUMNS
from app.services.sms_service import SmsClient


class MockDBConnection:
    """Mock de conexión a base de datos asyncpg."""

    def __init__(self):
        self.fetchrow_returns = {}
        self.fetch_returns = {}
        self.execute_returns = {}
        self.raise_on = {}
        self._call_history = []

    def set_fetchrow_return(self, query_contains: str, value: Any):
        """Configura valor de retorno para fetchrow según query."""
        self.fetchrow_returns[query_contains] = value

    def set_fetch_return(self, query_contains: str, value: List[Any]):
        """Configura valor de retorno para fetch según query."""
        self.fetch_returns[query_contains] = value

    def set_execute_return(self, query_contains: str, value: str):
        self.execute_returns[query_contains] = value

    def set_error(self, query_contains: str, error: Exception):
        """Cualquier método con esta query lanza el error."""
        self.raise_on[query_contains] = error

    def _check_error(self, query: str):
        for key, error in self.raise_on.items():
            if key in query:
                raise error

    async def fetchrow(self, query: str, *args) -> Optional[dict]:
        """Mock de fetchrow."""
        self._call_history.append(("fetchrow", query, args))
        self._check_error(query)

        for key, value in self.fetchrow_returns.items():
            if key in query:
                if callable(value):
                    return value(*args)
                return value
        return None

    async def fetch(self, query: str, *args) -> List[dict]:
        """Mock de fetch."""
        self._call_history.append(("fetch", query, args))
        self._check_error(query)

        for key, value in self.fetch_returns.items():
            if key in query:
                if callable(value):
                    return value(*args)
                return value
        return []

    async def execute(self, query: str, *args) -> str:
        """Mock de execute."""
        self._call_history.append(("execute", query, args))
        self._check_error(query)

        for key, value in self.execute_returns.items():
            if key in query:
                return value
        return "UPDATE 1"

    def get_call_history(self) -> List[tuple]:
        """Retorna historial de llamadas."""
        return self._call_history

    def was_called_with(self, method: str, query_contains: str) -> bool:
        """Verifica si se llamó un método con cierta query."""
        for call in self._call_history:
            if call[0] == method and query_contains in call[1]:
                return True
        return False

    def last_args(self, method: str) -> tuple:
        for call in reversed(self._call_history):
            if call[0] == method:
                return call[2]
        return ()


class MockDBContextManager:
    """Context manager mock para get_db_connection."""

    def __init__(self, connection: MockDBConnection = None):
        self.connection = connection or MockDBConnection()

    async def __aenter__(self):
        return self.connection

    async def __aexit__(self, *args):
        pass


class InMemoryContentStore(ContentStore):
    """ContentStore en memoria con la misma forma de filas que Postgres."""

    def __init__(self):
        self.rows: Dict[EntityKind, Dict[int, Dict[str, Any]]] = {kind: {} for kind in EntityKind}
        self.failing: Set[EntityKind] = set()
        self.writes: List[tuple] = []
        self._next_id = 0

    def fail(self, kind: EntityKind):
        """Simula la base de datos caída para un tipo."""
        self.failing.add(kind)

    def _check(self, kind: EntityKind):
        if kind in self.failing:
            raise TransportError(f"Content store unavailable while trying to list {kind.collection}")

    def seed(self, kind: EntityKind, row: Dict[str, Any]) -> Dict[str, Any]:
        """Inserta una fila tal cual, sin normalizar."""
        entity = {column: None for column in COLUMNS[kind]}
        entity.update(row)
        if entity.get("id") is None:
            self._next_id += 1
            entity["id"] = self._next_id
        self._next_id = max(self._next_id, entity["id"])
        self.rows[kind][entity["id"]] = entity
        return stamp_persisted(entity)

    async def list(self, kind: EntityKind, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        self._check(kind)
        rows = sorted(self.rows[kind].values(), key=lambda r: r["id"])
        for column, value in (filters or {}).items():
            rows = [r for r in rows if r.get(column) == value]
        return [stamp_persisted(r) for r in rows]

    async def get(self, kind: EntityKind, entity_id: int) -> Optional[Dict[str, Any]]:
        self._check(kind)
        row = self.rows[kind].get(entity_id)
        return stamp_persisted(row) if row else None

    async def create(self, kind: EntityKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        self._check(kind)
        self.writes.append(("create", kind, dict(payload)))
        return self.seed(kind, {k: v for k, v in payload.items() if k != "id"})

    async def update(self, kind: EntityKind, entity_id: int, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        self._check(kind)
        self.writes.append(("update", kind, dict(payload)))
        row = self.rows[kind].get(entity_id)
        if row is None:
            return None
        row.update(payload)
        return stamp_persisted(row)

    async def delete(self, kind: EntityKind, entity_id: int) -> bool:
        self._check(kind)
        self.writes.append(("delete", kind, entity_id))
        return self.rows[kind].pop(entity_id, None) is not None

    async def find_user(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        for row in self.rows[EntityKind.ORGANIZER].values():
            if row.get("username") == username and row.get("password") == password:
                return stamp_persisted(row)
        return None


class MockSmsClient(SmsClient):
    """Mock del proveedor de SMS."""

    def __init__(self):
        self.sent_messages = []
        self.fail = False

    async def send(self, to: str, body: str) -> str:
        if self.fail:
            raise ExternalServiceError("SMS delivery failed: invalid number")
        self.sent_messages.append({"to": to, "body": body, "sent_at": datetime.now()})
        return f"SM{len(self.sent_messages)}"

    def last_code(self) -> Optional[str]:
        if not self.sent_messages:
            return None
        return self.sent_messages[-1]["body"].rsplit(" ", 1)[-1]


class MockGateway(BaseGateway):
    """Gateway determinista: firma = sha256("order|payment")."""

    def __init__(self):
        self.orders: List[PaymentOrder] = []
        self.fail = False

    @property
    def name(self) -> str:
        return "mock"

    @property
    def display_name(self) -> str:
        return "Mock Gateway"

    async def open_session(self, amount_minor, currency, description, metadata=None) -> PaymentOrder:
        if self.fail:
            raise ExternalServiceError("Payment order creation failed: gateway down")
        order = PaymentOrder(
            gateway_order_id=f"order_{len(self.orders) + 1}",
            amount_minor=amount_minor,
            currency=currency,
            description=description,
            key_id="rzp_test_key",
            notes=dict(metadata or {}),
            created_at=datetime.utcnow()
        )
        self.orders.append(order)
        return order

    @staticmethod
    def sign(order_id: str, payment_id: str) -> str:
        return hashlib.sha256(f"{order_id}|{payment_id}".encode()).hexdigest()

    def verify_signature(self, gateway_order_id, payment_id, signature) -> bool:
        if not (gateway_order_id and payment_id and signature):
            return False
        return signature == self.sign(gateway_order_id, payment_id)


class MockR2Service:
    """Mock del servicio de Cloudflare R2."""

    def __init__(self):
        self.uploaded_files = {}

    async def upload_image(self, content: bytes, filename: str, content_type: str, folder: str = "images"):
        """Mock de subida de imagen."""
        key = f"{folder}/{filename}"
        self.uploaded_files[key] = {
            "content": content,
            "content_type": content_type,
            "uploaded_at": datetime.now()
        }
        return {
            "url": f"https://r2.example.com/{key}",
            "key": key
        }
