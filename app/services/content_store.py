"""
Content persistence gateway.

Services depend on ContentStore; PostgresContentStore is the asyncpg
implementation used in production. Every entity returned by a store is a
plain dict stamped with `is_persisted = True` and never carries a password.
"""
import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import date, time
from typing import Optional, Dict, Any, List

import asyncpg

from app.core.exceptions import TransportError, ValidationError
from app.database import get_db_connection
from app.models.content import EntityKind
from app.services.normalization import COLUMNS
from app.services.time_encoding import parse_time24

logger = logging.getLogger(__name__)

JSON_COLUMNS = {
    EntityKind.EVENT: {"poster_images", "ticket_types"},
    EntityKind.VENUE: {"details", "menu", "available_slots"},
    EntityKind.GALLERY: {"image_urls"},
    EntityKind.HIGHLIGHT: {"media_url"},
}
DATE_COLUMNS = {"event_date"}
TIME_COLUMNS = {"start_time", "end_time"}
SECRET_COLUMNS = {"password"}

ORDER_BY = {
    EntityKind.EVENT: "event_date ASC NULLS LAST, start_time ASC NULLS LAST, id ASC",
    EntityKind.GALLERY: "id DESC",
    EntityKind.HIGHLIGHT: "id DESC",
}


def stamp_persisted(entity: Dict[str, Any]) -> Dict[str, Any]:
    entity = {k: v for k, v in entity.items() if k not in SECRET_COLUMNS}
    entity["is_persisted"] = True
    return entity


class ContentStore(ABC):
    """Interface for admin content persistence"""

    @abstractmethod
    async def list(self, kind: EntityKind, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Return all entities of a kind, optionally filtered by column equality"""
        ...

    @abstractmethod
    async def get(self, kind: EntityKind, entity_id: int) -> Optional[Dict[str, Any]]:
        """Return an entity by id, or None if not found"""
        ...

    @abstractmethod
    async def create(self, kind: EntityKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        ...

    @abstractmethod
    async def update(self, kind: EntityKind, entity_id: int, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Write the given columns, returning None if the entity does not exist"""
        ...

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: int) -> bool:
        ...

    @abstractmethod
    async def find_user(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """Return the admin user matching both credentials, without password"""
        ...


class PostgresContentStore(ContentStore):
    """ContentStore backed by PostgreSQL through the shared asyncpg pool"""

    # ============================================================================
    # Encoding
    # ============================================================================

    @staticmethod
    def _encode(kind: EntityKind, column: str, value):
        if value is None:
            return None
        if column in JSON_COLUMNS.get(kind, ()):
            return json.dumps(value, default=str)
        if column in DATE_COLUMNS and isinstance(value, str):
            try:
                return date.fromisoformat(value)
            except ValueError:
                raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD", {"field": column})
        if column in TIME_COLUMNS and isinstance(value, str):
            hour, minute = parse_time24(value)
            return time(hour, minute)
        return value

    @staticmethod
    def _decode(kind: EntityKind, record) -> Dict[str, Any]:
        entity = dict(record)
        for column in JSON_COLUMNS.get(kind, ()):
            if isinstance(entity.get(column), str):
                entity[column] = json.loads(entity[column])
        for column in DATE_COLUMNS:
            if isinstance(entity.get(column), date):
                entity[column] = entity[column].isoformat()
        for column in TIME_COLUMNS:
            if isinstance(entity.get(column), time):
                entity[column] = entity[column].strftime("%H:%M")
        return stamp_persisted(entity)

    @staticmethod
    def _select_list(kind: EntityKind) -> str:
        columns = [c for c in COLUMNS[kind] if c not in SECRET_COLUMNS]
        return ", ".join(["id"] + columns)

    def _assignments(self, kind: EntityKind, payload: Dict[str, Any], start: int = 1):
        columns, placeholders, values = [], [], []
        for offset, (column, value) in enumerate(
            (c, v) for c, v in payload.items() if c in COLUMNS[kind]
        ):
            columns.append(column)
            cast = "::jsonb" if column in JSON_COLUMNS.get(kind, ()) else ""
            placeholders.append(f"${start + offset}{cast}")
            values.append(self._encode(kind, column, value))
        return columns, placeholders, values

    async def _run(self, operation: str, query: str, *args, fetch: str = "fetch", use_transaction: bool = True):
        try:
            async with get_db_connection(use_transaction=use_transaction) as conn:
                return await getattr(conn, fetch)(query, *args)
        except (asyncpg.IntegrityConstraintViolationError, asyncpg.DataError) as e:
            logger.warning(f"Rejected {operation}: {e}")
            raise ValidationError(f"Could not {operation}: {e}")
        except (asyncpg.PostgresError, OSError, asyncio.TimeoutError) as e:
            logger.error(f"Database error during {operation}: {e}")
            raise TransportError(f"Content store unavailable while trying to {operation}")

    # ============================================================================
    # ContentStore
    # ============================================================================

    async def list(self, kind: EntityKind, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        filters = {k: v for k, v in (filters or {}).items() if k in COLUMNS[kind] or k == "id"}
        where, args = [], []
        for index, (column, value) in enumerate(filters.items(), start=1):
            where.append(f"{column} = ${index}")
            args.append(value)

        query = f"SELECT {self._select_list(kind)} FROM {kind.collection}"
        if where:
            query += " WHERE " + " AND ".join(where)
        query += f" ORDER BY {ORDER_BY.get(kind, 'id ASC')}"

        rows = await self._run(f"list {kind.collection}", query, *args, use_transaction=False)
        return [self._decode(kind, row) for row in rows]

    async def get(self, kind: EntityKind, entity_id: int) -> Optional[Dict[str, Any]]:
        row = await self._run(
            f"load {kind.value} {entity_id}",
            f"SELECT {self._select_list(kind)} FROM {kind.collection} WHERE id = $1",
            entity_id,
            fetch="fetchrow",
            use_transaction=False
        )
        return self._decode(kind, row) if row else None

    async def create(self, kind: EntityKind, payload: Dict[str, Any]) -> Dict[str, Any]:
        columns, placeholders, values = self._assignments(kind, payload)
        if columns:
            query = f"""
                INSERT INTO {kind.collection} ({", ".join(columns)})
                VALUES ({", ".join(placeholders)})
                RETURNING {self._select_list(kind)}
            """
        else:
            query = f"INSERT INTO {kind.collection} DEFAULT VALUES RETURNING {self._select_list(kind)}"

        row = await self._run(f"create {kind.value}", query, *values, fetch="fetchrow")
        logger.info(f"Created {kind.value} {row['id']}")
        return self._decode(kind, row)

    async def update(self, kind: EntityKind, entity_id: int, payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        columns, placeholders, values = self._assignments(kind, payload, start=2)
        if not columns:
            return await self.get(kind, entity_id)

        sets = ", ".join(f"{c} = {p}" for c, p in zip(columns, placeholders))
        query = f"""
            UPDATE {kind.collection} SET {sets}
            WHERE id = $1
            RETURNING {self._select_list(kind)}
        """
        row = await self._run(f"update {kind.value} {entity_id}", query, entity_id, *values, fetch="fetchrow")
        if not row:
            return None
        logger.info(f"Updated {kind.value} {entity_id}: {', '.join(columns)}")
        return self._decode(kind, row)

    async def delete(self, kind: EntityKind, entity_id: int) -> bool:
        result = await self._run(
            f"delete {kind.value} {entity_id}",
            f"DELETE FROM {kind.collection} WHERE id = $1",
            entity_id,
            fetch="execute"
        )
        # Parse result like "DELETE 1"
        deleted = int(result.split()[1]) if result else 0
        if deleted:
            logger.info(f"Deleted {kind.value} {entity_id}")
        return deleted > 0

    async def find_user(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        row = await self._run(
            "check credentials",
            "SELECT id, name, username, role FROM users WHERE username = $1 AND password = $2",
            username,
            password,
            fetch="fetchrow",
            use_transaction=False
        )
        return self._decode(EntityKind.ORGANIZER, row) if row else None
