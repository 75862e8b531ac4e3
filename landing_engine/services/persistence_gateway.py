"""
Persistence gateway for generated landing pages.

Two backends share one interface: Supabase (PostgREST over HTTP) for real
deployments and an in-process store for development and tests. Both take
and return snake_case record fields; ContentModel handles the camelCase side.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from landing_engine.config import Settings, settings
from landing_engine.errors import ConfigurationError, PersistenceError, RecordNotFoundError
from landing_engine.logging_config import logger
from landing_engine.models import RECORD_FIELDS, PersistedRecord

Fields = Dict[str, Any]


def _domain_fields(fields: Fields) -> Fields:
    return {key: fields[key] for key in RECORD_FIELDS if key in fields}


def _to_record(row: Fields) -> PersistedRecord:
    """Validate a row returned by the remote store"""
    try:
        return PersistedRecord.model_validate(row)
    except ValidationError as e:
        record_id = row.get("id") if isinstance(row, dict) else None
        logger.error("Malformed landing page row", record_id=record_id, error=str(e))
        raise PersistenceError(f"Malformed landing page row {record_id}") from e


class PersistenceGateway(ABC):
    """Opaque CRUD collaborator keyed by record id"""

    backend: str = "unknown"

    @abstractmethod
    async def create(self, fields: Fields) -> PersistedRecord:
        """Insert a record; the store assigns id, created_at and updated_at"""

    @abstractmethod
    async def update(self, record_id: str, fields: Fields) -> PersistedRecord:
        """Overwrite domain fields and refresh updated_at"""

    @abstractmethod
    async def list(self) -> List[PersistedRecord]:
        """All records, newest first"""

    @abstractmethod
    async def get(self, record_id: str) -> Optional[PersistedRecord]:
        """One record or None"""

    @abstractmethod
    async def delete(self, record_id: str) -> None:
        """Remove a record; RecordNotFoundError when the id is unknown"""


class InMemoryPersistenceGateway(PersistenceGateway):
    """Process-local store"""

    backend = "memory"

    def __init__(self):
        self._rows: Dict[str, Fields] = {}
        self._order: Dict[str, int] = {}
        self._sequence = 0

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    async def create(self, fields: Fields) -> PersistedRecord:
        now = self._now()
        record_id = str(uuid.uuid4())
        row = {**_domain_fields(fields), "id": record_id, "created_at": now, "updated_at": now}
        record = PersistedRecord.model_validate(row)

        self._rows[record_id] = record.model_dump()
        self._sequence += 1
        self._order[record_id] = self._sequence
        logger.info("Landing page created", record_id=record_id, backend=self.backend)
        return record

    async def update(self, record_id: str, fields: Fields) -> PersistedRecord:
        row = self._rows.get(record_id)
        if row is None:
            raise RecordNotFoundError(record_id)

        # updated_at never goes backwards, even within one clock tick
        updated_at = max(self._now(), row["updated_at"] + timedelta(microseconds=1))
        candidate = {**row, **_domain_fields(fields), "updated_at": updated_at}
        record = PersistedRecord.model_validate(candidate)

        self._rows[record_id] = record.model_dump()
        logger.info("Landing page updated", record_id=record_id, backend=self.backend)
        return record

    async def list(self) -> List[PersistedRecord]:
        ids = sorted(
            self._rows,
            key=lambda rid: (self._rows[rid]["created_at"], self._order[rid]),
            reverse=True
        )
        return [PersistedRecord.model_validate(self._rows[rid]) for rid in ids]

    async def get(self, record_id: str) -> Optional[PersistedRecord]:
        row = self._rows.get(record_id)
        return PersistedRecord.model_validate(row) if row is not None else None

    async def delete(self, record_id: str) -> None:
        if self._rows.pop(record_id, None) is None:
            raise RecordNotFoundError(record_id)
        self._order.pop(record_id, None)
        logger.info("Landing page deleted", record_id=record_id, backend=self.backend)


class SupabasePersistenceGateway(PersistenceGateway):
    """Supabase table reached through its PostgREST endpoint"""

    backend = "supabase"

    def __init__(
        self,
        url: str,
        api_key: str,
        table: str = "landing_pages",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout = timeout
        self.transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{self.table}"

    def _headers(self) -> Dict[str, str]:
        if not self.url or not self.api_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_ANON_KEY not configured")
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation"
        }

    async def _request(
        self,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json: Optional[Fields] = None
    ) -> List[Fields]:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    self.endpoint,
                    params=params,
                    json=json,
                    headers=headers
                )
        except httpx.HTTPError as e:
            logger.error("Supabase unreachable", method=method, error=str(e))
            raise PersistenceError(f"Supabase unreachable: {e}") from e

        if response.status_code >= 400:
            logger.error(
                "Supabase error",
                method=method,
                status_code=response.status_code,
                body=response.text[:500]
            )
            raise PersistenceError(
                f"Supabase error: {response.status_code}",
                status_code=response.status_code
            )

        if not response.content:
            return []
        try:
            rows = response.json()
        except ValueError as e:
            raise PersistenceError(f"Supabase returned an unexpected body: {e}") from e
        return rows if isinstance(rows, list) else [rows]

    async def create(self, fields: Fields) -> PersistedRecord:
        rows = await self._request("POST", json=_domain_fields(fields))
        if not rows:
            raise PersistenceError("Supabase returned no row for insert")
        record = _to_record(rows[0])
        logger.info("Landing page created", record_id=record.id, backend=self.backend)
        return record

    async def update(self, record_id: str, fields: Fields) -> PersistedRecord:
        body = {
            **_domain_fields(fields),
            "updated_at": datetime.now(timezone.utc).isoformat()
        }
        rows = await self._request("PATCH", params={"id": f"eq.{record_id}"}, json=body)
        if not rows:
            raise RecordNotFoundError(record_id)
        record = _to_record(rows[0])
        logger.info("Landing page updated", record_id=record.id, backend=self.backend)
        return record

    async def list(self) -> List[PersistedRecord]:
        rows = await self._request("GET", params={"select": "*", "order": "created_at.desc"})
        return [_to_record(row) for row in rows]

    async def get(self, record_id: str) -> Optional[PersistedRecord]:
        rows = await self._request("GET", params={"select": "*", "id": f"eq.{record_id}"})
        return _to_record(rows[0]) if rows else None

    async def delete(self, record_id: str) -> None:
        rows = await self._request("DELETE", params={"id": f"eq.{record_id}"})
        if not rows:
            raise RecordNotFoundError(record_id)
        logger.info("Landing page deleted", record_id=record_id, backend=self.backend)


def get_persistence_gateway(config: Optional[Settings] = None) -> PersistenceGateway:
    """Build the backend selected by PERSISTENCE_BACKEND"""
    config = config or settings
    backend = config.PERSISTENCE_BACKEND.lower()

    if backend == "memory":
        return InMemoryPersistenceGateway()
    if backend == "supabase":
        return SupabasePersistenceGateway(
            url=config.SUPABASE_URL,
            api_key=config.SUPABASE_ANON_KEY,
            table=config.SUPABASE_TABLE,
            timeout=config.PERSISTENCE_TIMEOUT,
        )

    raise ConfigurationError(f"Unknown PERSISTENCE_BACKEND '{config.PERSISTENCE_BACKEND}'")
