"""
Inventory storage with transparent fallback.

The primary store is a SQL database holding one JSON document per owner.
When it is not configured, unreachable, or fails mid-request, the storage
degrades to an in-process store for the rest of the process lifetime (or
until an explicit connect() succeeds).

States:
    DISCONNECTED  never connected, or explicitly disconnected; the next
                  load/save makes one lazy connection attempt
    CONNECTED     reads and writes go to the primary store
    DEGRADED      reads and writes go to the in-process store

There is no record-level locking. Two concurrent load -> mutate -> save
cycles for the same owner race and the last save wins.
"""

import asyncio
import copy
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from fastapi import Request
from loguru import logger
from pydantic import ValidationError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from core.config import Settings, mask_database_url, settings as default_settings
from core.errors import StoreConnectionError, StoreNotConfigured
from db.database import build_engine, build_session_maker, create_db_and_tables
from db.inventory import InventoryDocument, owner_key
from schemas.inventory import ItemEntry, OwnerSummary, Record, record_to_document

# Failures of the primary store that trigger the fallback
PRIMARY_FAILURES = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class StorageState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    DEGRADED = "degraded"


class Backend(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


def parse_record(raw: Any, owner_id: str = "") -> Record:
    """Turn a stored or caller-supplied mapping into a Record.

    Non-mapping values become an empty Record. Entries keep any extra
    fields; only entries that are not item entries at all (not a mapping,
    or lacking a usable name/quantity/location) are dropped, so one bad
    entry cannot poison the rest.
    """
    if not isinstance(raw, dict):
        if raw is not None:
            logger.warning(f"Ignoring non-object inventory for owner {owner_id!r}: {type(raw).__name__}")
        return {}

    record: Record = {}
    for key, value in raw.items():
        if isinstance(value, ItemEntry):
            record[str(key)] = value
            continue
        try:
            record[str(key)] = ItemEntry.model_validate(value)
        except ValidationError as exc:
            logger.warning(f"Dropping malformed entry {key!r} for owner {owner_id!r}: {exc.error_count()} error(s)")
    return record


class MemoryStore:
    """Process-local secondary store. Cleared on restart."""

    def __init__(self):
        self._docs: Dict[str, Dict[str, Any]] = {}

    def get(self, owner_id: str) -> Optional[Dict[str, Any]]:
        doc = self._docs.get(owner_id)
        return copy.deepcopy(doc["inventory"]) if doc else None

    def put(self, owner_id: str, inventory: Dict[str, Any], stamp: datetime) -> None:
        self._docs[owner_id] = {"inventory": copy.deepcopy(inventory), "lastUpdated": stamp}

    def delete(self, owner_id: str) -> bool:
        return self._docs.pop(owner_id, None) is not None

    def owners(self) -> List[OwnerSummary]:
        return [
            OwnerSummary(owner_id=oid, last_updated=doc["lastUpdated"])
            for oid, doc in self._docs.items()
        ]


class InventoryStorage:
    def __init__(
        self,
        database_url: str = "",
        *,
        echo: bool = False,
        connect_timeout: float = 3.0,
        memory: Optional[MemoryStore] = None,
    ):
        self.database_url = (database_url or "").strip()
        self.echo = echo
        self.connect_timeout = connect_timeout
        self.memory = memory or MemoryStore()

        self._state = StorageState.DISCONNECTED
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None
        self._connect_lock = asyncio.Lock()
        self._warned_unconfigured = False
        self.last_error: Optional[str] = None

    @classmethod
    def from_settings(cls, cfg: Optional[Settings] = None) -> "InventoryStorage":
        cfg = cfg or default_settings
        return cls(
            cfg.database_url,
            echo=cfg.database_echo,
            connect_timeout=cfg.database_connect_timeout,
        )

    @property
    def state(self) -> StorageState:
        return self._state

    def current_backend(self) -> Backend:
        if self._state == StorageState.CONNECTED:
            return Backend.PRIMARY
        return Backend.SECONDARY

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Connect to the primary store.

        Raises StoreNotConfigured / StoreConnectionError to the caller and
        leaves the storage DEGRADED. No-op when already connected.
        """
        async with self._connect_lock:
            if self._state == StorageState.CONNECTED:
                return

            if not self.database_url:
                self._state = StorageState.DEGRADED
                self.last_error = "DATABASE_URL is not set"
                if not self._warned_unconfigured:
                    logger.warning("DATABASE_URL not configured - using in-memory storage")
                    self._warned_unconfigured = True
                raise StoreNotConfigured(self.last_error)

            logger.info(f"Connecting to {mask_database_url(self.database_url)}")
            engine: Optional[AsyncEngine] = None
            try:
                engine = build_engine(self.database_url, echo=self.echo)
                await asyncio.wait_for(create_db_and_tables(engine), timeout=self.connect_timeout)
            except Exception as exc:
                if engine is not None:
                    await engine.dispose()
                self._state = StorageState.DEGRADED
                self.last_error = str(exc) or type(exc).__name__
                logger.warning(f"Primary store connection failed - using in-memory storage: {self.last_error}")
                raise StoreConnectionError(f"Primary store connection failed: {self.last_error}") from exc

            self._engine = engine
            self._session_maker = build_session_maker(engine)
            self._state = StorageState.CONNECTED
            self.last_error = None
            logger.info("Connected to primary store")

    async def start(self) -> StorageState:
        """connect() for the composition root: failures are logged, not raised."""
        try:
            await self.connect()
        except (StoreNotConfigured, StoreConnectionError):
            pass
        return self._state

    async def disconnect(self) -> None:
        async with self._connect_lock:
            engine, self._engine, self._session_maker = self._engine, None, None
            if engine is not None:
                await engine.dispose()
                logger.info("Disconnected from primary store")
            self._state = StorageState.DISCONNECTED

    async def _ready(self) -> bool:
        """True when the primary store should be used for this call."""
        if self._state == StorageState.DISCONNECTED:
            await self.start()
        return self._state == StorageState.CONNECTED

    def _degrade(self, action: str, exc: BaseException) -> None:
        self._state = StorageState.DEGRADED
        self.last_error = str(exc) or type(exc).__name__
        logger.warning(f"Primary store failed during {action} - falling back to in-memory storage: {self.last_error}")

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    async def load(self, owner_id: str) -> Record:
        if await self._ready():
            try:
                async with self._session_maker() as session:
                    doc = await session.get(InventoryDocument, owner_key(owner_id))
                return parse_record(doc.inventory, owner_id) if doc else {}
            except PRIMARY_FAILURES as exc:
                self._degrade("load", exc)

        return parse_record(self.memory.get(owner_id), owner_id)

    async def save(self, owner_id: str, record: Any) -> None:
        """Replace the owner's stored Record. Never raises on store failure."""
        inventory = record_to_document(parse_record(record, owner_id))
        stamp = datetime.now(timezone.utc)

        if await self._ready():
            try:
                await self._upsert(owner_id, inventory, stamp)
                return
            except PRIMARY_FAILURES as exc:
                self._degrade("save", exc)

        self.memory.put(owner_id, inventory, stamp)
        logger.debug(f"Saved to memory storage for owner {owner_id!r}")

    async def _upsert(self, owner_id: str, inventory: Dict[str, Any], stamp: datetime) -> None:
        values = {
            "owner_key": owner_key(owner_id),
            "document": {
                "ownerId": owner_id,
                "inventory": inventory,
                "lastUpdated": stamp.isoformat(),
            },
            "last_updated": stamp,
        }
        dialect = self._engine.dialect.name

        async with self._session_maker() as session:
            if dialect in ("postgresql", "sqlite"):
                if dialect == "postgresql":
                    from sqlalchemy.dialects.postgresql import insert
                else:
                    from sqlalchemy.dialects.sqlite import insert

                stmt = insert(InventoryDocument.__table__).values(**values)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[InventoryDocument.__table__.c.owner_key],
                    set_={
                        "document": stmt.excluded.document,
                        "last_updated": stmt.excluded.last_updated,
                    },
                )
                await session.execute(stmt)
            else:
                await session.merge(InventoryDocument(**values))
            await session.commit()

    # ------------------------------------------------------------------
    # Administrative operations
    # ------------------------------------------------------------------

    async def list_owners(self) -> List[OwnerSummary]:
        if await self._ready():
            try:
                async with self._session_maker() as session:
                    res = await session.execute(select(InventoryDocument))
                    docs = res.scalars().all()
                return [OwnerSummary(owner_id=d.owner_id, last_updated=d.last_updated) for d in docs]
            except PRIMARY_FAILURES as exc:
                self._degrade("list_owners", exc)

        return self.memory.owners()

    async def delete_owner(self, owner_id: str) -> bool:
        removed_from_memory = self.memory.delete(owner_id)

        if await self._ready():
            try:
                async with self._session_maker() as session:
                    res = await session.execute(
                        delete(InventoryDocument).where(InventoryDocument.owner_key == owner_key(owner_id))
                    )
                    await session.commit()
                return (res.rowcount or 0) > 0 or removed_from_memory
            except PRIMARY_FAILURES as exc:
                self._degrade("delete_owner", exc)

        return removed_from_memory


def get_storage(request: Request) -> InventoryStorage:
    return request.app.state.storage
