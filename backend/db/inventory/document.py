"""
Per-owner inventory documents.

One row per owner. The row key is the SHA-256 digest of the owner id so
arbitrary ids (very long, control characters, quotes) map to a fixed-size
indexed key; the raw id lives inside the JSON document:

    {"ownerId": ..., "inventory": {key: entry}, "lastUpdated": ...}
"""

import hashlib

from sqlalchemy import JSON, Column, DateTime, String

from core.config import settings

from ..database import Base


def owner_key(owner_id: str) -> str:
    return hashlib.sha256(owner_id.encode("utf-8", "surrogatepass")).hexdigest()


class InventoryDocument(Base):
    __tablename__ = settings.inventory_table

    owner_key = Column(String(64), primary_key=True)
    document = Column(JSON, nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False, index=True)

    @property
    def owner_id(self) -> str:
        return (self.document or {}).get("ownerId", "")

    @property
    def inventory(self) -> dict:
        inv = (self.document or {}).get("inventory")
        return inv if isinstance(inv, dict) else {}
