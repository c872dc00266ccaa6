from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class ItemEntry(BaseModel):
    """
    One (item, location) slot in an owner's inventory.

    Fields beyond the known ones are kept as-is and written back out, so
    entries from older clients or imported files survive a save/load.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str
    quantity: int
    location: str
    last_updated: Optional[datetime] = None
    display_name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("last_updated")
    @classmethod
    def _aware(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Some backends hand back naive datetimes; everything here is UTC
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def to_document(self) -> Dict[str, Any]:
        doc = self.model_dump(mode="json", by_alias=True)
        # Unset optional fields are omitted; extra fields go out untouched
        for key in ("lastUpdated", "displayName", "metadata"):
            if doc.get(key) is None:
                doc.pop(key, None)
        return doc


# Composite key ("carrots_fridge") -> entry
Record = Dict[str, ItemEntry]


def record_to_document(record: Record) -> Dict[str, Dict[str, Any]]:
    return {key: entry.to_document() for key, entry in record.items()}


class InventoryMutationRequest(BaseModel):
    """
    Body for /inventory/add and /inventory/remove.

    `quantity` is deliberately untyped: non-numeric values are accepted and
    treated as 1 by the mutator. Presence of both fields is checked by the
    router so the caller gets the same 400 message either way.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    item: Optional[str] = None
    quantity: Any = None
    location: Optional[str] = None
    display_name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("item", "location", "display_name")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class OwnerSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    owner_id: str
    last_updated: Optional[datetime] = None
