"""
Pure inventory mutations.

Every function here takes a Record and returns a new one; nothing is
mutated in place and nothing touches storage. Callers load, apply, save.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple

from core.config import settings
from schemas.inventory import ItemEntry, Record

OutcomeStatus = Literal["added", "removed", "exhausted", "empty"]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def resolve_location(location: Optional[str]) -> str:
    location = (location or "").strip()
    return location or settings.default_location


def make_key(name: str, location: Optional[str] = None) -> str:
    return f"{(name or '').strip().lower()}_{resolve_location(location).lower()}"


def parse_quantity(raw: Any) -> int:
    """Lenient quantity parsing: anything without a leading integer counts as 1."""
    if isinstance(raw, bool) or raw is None:
        return 1
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if raw != raw or raw in (float("inf"), float("-inf")):
            return 1
        return int(raw)
    if isinstance(raw, str):
        m = _LEADING_INT.match(raw)
        if m:
            return int(m.group(1))
    return 1


@dataclass(frozen=True)
class Outcome:
    status: OutcomeStatus
    name: str
    location: str
    quantity: int
    remaining: int
    entry: Optional[ItemEntry] = None

    @property
    def message(self) -> str:
        if self.status == "added":
            return (
                f"Added {self.quantity} {self.name}(s) to {self.location}. "
                f"Now {self.remaining} in stock."
            )
        if self.status == "removed":
            return (
                f"Removed {self.quantity} {self.name}(s) from {self.location}. "
                f"{self.remaining} remaining."
            )
        if self.status == "exhausted":
            return f"Removed all {self.name}(s) from {self.location}"
        return f"No {self.name}(s) found in {self.location}"


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


def apply_add(
    record: Record,
    name: str,
    quantity: Any,
    location: Optional[str] = None,
    *,
    display_name: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> Tuple[Record, Outcome]:
    location = resolve_location(location)
    amount = parse_quantity(quantity)
    key = make_key(name, location)
    stamp = _now(now)

    existing = record.get(key)
    if existing is not None:
        update: Dict[str, Any] = {"quantity": existing.quantity + amount, "last_updated": stamp}
        if display_name and not existing.display_name:
            update["display_name"] = display_name
        if metadata is not None:
            update["metadata"] = metadata
        entry = existing.model_copy(update=update)
    else:
        entry = ItemEntry(
            name=name,
            quantity=amount,
            location=location,
            last_updated=stamp,
            display_name=display_name,
            metadata=metadata,
        )

    updated = dict(record)
    updated[key] = entry
    return updated, Outcome("added", name, location, amount, entry.quantity, entry)


def apply_remove(
    record: Record,
    name: str,
    quantity: Any,
    location: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> Tuple[Record, Outcome]:
    location = resolve_location(location)
    amount = parse_quantity(quantity)
    key = make_key(name, location)

    existing = record.get(key)
    if existing is None:
        return record, Outcome("empty", name, location, amount, 0)

    left = existing.quantity - amount
    updated = dict(record)
    if left <= 0:
        del updated[key]
        return updated, Outcome("exhausted", name, location, amount, 0)

    entry = existing.model_copy(update={"quantity": left, "last_updated": _now(now)})
    updated[key] = entry
    return updated, Outcome("removed", name, location, amount, left, entry)


def apply_query(record: Record, name: str, location: Optional[str] = None) -> int:
    entry = record.get(make_key(name, location))
    if entry is None:
        return 0
    return max(entry.quantity, 0)
