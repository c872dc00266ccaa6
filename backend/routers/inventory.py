from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger

from core.errors import ItemNotFound, ValidationFailure
from core.identity import owner_from_query
from core.inventory import apply_add, apply_remove, make_key, resolve_location
from db.storage import InventoryStorage, get_storage
from schemas.inventory import InventoryMutationRequest, record_to_document

router = APIRouter()


def _owner(
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    user_id: Optional[str] = Query(None, alias="userId"),
) -> str:
    return owner_from_query(owner_id, user_id)


def _require_item_and_quantity(body: InventoryMutationRequest) -> str:
    if not body.item or "quantity" not in body.model_fields_set:
        raise ValidationFailure("Item name and quantity are required")
    return body.item


@router.get("", response_model=Dict)
async def get_inventory(
    owner_id: str = Depends(_owner),
    storage: InventoryStorage = Depends(get_storage),
):
    """Whole inventory for one owner, keyed by item_location."""
    record = await storage.load(owner_id)
    return record_to_document(record)


@router.post("/add", response_model=Dict)
async def add_inventory_item(
    body: InventoryMutationRequest,
    owner_id: str = Depends(_owner),
    storage: InventoryStorage = Depends(get_storage),
):
    item = _require_item_and_quantity(body)

    record = await storage.load(owner_id)
    record, outcome = apply_add(
        record,
        item,
        body.quantity,
        body.location,
        display_name=body.display_name,
        metadata=body.metadata,
    )
    await storage.save(owner_id, record)
    logger.info(f"Added {outcome.quantity} {item} to {outcome.location} for {owner_id!r}")

    return {"message": outcome.message, "item": outcome.entry.to_document()}


@router.post("/remove", response_model=Dict)
async def remove_inventory_item(
    body: InventoryMutationRequest,
    owner_id: str = Depends(_owner),
    storage: InventoryStorage = Depends(get_storage),
):
    item = _require_item_and_quantity(body)

    record = await storage.load(owner_id)
    record, outcome = apply_remove(record, item, body.quantity, body.location)
    if outcome.status == "empty":
        raise ItemNotFound(outcome.message)

    await storage.save(owner_id, record)
    logger.info(f"Removed {outcome.quantity} {item} from {outcome.location} for {owner_id!r} ({outcome.status})")

    out = {"message": outcome.message}
    if outcome.entry is not None:
        out["item"] = outcome.entry.to_document()
    return out


@router.get("/{item}", response_model=Dict)
async def get_inventory_item(
    item: str,
    location: Optional[str] = None,
    owner_id: str = Depends(_owner),
    storage: InventoryStorage = Depends(get_storage),
):
    """Single entry, or a zero-quantity placeholder when the item is absent."""
    record = await storage.load(owner_id)
    entry = record.get(make_key(item, location))
    if entry is not None:
        return entry.to_document()

    location = resolve_location(location)
    return {
        "name": item,
        "quantity": 0,
        "location": location,
        "message": f"No {item}(s) found in {location}",
    }
