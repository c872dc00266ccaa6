from typing import Dict, List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from loguru import logger

from core.errors import OwnerNotFound, StorageError
from db.storage import InventoryStorage, StorageState, get_storage

router = APIRouter()
health_router = APIRouter()


@router.get("/owners", response_model=List[Dict])
async def list_owners(storage: InventoryStorage = Depends(get_storage)):
    """Every owner with stored inventory, unordered."""
    owners = await storage.list_owners()
    return [o.model_dump(mode="json", by_alias=True) for o in owners]


@router.delete("/owners/{owner_id:path}", response_model=Dict)
async def delete_owner(owner_id: str, storage: InventoryStorage = Depends(get_storage)):
    deleted = await storage.delete_owner(owner_id)
    if not deleted:
        raise OwnerNotFound(f"No inventory found for owner {owner_id}")
    logger.info(f"Deleted inventory for owner {owner_id!r}")
    return {"deleted": True}


@health_router.get("/health", response_model=Dict)
async def health(storage: InventoryStorage = Depends(get_storage)):
    """
    Storage health. When the primary store is not connected this makes an
    explicit connect() attempt and reports its error.
    """
    error = None
    if storage.state != StorageState.CONNECTED:
        try:
            await storage.connect()
        except StorageError as exc:
            error = exc.message

    body = {
        "status": "ok" if storage.state == StorageState.CONNECTED else "degraded",
        "state": storage.state.value,
        "backend": storage.current_backend().value,
    }
    if error:
        body["error"] = error
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body
