from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from core.identity import owner_from_query
from core.intents import handle_envelope
from db.storage import InventoryStorage, get_storage

router = APIRouter()


@router.post("", response_model=Dict)
async def handle_intent(
    request: Request,
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    user_id: Optional[str] = Query(None, alias="userId"),
    storage: InventoryStorage = Depends(get_storage),
):
    """
    Voice-assistant endpoint.

    The body is read raw rather than as a typed model so that malformed
    envelopes still get a spoken reply (HTTP 200) instead of a 4xx.
    """
    body: Any
    try:
        body = await request.json()
    except ValueError:
        body = None

    reply = await handle_envelope(body, storage, fallback_owner=owner_from_query(owner_id, user_id))
    return JSONResponse(content=reply.to_wire())
