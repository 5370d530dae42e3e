import uuid
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from gamekeys.auth.constants import KEYS_READ, KEYS_WRITE
from gamekeys.auth.dependencies import CurrentUser, require_capability
from gamekeys.catalog.repository import find_game_by_pid
from gamekeys.catalog.utils import validate_game_pid
from gamekeys.common.utils import success_response
from gamekeys.db.dependencies import get_session
from gamekeys.keys.constants import KEY_STATUSES, logger
from gamekeys.keys.models import KeyBatchIn
from gamekeys.keys.repository import delete_unsold_key, fetch_keys
from gamekeys.keys.services import add_keys_batch
from gamekeys.keys.utils import serialize_key

keys_admin_router=APIRouter()


@keys_admin_router.post("")
async def admin_add_keys(payload: KeyBatchIn, user: CurrentUser = require_capability(KEYS_WRITE),
                         session: AsyncSession = Depends(get_session)):
    res = await add_keys_batch(session, payload.game_id, payload.keys, user.id)
    await session.commit()
    return success_response(res, status_code=status.HTTP_201_CREATED)


@keys_admin_router.get("")
async def admin_list_keys(
    game_id: Optional[str] = Query(None),
    key_status: str = Query("all", alias="status"),
    q: Optional[str] = Query(None, max_length=255),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: CurrentUser = require_capability(KEYS_READ),
    session: AsyncSession = Depends(get_session)):

    if key_status not in KEY_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"status must be one of {', '.join(KEY_STATUSES)}")

    game_pk = None
    if game_id:
        game_pk = (await find_game_by_pid(session, validate_game_pid(game_id))).id

    rows, total = await fetch_keys(session, game_id=game_pk, key_status=key_status, q=q, limit=limit, offset=offset)
    return success_response({"items": [serialize_key(k, title) for k, title in rows], "total": total})


@keys_admin_router.delete("/{key_public_id}")
async def admin_delete_key(key_public_id: str, user: CurrentUser = require_capability(KEYS_WRITE),
                           session: AsyncSession = Depends(get_session)):
    try:
        key_pid = uuid.UUID(key_public_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Key not found")

    await delete_unsold_key(session, key_pid)
    await session.commit()
    logger.info("key.delete.success", extra={"key_id": key_public_id, "actor_user_id": user.id})
    return success_response({"message": "key deleted"})
