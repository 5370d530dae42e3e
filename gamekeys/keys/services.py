from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from gamekeys.catalog.repository import find_game_by_pid
from gamekeys.catalog.utils import validate_game_pid
from gamekeys.keys.constants import MAX_KEYS_PER_BATCH, logger
from gamekeys.keys.repository import existing_key_values, insert_keys
from gamekeys.keys.utils import parse_key_batch


async def add_keys_batch(session, game_public_id: str, raw_keys: str, actor_id: str) -> dict:
    """All-or-nothing: one duplicate rejects the whole batch so a paste can be fixed and resent."""
    game = await find_game_by_pid(session, validate_game_pid(game_public_id))

    keys, batch_dupes = parse_key_batch(raw_keys)
    if not keys:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No keys provided")
    if len(keys) > MAX_KEYS_PER_BATCH:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                            detail=f"At most {MAX_KEYS_PER_BATCH} keys per batch")
    if batch_dupes:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail={"message": "Duplicate keys in batch", "duplicates": batch_dupes})

    existing = await existing_key_values(session, keys)
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail={"message": "Keys already exist", "duplicates": existing})

    try:
        added = await insert_keys(session, game.id, keys)
    except IntegrityError:
        # lost a race with another batch carrying the same key
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Keys already exist")

    logger.info("keys.batch.added", extra={"game_id": str(game.public_id), "count": added, "actor_user_id": actor_id})
    return {"game_id": str(game.public_id), "added": added}
