import uuid
from typing import List, Optional
from fastapi import HTTPException, status
from sqlalchemy import delete, func, insert, select
from uuid6 import uuid7
from gamekeys.common.utils import LIKE_ESCAPE, contains_pattern, now
from gamekeys.keys.constants import logger
from gamekeys.schema.full_schema import Game, GameKey


async def existing_key_values(session, values: List[str]) -> List[str]:
    if not values:
        return []
    found = []
    # chunked so huge batches stay under the driver's bound parameter limit
    for i in range(0, len(values), 500):
        chunk = values[i:i + 500]
        res = await session.execute(select(GameKey.key_value).where(GameKey.key_value.in_(chunk)))
        found.extend(res.scalars().all())
    return found


async def insert_keys(session, game_id: int, values: List[str]) -> int:
    if not values:
        return 0
    ts = now()
    rows = [
        {"public_id": uuid7(), "game_id": game_id, "key_value": v, "is_sold": False, "created_at": ts}
        for v in values
    ]
    await session.execute(insert(GameKey), rows)
    return len(rows)


async def fetch_keys(session, *, game_id: Optional[int], key_status: str, q: Optional[str], limit: int, offset: int):
    conds = []
    if game_id is not None:
        conds.append(GameKey.game_id == game_id)
    if key_status == "available":
        conds.append(GameKey.is_sold.is_(False))
    elif key_status == "sold":
        conds.append(GameKey.is_sold.is_(True))
    if q and q.strip():
        conds.append(func.lower(GameKey.key_value).like(contains_pattern(q), escape=LIKE_ESCAPE))

    stmt = (
        select(GameKey, Game.title)
        .join(Game, Game.id == GameKey.game_id)
        .where(*conds)
        .order_by(GameKey.created_at.desc(), GameKey.id.desc())
        .limit(limit)
        .offset(offset)
    )
    rows = (await session.execute(stmt)).all()
    total = (await session.execute(select(func.count(GameKey.id)).where(*conds))).scalar_one()
    return rows, total


async def delete_unsold_key(session, key_pid: uuid.UUID):
    # conditional on is_sold so a key sold after the admin loaded the page is never removed
    stmt = delete(GameKey).where(GameKey.public_id == key_pid, GameKey.is_sold.is_(False)).returning(GameKey.id)
    res = await session.execute(stmt)
    if res.scalar_one_or_none() is not None:
        return

    exists = (await session.execute(select(GameKey.is_sold).where(GameKey.public_id == key_pid))).scalar_one_or_none()
    if exists is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Key not found")
    logger.warning("key.delete.sold", extra={"key_id": str(key_pid)})
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Sold keys cannot be deleted")
