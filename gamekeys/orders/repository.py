import uuid
from datetime import timedelta
from typing import Dict, Iterable, List, Optional
from fastapi import HTTPException, status
from sqlalchemy import delete, func, select, update
from gamekeys.common.utils import now
from gamekeys.orders.constants import logger
from gamekeys.schema.full_schema import Game, GameKey, IdempotencyKey, Orders, OrderStatus

# ------------------------------------------------------------------------- key allocation

async def load_games_for_cart(session, game_pids: Iterable[str]) -> Dict[str, tuple]:
    """Active games keyed by canonical public id string; unknown ids are left out.

    Plain rows rather than ORM objects, so later rollbacks in the checkout cannot expire them.
    """
    parsed = set()
    for pid in set(game_pids):
        try:
            parsed.add(uuid.UUID(str(pid)))
        except ValueError:
            continue
    if not parsed:
        return {}
    stmt = select(Game.id, Game.public_id, Game.title, Game.price).where(Game.public_id.in_(list(parsed)), Game.is_active.is_(True))
    games = (await session.execute(stmt)).all()
    return {str(g.public_id): g for g in games}


async def find_unsold_key(session, game_id: int, exclude_ids: Iterable[int]):
    stmt = select(GameKey.id, GameKey.key_value).where(GameKey.game_id == game_id, GameKey.is_sold.is_(False))
    exclude_ids = list(exclude_ids)
    if exclude_ids:
        stmt = stmt.where(GameKey.id.not_in(exclude_ids))
    # skip rows another checkout is claiming right now, sqlite ignores the clause
    stmt = stmt.limit(1).with_for_update(skip_locked=True)
    res = await session.execute(stmt)
    return res.first()


async def claim_key(session, key_id: int, user_id: str) -> bool:
    """Compare-and-swap on is_sold. False means another session sold it first."""
    stmt = (
        update(GameKey)
        .where(GameKey.id == key_id, GameKey.is_sold.is_(False))
        .values(is_sold=True, sold_to=user_id, sold_at=now())
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1


async def insert_order(session, *, user_id: str, game_id: int, key_id: int, amount: int) -> Orders:
    ts = now()
    order = Orders(user_id=user_id, game_id=game_id, game_key_id=key_id, amount=amount,
                   status=OrderStatus.COMPLETED.value, created_at=ts, updated_at=ts)
    session.add(order)
    await session.flush()
    return order


async def delete_order(session, order_id: int):
    await session.execute(delete(Orders).where(Orders.id == order_id).execution_options(synchronize_session=False))


async def release_key(session, key_id: int, user_id: str) -> bool:
    # only undoes a sale made to this user
    stmt = (
        update(GameKey)
        .where(GameKey.id == key_id, GameKey.is_sold.is_(True), GameKey.sold_to == user_id)
        .values(is_sold=False, sold_to=None, sold_at=None)
        .execution_options(synchronize_session=False)
    )
    res = await session.execute(stmt)
    return res.rowcount == 1

# ------------------------------------------------------------------------- idempotency

async def drop_expired_idempotency(session, user_id: str, i_key: str):
    stmt = delete(IdempotencyKey).where(
        IdempotencyKey.created_by == user_id,
        IdempotencyKey.key == i_key,
        IdempotencyKey.expires_at < now(),
    )
    await session.execute(stmt)


async def record_idempotency(session, user_id: str, i_key: str, request_hash: str, ttl_hours: int):
    ts = now()
    record = IdempotencyKey(key=i_key, created_by=user_id, request_hash=request_hash,
                            created_at=ts, expires_at=ts + timedelta(hours=ttl_hours))
    session.add(record)
    await session.flush()
    return record.id


async def idempotency_by_key(session, user_id: str, i_key: str):
    stmt = select(IdempotencyKey.id, IdempotencyKey.request_hash, IdempotencyKey.response_code,
                  IdempotencyKey.response_body).where(IdempotencyKey.created_by == user_id, IdempotencyKey.key == i_key)
    return (await session.execute(stmt)).first()


async def complete_idempotency(session, ik_id: int, response_code: int, response_body: dict):
    stmt = update(IdempotencyKey).where(IdempotencyKey.id == ik_id).values(
        response_code=response_code, response_body=response_body)
    await session.execute(stmt)


async def delete_idempotency(session, ik_id: int):
    await session.execute(delete(IdempotencyKey).where(IdempotencyKey.id == ik_id))

# ------------------------------------------------------------------------- order reads

def _order_row(r) -> dict:
    return {
        "id": str(r.public_id),
        "user_id": r.user_id,
        "game_id": str(r.game_public_id) if r.game_public_id else None,
        "game_title": r.title,
        "image_url": r.image_url,
        "key": r.key_value,
        "amount": r.amount,
        "status": r.status,
        "created_at": r.created_at,
    }


def _orders_select():
    return (
        select(Orders.public_id, Orders.user_id, Orders.amount, Orders.status, Orders.created_at,
               Game.public_id.label("game_public_id"), Game.title, Game.image_url, GameKey.key_value)
        .outerjoin(Game, Game.id == Orders.game_id)
        .outerjoin(GameKey, GameKey.id == Orders.game_key_id)
    )


async def fetch_user_orders(session, user_id: str, limit: int, offset: int) -> List[dict]:
    stmt = (
        _orders_select()
        .where(Orders.user_id == user_id)
        .order_by(Orders.created_at.desc(), Orders.id.desc())
        .limit(limit).offset(offset)
    )
    return [_order_row(r) for r in (await session.execute(stmt)).all()]


async def fetch_orders_admin(session, *, order_status: Optional[str], user_id: Optional[str], limit: int, offset: int):
    conds = []
    if order_status:
        conds.append(Orders.status == order_status)
    if user_id:
        conds.append(Orders.user_id == user_id)
    stmt = _orders_select().where(*conds).order_by(Orders.created_at.desc(), Orders.id.desc()).limit(limit).offset(offset)
    rows = [_order_row(r) for r in (await session.execute(stmt)).all()]
    total = (await session.execute(select(func.count(Orders.id)).where(*conds))).scalar_one()
    return rows, total


async def find_order_by_pid(session, order_pid: uuid.UUID) -> Orders:
    order = (await session.execute(select(Orders).where(Orders.public_id == order_pid))).scalar_one_or_none()
    if order is None:
        logger.warning("order.not_found", extra={"order_id": str(order_pid)})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


async def set_order_status(session, order_id: int, new_status: str):
    stmt = update(Orders).where(Orders.id == order_id).values(status=new_status, updated_at=now())
    await session.execute(stmt)


async def fetch_sales_stats(session, top_games: int = 10) -> dict:
    completed = Orders.status == OrderStatus.COMPLETED.value

    revenue = (await session.execute(select(func.coalesce(func.sum(Orders.amount), 0)).where(completed))).scalar_one()
    order_count = (await session.execute(select(func.count(Orders.id)))).scalar_one()

    status_rows = (await session.execute(select(Orders.status, func.count(Orders.id)).group_by(Orders.status))).all()
    by_status = {s: 0 for s in (o.value for o in OrderStatus)}
    by_status.update({s: c for s, c in status_rows})

    sales_stmt = (
        select(Game.public_id, Game.title, func.count(Orders.id).label("units"), func.sum(Orders.amount).label("revenue"))
        .join(Game, Game.id == Orders.game_id)
        .where(completed)
        .group_by(Game.id, Game.public_id, Game.title)
        .order_by(func.count(Orders.id).desc(), Game.id.asc())
        .limit(top_games)
    )
    sales = [
        {"game_id": str(r.public_id), "title": r.title, "units": r.units, "revenue": int(r.revenue or 0)}
        for r in (await session.execute(sales_stmt)).all()
    ]

    active_games = (await session.execute(select(func.count(Game.id)).where(Game.is_active.is_(True)))).scalar_one()
    available_keys = (await session.execute(select(func.count(GameKey.id)).where(GameKey.is_sold.is_(False)))).scalar_one()

    return {
        "revenue": int(revenue or 0),
        "order_count": order_count,
        "orders_by_status": by_status,
        "sales_by_game": sales,
        "active_games": active_games,
        "available_keys": available_keys,
    }
