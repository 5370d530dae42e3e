import uuid
from typing import List, Optional
from fastapi import HTTPException, status
from sqlalchemy import asc, desc, func, select, update
from gamekeys.catalog.constants import logger
from gamekeys.catalog.utils import matches_platforms
from gamekeys.common.retries import retry_with_db_circuit
from gamekeys.common.utils import LIKE_ESCAPE, contains_pattern, now
from gamekeys.schema.full_schema import Game, GameKey, Orders


def _sort_clauses(sort: str):
    # id breaks ties so repeated reads page the same way
    if sort == "price-low":
        return [asc(Game.price), asc(Game.id)]
    if sort == "price-high":
        return [desc(Game.price), asc(Game.id)]
    if sort == "name":
        return [asc(func.lower(Game.title)), asc(Game.id)]
    if sort == "rating":
        return [desc(func.coalesce(Game.rating, -1.0)), asc(Game.id)]
    return [desc(Game.created_at), desc(Game.id)]


def _title_search(q: str, lang: str):
    pattern = contains_pattern(q)
    if lang in ("ge", "ru"):
        localized_title = getattr(Game, f"title_{lang}")
        return func.lower(func.coalesce(localized_title, Game.title)).like(pattern, escape=LIKE_ESCAPE)
    return func.lower(Game.title).like(pattern, escape=LIKE_ESCAPE)


def build_catalog_filters(q: Optional[str], lang: str, categories: Optional[List[str]],
                          min_price: Optional[int], max_price: Optional[int]) -> list:
    conds = [Game.is_active.is_(True)]
    if q and q.strip():
        conds.append(_title_search(q, lang))
    if categories:
        cats = [c.strip().lower() for c in categories if c and c.strip()]
        if cats:
            conds.append(func.lower(Game.category).in_(cats))
    if min_price is not None:
        conds.append(Game.price >= min_price)
    if max_price is not None:
        conds.append(Game.price <= max_price)
    return conds


@retry_with_db_circuit()
async def fetch_games(session, *, q=None, lang="en", platforms=None, categories=None,
                      min_price=None, max_price=None, sort="newest", limit=20, offset=0):
    conds = build_catalog_filters(q, lang, categories, min_price, max_price)
    stmt = select(Game).where(*conds).order_by(*_sort_clauses(sort))

    # platform is a json list, matched in python, so the page is cut after filtering
    if platforms:
        rows = (await session.execute(stmt)).scalars().all()
        matched = [g for g in rows if matches_platforms(g, platforms)]
        return matched[offset:offset + limit], len(matched)

    total = (await session.execute(select(func.count(Game.id)).where(*conds))).scalar_one()
    rows = (await session.execute(stmt.limit(limit).offset(offset))).scalars().all()
    return list(rows), total


@retry_with_db_circuit()
async def fetch_featured_games(session, limit: int):
    stmt = (
        select(Game)
        .where(Game.is_active.is_(True), Game.is_featured.is_(True))
        .order_by(*_sort_clauses("rating"))
        .limit(limit)
    )
    return list((await session.execute(stmt)).scalars().all())


@retry_with_db_circuit()
async def fetch_game_details(session, game_pid: uuid.UUID):
    stmt = select(Game).where(Game.public_id == game_pid, Game.is_active.is_(True))
    game = (await session.execute(stmt)).scalar_one_or_none()
    if game is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")

    available = await count_available_keys(session, game.id)
    return game, available


async def count_available_keys(session, game_id: int) -> int:
    stmt = select(func.count(GameKey.id)).where(GameKey.game_id == game_id, GameKey.is_sold.is_(False))
    return (await session.execute(stmt)).scalar_one()


# ---------------------------------------------------------------------------------- admin

async def find_game_by_pid(session, game_pid: uuid.UUID) -> Game:
    res = await session.execute(select(Game).where(Game.public_id == game_pid))
    game = res.scalar_one_or_none()
    if game is None:
        logger.warning("game.not_found", extra={"game_public_id": str(game_pid)})
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game


async def list_games_admin(session, q: Optional[str], include_inactive: bool, limit: int, offset: int):
    conds = []
    if not include_inactive:
        conds.append(Game.is_active.is_(True))
    if q and q.strip():
        conds.append(_title_search(q, "en"))
    stmt = select(Game).where(*conds).order_by(*_sort_clauses("newest")).limit(limit).offset(offset)
    rows = (await session.execute(stmt)).scalars().all()
    total = (await session.execute(select(func.count(Game.id)).where(*conds))).scalar_one()
    return list(rows), total


async def insert_game(session, values: dict) -> Game:
    game = Game(**values)
    session.add(game)
    await session.flush()
    return game


async def patch_game(session, game_id: int, updates: dict):
    stmt = (
        update(Game)
        .where(Game.id == game_id)
        .values(**updates, updated_at=now())
        .returning(Game.public_id)
    )
    res = await session.execute(stmt)
    game_pid = res.scalar_one_or_none()
    if not game_pid:   # deleted between lookup and update
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Game not found")
    return game_pid


async def game_has_orders(session, game_id: int) -> bool:
    stmt = select(Orders.id).where(Orders.game_id == game_id).limit(1)
    return (await session.execute(stmt)).first() is not None


async def delete_game_row(session, game: Game):
    await session.delete(game)
    await session.flush()
