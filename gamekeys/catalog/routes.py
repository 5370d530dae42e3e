from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from gamekeys.auth.constants import GAMES_WRITE
from gamekeys.auth.dependencies import CurrentUser, require_capability
from gamekeys.catalog.constants import DEFAULT_PAGE_SIZE, SORT_OPTIONS, SUPPORTED_LANGS
from gamekeys.catalog.models import GameActiveIn, GameCreateIn, GameUpdateIn
from gamekeys.catalog.repository import fetch_featured_games, fetch_game_details, fetch_games, list_games_admin
from gamekeys.catalog.services import create_game, delete_game, set_game_active, update_game
from gamekeys.catalog.utils import serialize_game, serialize_game_admin, validate_game_pid
from gamekeys.common.utils import success_response
from gamekeys.config.settings import config_settings
from gamekeys.db.dependencies import get_session

games_public_router=APIRouter()
games_admin_router=APIRouter()

MAX_PAGE_SIZE = config_settings.CATALOG_MAX_PAGE_SIZE


@games_public_router.get("")
async def get_games(
    q: Optional[str] = Query(None, max_length=100),
    lang: str = Query("en"),
    platform: Optional[List[str]] = Query(None),
    category: Optional[List[str]] = Query(None),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    sort: str = Query("newest"),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session)):

    if sort not in SORT_OPTIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"sort must be one of {', '.join(SORT_OPTIONS)}")
    if lang not in SUPPORTED_LANGS:
        lang = "en"
    limit = min(limit, MAX_PAGE_SIZE)

    games, total = await fetch_games(session, q=q, lang=lang, platforms=platform, categories=category,
                                     min_price=min_price, max_price=max_price, sort=sort, limit=limit, offset=offset)

    data = {
        "items": [serialize_game(g, lang) for g in games],
        "total": total,
        "limit": limit,
        "offset": offset,
    }
    return success_response(data, status_code=status.HTTP_200_OK)


@games_public_router.get("/featured")
async def get_featured_games(lang: str = Query("en"), limit: int = Query(8, ge=1, le=50),
                             session: AsyncSession = Depends(get_session)):
    if lang not in SUPPORTED_LANGS:
        lang = "en"
    games = await fetch_featured_games(session, limit)
    return success_response({"items": [serialize_game(g, lang) for g in games]})


@games_public_router.get("/{game_public_id}")
async def get_game_details(game_public_id: str, lang: str = Query("en"),
                           session: AsyncSession = Depends(get_session)):
    if lang not in SUPPORTED_LANGS:
        lang = "en"
    game, available = await fetch_game_details(session, validate_game_pid(game_public_id))
    data = serialize_game(game, lang)
    data["available_keys"] = available
    return success_response(data)

# -------------------------------------------------------------------------------------------- admin

@games_admin_router.get("")
async def admin_list_games(
    q: Optional[str] = Query(None, max_length=100),
    include_inactive: bool = Query(True),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: CurrentUser = require_capability(GAMES_WRITE),
    session: AsyncSession = Depends(get_session)):

    games, total = await list_games_admin(session, q, include_inactive, limit, offset)
    return success_response({"items": [serialize_game_admin(g) for g in games], "total": total})


@games_admin_router.post("")
async def admin_create_game(payload: GameCreateIn, user: CurrentUser = require_capability(GAMES_WRITE),
                            session: AsyncSession = Depends(get_session)):
    game = await create_game(session, payload, user.id)
    await session.commit()
    return success_response({"message": "game created", "game": game}, status_code=status.HTTP_201_CREATED)


@games_admin_router.patch("/{game_public_id}")
async def admin_update_game(game_public_id: str, payload: GameUpdateIn,
                            user: CurrentUser = require_capability(GAMES_WRITE),
                            session: AsyncSession = Depends(get_session)):
    game = await update_game(session, validate_game_pid(game_public_id), payload, user.id)
    await session.commit()
    return success_response({"message": "game updated", "game": game})


@games_admin_router.patch("/{game_public_id}/active")
async def admin_toggle_game(game_public_id: str, payload: GameActiveIn,
                            user: CurrentUser = require_capability(GAMES_WRITE),
                            session: AsyncSession = Depends(get_session)):
    game = await set_game_active(session, validate_game_pid(game_public_id), payload.is_active, user.id)
    await session.commit()
    return success_response({"message": "game updated", "game": game})


@games_admin_router.delete("/{game_public_id}")
async def admin_delete_game(game_public_id: str, user: CurrentUser = require_capability(GAMES_WRITE),
                            session: AsyncSession = Depends(get_session)):
    await delete_game(session, validate_game_pid(game_public_id), user.id)
    await session.commit()
    return success_response({"message": "game deleted"})
