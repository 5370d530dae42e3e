from fastapi import HTTPException, status
from gamekeys.catalog.constants import logger
from gamekeys.catalog.models import GameCreateIn, GameUpdateIn
from gamekeys.catalog.repository import delete_game_row, find_game_by_pid, game_has_orders, insert_game, patch_game
from gamekeys.catalog.utils import serialize_game_admin
from gamekeys.common.utils import now

# columns that may not be cleared through a partial update
_NON_NULLABLE = ("title", "price", "platform", "is_featured")


async def create_game(session, payload: GameCreateIn, actor_id: str) -> dict:
    values = payload.model_dump()
    values["created_at"] = now()
    values["updated_at"] = values["created_at"]
    game = await insert_game(session, values)
    logger.info("game.create.success", extra={"game_id": str(game.public_id), "actor_user_id": actor_id})
    return serialize_game_admin(game)


async def update_game(session, game_pid, payload: GameUpdateIn, actor_id: str) -> dict:
    game = await find_game_by_pid(session, game_pid)

    updates = payload.model_dump(exclude_unset=True)
    for col in _NON_NULLABLE:
        if col in updates and updates[col] is None:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"{col} cannot be null")
    if not updates:
        return serialize_game_admin(game)

    await patch_game(session, game.id, updates)
    await session.refresh(game)
    logger.info("game.update.success", extra={"game_id": str(game_pid), "actor_user_id": actor_id, "fields": sorted(updates)})
    return serialize_game_admin(game)


async def set_game_active(session, game_pid, is_active: bool, actor_id: str) -> dict:
    game = await find_game_by_pid(session, game_pid)
    await patch_game(session, game.id, {"is_active": is_active})
    await session.refresh(game)
    logger.info("game.active.changed", extra={"game_id": str(game_pid), "is_active": is_active, "actor_user_id": actor_id})
    return serialize_game_admin(game)


async def delete_game(session, game_pid, actor_id: str):
    game = await find_game_by_pid(session, game_pid)

    # sold games stay for order history, they can only be hidden
    if await game_has_orders(session, game.id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Game has orders, deactivate it instead")

    await delete_game_row(session, game)
    logger.info("game.delete.success", extra={"game_id": str(game_pid), "actor_user_id": actor_id})
