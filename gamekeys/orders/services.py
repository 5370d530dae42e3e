from typing import List, Optional, Tuple
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from gamekeys.common.custom_exceptions import (AllocationConflict, CheckoutInProgress, EmptyCart, IdempotencyKeyReused,
                                                OutOfStock, StoreError, Unauthorized)
from gamekeys.config.settings import config_settings
from gamekeys.orders.constants import logger
from gamekeys.orders.repository import (claim_key, complete_idempotency, delete_idempotency, delete_order,
                                         drop_expired_idempotency, find_order_by_pid, find_unsold_key,
                                         idempotency_by_key, insert_order, load_games_for_cart,
                                         record_idempotency, release_key, set_order_status)
from gamekeys.orders.utils import Allocation, cart_request_hash, expand_lines, receipt_from
from gamekeys.schema.full_schema import OrderStatus

CLAIM_MAX_ATTEMPTS = config_settings.CLAIM_MAX_ATTEMPTS
IDEMPOTENCY_TTL_HOURS = config_settings.IDEMPOTENCY_TTL_HOURS


async def _safe_rollback(session):
    try:
        await session.rollback()
    except SQLAlchemyError:
        logger.exception("checkout.rollback.failed")


async def allocate_unit(session, user_id: str, game, exclude: set, max_attempts: int) -> Allocation:
    """Claim one unsold key of `game` and write its order, in a single transaction.

    A lost claim race puts the key in `exclude` and selects again. `exclude`
    is shared across the whole checkout call.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            key = await find_unsold_key(session, game.id, exclude)
            if key is None:
                await session.rollback()
                raise OutOfStock(str(game.public_id), game.title)

            if not await claim_key(session, key.id, user_id):
                raise AllocationConflict(key.id)

            order = await insert_order(session, user_id=user_id, game_id=game.id, key_id=key.id, amount=game.price)
            await session.commit()

        except AllocationConflict as exc:
            await _safe_rollback(session)
            exclude.add(exc.key_id)
            logger.info("checkout.claim.conflict", extra={"user_id": user_id, "game_id": str(game.public_id),
                                                          "key_id": exc.key_id, "attempt": attempt})
            continue
        except SQLAlchemyError as exc:
            await _safe_rollback(session)
            logger.error("checkout.allocate.store_error", extra={"user_id": user_id, "game_id": str(game.public_id)},
                         exc_info=exc)
            raise StoreError() from exc

        exclude.add(key.id)
        return Allocation(order_id=order.id, key_id=key.id, title=game.title, key_value=key.key_value, amount=game.price)

    logger.warning("checkout.claim.exhausted", extra={"user_id": user_id, "game_id": str(game.public_id),
                                                      "attempts": max_attempts})
    raise OutOfStock(str(game.public_id), game.title)


async def compensate(session, user_id: str, allocations: List[Allocation]) -> int:
    """Undo committed allocations newest first, one transaction each.

    Best effort: a failed step is logged and the rest still run. Returns how
    many allocations were undone.
    """
    undone = 0
    for alloc in reversed(allocations):
        try:
            await delete_order(session, alloc.order_id)
            released = await release_key(session, alloc.key_id, user_id)
            await session.commit()
        except SQLAlchemyError as exc:
            await _safe_rollback(session)
            logger.error("checkout.compensation.failed", extra={"user_id": user_id, "order_id": alloc.order_id,
                                                                "key_id": alloc.key_id}, exc_info=exc)
            continue
        if not released:
            logger.warning("checkout.compensation.key_not_released", extra={"user_id": user_id, "key_id": alloc.key_id})
        undone += 1
    return undone


async def fulfill(session, user_id: Optional[str], cart_lines, *, max_claim_attempts: int = CLAIM_MAX_ATTEMPTS) -> Tuple[List[dict], int]:
    """Allocate one key per purchased copy, all or nothing. Returns (receipt, amount charged).

    Every unit commits on its own; if any unit fails, the units committed
    earlier in this call are compensated before the error is re-raised.
    Cancellation is not a failure, units committed before it stay sold.
    """
    if not user_id:
        raise Unauthorized()
    if not cart_lines:
        raise EmptyCart()

    try:
        games = await load_games_for_cart(session, [line.game_id for line in cart_lines])
        # price and title come from the store, the cart copy is only a hint
        await session.rollback()
    except SQLAlchemyError as exc:
        await _safe_rollback(session)
        raise StoreError() from exc

    for line in cart_lines:
        game = games.get(line.game_id)
        if game is None:
            raise OutOfStock(line.game_id, line.title)
        if line.price is not None and line.price != game.price:
            logger.warning("checkout.price.mismatch", extra={"user_id": user_id, "game_id": line.game_id,
                                                             "cart_price": line.price, "store_price": game.price})

    allocations: List[Allocation] = []
    exclude: set = set()
    try:
        for unit in expand_lines(cart_lines):
            alloc = await allocate_unit(session, user_id, games[unit.game_id], exclude, max_claim_attempts)
            allocations.append(alloc)
    except Exception as exc:
        await _safe_rollback(session)
        if allocations:
            undone = await compensate(session, user_id, allocations)
            logger.warning("checkout.fulfill.compensated", extra={"user_id": user_id, "allocated": len(allocations),
                                                                  "undone": undone, "reason": type(exc).__name__})
        raise

    logger.info("checkout.fulfill.success", extra={"user_id": user_id, "units": len(allocations),
                                                   "amount": sum(a.amount for a in allocations)})
    return receipt_from(allocations), sum(a.amount for a in allocations)


async def begin_idempotent_checkout(session, user_id: str, i_key: str, request_hash: str):
    """Record the key before any allocation.

    Returns (record_id, None) for a fresh checkout or (None, stored_body) to replay.
    """
    try:
        await drop_expired_idempotency(session, user_id, i_key)
        ik_id = await record_idempotency(session, user_id, i_key, request_hash, IDEMPOTENCY_TTL_HOURS)
        await session.commit()
        return ik_id, None
    except IntegrityError:
        await session.rollback()
    except SQLAlchemyError as exc:
        await _safe_rollback(session)
        raise StoreError() from exc

    existing = await idempotency_by_key(session, user_id, i_key)
    await session.rollback()
    if existing is None:
        # the holder failed and dropped its key between our insert and read
        raise CheckoutInProgress()
    if existing.request_hash != request_hash:
        raise IdempotencyKeyReused()
    if existing.response_body is None:
        raise CheckoutInProgress()

    logger.info("checkout.idempotent.replay", extra={"user_id": user_id})
    return None, existing.response_body


async def checkout(session, user_id: Optional[str], cart_lines, idempotency_key: Optional[str] = None) -> dict:
    if not user_id:
        raise Unauthorized()
    if not cart_lines:
        raise EmptyCart()

    ik_id = None
    if idempotency_key:
        ik_id, replay = await begin_idempotent_checkout(session, user_id, idempotency_key, cart_request_hash(cart_lines))
        if replay is not None:
            return replay

    try:
        receipt, amount = await fulfill(session, user_id, cart_lines)
    except Exception:
        if ik_id is not None:
            # a failed checkout sold nothing, the client may retry with the same key
            try:
                await delete_idempotency(session, ik_id)
                await session.commit()
            except SQLAlchemyError:
                await _safe_rollback(session)
                logger.exception("checkout.idempotency.cleanup_failed", extra={"user_id": user_id})
        raise

    body = {"receipt": receipt, "amount": amount}
    if ik_id is not None:
        try:
            await complete_idempotency(session, ik_id, status.HTTP_201_CREATED, body)
            await session.commit()
        except SQLAlchemyError:
            # keys are already sold, the receipt still goes back to the caller
            await _safe_rollback(session)
            logger.exception("checkout.idempotency.store_failed", extra={"user_id": user_id})
    return body

# ------------------------------------------------------------------------- admin

async def change_order_status(session, order_pid, new_status: OrderStatus, actor_id: str) -> dict:
    order = await find_order_by_pid(session, order_pid)
    if order.status == OrderStatus.COMPLETED.value and new_status == OrderStatus.PENDING:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Completed orders cannot go back to pending")

    await set_order_status(session, order.id, new_status.value)
    logger.info("order.status.changed", extra={"order_id": str(order_pid), "from": order.status,
                                               "to": new_status.value, "actor_user_id": actor_id})
    return {"id": str(order_pid), "status": new_status.value}
