import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from gamekeys.auth.constants import ORDERS_READ, ORDERS_WRITE, STATS_READ
from gamekeys.auth.dependencies import CurrentUser, current_user, require_capability, require_user
from gamekeys.common.utils import success_response
from gamekeys.db.dependencies import get_session
from gamekeys.orders.constants import IDEMPOTENCY_HEADER, ORDER_STATUSES, logger
from gamekeys.orders.models import CheckoutIn, OrderStatusIn
from gamekeys.orders.repository import fetch_orders_admin, fetch_sales_stats, fetch_user_orders
from gamekeys.orders.services import change_order_status, checkout

orders_router=APIRouter()
orders_admin_router=APIRouter()
stats_admin_router=APIRouter()


@orders_router.post("/checkout")
async def place_order(payload: CheckoutIn,
    idempotency_key: Optional[str] = Header(None, alias=IDEMPOTENCY_HEADER, max_length=128),
    user: Optional[CurrentUser] = Depends(current_user),
    session: AsyncSession = Depends(get_session)):

    user_id = user.id if user else None
    logger.info("checkout.attempt", extra={"user_id": user_id, "lines": len(payload.items),
                                           "idempotent": bool(idempotency_key)})

    body = await checkout(session, user_id, payload.items, idempotency_key)
    return success_response(body, status_code=status.HTTP_201_CREATED)


@orders_router.get("/orders/me")
async def my_orders(limit: int = Query(50, ge=1, le=200), offset: int = Query(0, ge=0),
                    user: CurrentUser = Depends(require_user),
                    session: AsyncSession = Depends(get_session)):
    orders = await fetch_user_orders(session, user.id, limit, offset)
    return success_response({"items": orders})

# -------------------------------------------------------------------------------------------- admin

@orders_admin_router.get("")
async def admin_list_orders(
    order_status: Optional[str] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user: CurrentUser = require_capability(ORDERS_READ),
    session: AsyncSession = Depends(get_session)):

    if order_status and order_status not in ORDER_STATUSES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"status must be one of {', '.join(ORDER_STATUSES)}")

    orders, total = await fetch_orders_admin(session, order_status=order_status, user_id=user_id, limit=limit, offset=offset)
    return success_response({"items": orders, "total": total})


@orders_admin_router.patch("/{order_public_id}")
async def admin_update_order(order_public_id: str, payload: OrderStatusIn,
                             user: CurrentUser = require_capability(ORDERS_WRITE),
                             session: AsyncSession = Depends(get_session)):
    try:
        order_pid = uuid.UUID(order_public_id)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")

    res = await change_order_status(session, order_pid, payload.status, user.id)
    await session.commit()
    return success_response(res)


@stats_admin_router.get("")
async def admin_stats(user: CurrentUser = require_capability(STATS_READ),
                      session: AsyncSession = Depends(get_session)):
    stats = await fetch_sales_stats(session)
    return success_response(stats)
