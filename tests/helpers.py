from typing import Optional
from sqlalchemy import func, select
from gamekeys.auth.utils import create_access_token
from gamekeys.keys.repository import insert_keys
from gamekeys.orders.models import CheckoutLine
from gamekeys.schema.full_schema import Game, GameKey, Orders, Role
from gamekeys.user.repository import set_user_role

url_prefix = "/api/v1"


def auth_headers(user_id: str, email: Optional[str] = None) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, email)}"}


async def seed_game(session, title: str, price: int = 1999, keys: int = 0, **extra) -> Game:
    game = Game(title=title, price=price, **extra)
    session.add(game)
    await session.flush()
    if keys:
        prefix = title.upper().replace(" ", "-")
        await insert_keys(session, game.id, [f"{prefix}-{i:04d}" for i in range(keys)])
    await session.commit()
    # detached so rollbacks inside a checkout cannot expire it under the test
    session.expunge(game)
    return game


async def add_keys(session, game: Game, values):
    await insert_keys(session, game.id, list(values))
    await session.commit()


async def grant_role(session, user_id: str, role: Role):
    await set_user_role(session, user_id, role)
    await session.commit()


def line(game: Game, quantity: int = 1, price: Optional[int] = None) -> CheckoutLine:
    return CheckoutLine(game_id=str(game.public_id), quantity=quantity, title=game.title,
                        price=game.price if price is None else price)


async def sold_keys(session, game: Game):
    stmt = select(GameKey).where(GameKey.game_id == game.id, GameKey.is_sold.is_(True)).execution_options(populate_existing=True)
    res = await session.execute(stmt)
    return res.scalars().all()


async def count_orders(session, user_id: Optional[str] = None) -> int:
    stmt = select(func.count(Orders.id))
    if user_id:
        stmt = stmt.where(Orders.user_id == user_id)
    return (await session.execute(stmt)).scalar_one()
