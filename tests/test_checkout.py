from sqlalchemy import select
from gamekeys.common.utils import now
from gamekeys.orders.models import CheckoutLine
from gamekeys.orders.utils import cart_request_hash
from gamekeys.schema.full_schema import IdempotencyKey
from tests.helpers import add_keys, auth_headers, count_orders, seed_game, sold_keys, url_prefix

USER = "user-checkout-1"


def _cart(game, quantity=1, price=None):
    return {"items": [{"game_id": str(game.public_id), "quantity": quantity, "title": game.title,
                       "price": game.price if price is None else price}]}


async def test_checkout_returns_receipt(ac_client, db_session):
    game = await seed_game(db_session, "Starfall Odyssey", price=5999, keys=3)

    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game, quantity=2), headers=auth_headers(USER))

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "ok"
    receipt = body["data"]["receipt"]
    assert [r["title"] for r in receipt] == ["Starfall Odyssey", "Starfall Odyssey"]
    assert len({r["key"] for r in receipt}) == 2
    assert body["data"]["amount"] == 2 * 5999


async def test_my_orders_lists_issued_keys(ac_client, db_session):
    game = await seed_game(db_session, "Neon Drift", price=2999, keys=2)
    headers = auth_headers(USER)

    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game), headers=headers)
    key = res.json()["data"]["receipt"][0]["key"]

    res = await ac_client.get(f"{url_prefix}/orders/me", headers=headers)
    assert res.status_code == 200
    items = res.json()["data"]["items"]
    assert len(items) == 1
    assert items[0]["key"] == key
    assert items[0]["game_title"] == "Neon Drift"
    assert items[0]["amount"] == 2999
    assert items[0]["status"] == "completed"

    other = await ac_client.get(f"{url_prefix}/orders/me", headers=auth_headers("someone-else"))
    assert other.json()["data"]["items"] == []


async def test_anonymous_checkout_is_unauthorized(ac_client, db_session):
    game = await seed_game(db_session, "Iron Bastion", keys=1)

    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game))

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"
    assert await sold_keys(db_session, game) == []


async def test_invalid_token_is_rejected_by_middleware(ac_client):
    res = await ac_client.post(f"{url_prefix}/checkout", json={"items": []},
                               headers={"Authorization": "Bearer not-a-jwt"})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "INVALID_AUTH"


async def test_empty_cart(ac_client):
    res = await ac_client.post(f"{url_prefix}/checkout", json={"items": []}, headers=auth_headers(USER))
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "EMPTY_CART"


async def test_zero_quantity_is_a_validation_error(ac_client, db_session):
    game = await seed_game(db_session, "Quiet Harbor", keys=1)
    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game, quantity=0), headers=auth_headers(USER))
    assert res.status_code == 422


async def test_line_quantity_is_capped(ac_client, db_session):
    game = await seed_game(db_session, "Quiet Harbor", keys=30)
    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game, quantity=21), headers=auth_headers(USER))
    assert res.status_code == 422
    assert await count_orders(db_session) == 0
    assert await sold_keys(db_session, game) == []


def test_request_hash_ignores_game_id_spelling():
    pid = "01a155ee-7c1d-4a3b-9f00-2b9e6c1d7e11"
    lower = cart_request_hash([CheckoutLine(game_id=pid, quantity=2)])
    mixed = cart_request_hash([CheckoutLine(game_id=pid.upper(), quantity=1), CheckoutLine(game_id=pid, quantity=1)])
    assert lower == mixed


async def test_stockout_envelope(ac_client, db_session):
    in_stock = await seed_game(db_session, "Starfall Odyssey", keys=1)
    empty = await seed_game(db_session, "Frostline Tactics", keys=0)
    cart = {"items": _cart(in_stock)["items"] + _cart(empty)["items"]}

    res = await ac_client.post(f"{url_prefix}/checkout", json=cart, headers=auth_headers(USER))

    assert res.status_code == 409
    error = res.json()["error"]
    assert error["code"] == "OUT_OF_STOCK"
    assert error["details"]["game_id"] == str(empty.public_id)
    assert "Frostline Tactics" in error["details"]["message"]
    assert await count_orders(db_session) == 0
    assert await sold_keys(db_session, in_stock) == []


async def test_idempotent_resubmission_replays_receipt(ac_client, db_session):
    game = await seed_game(db_session, "Neon Drift", keys=3)
    headers = {**auth_headers(USER), "Idempotency-Key": "cart-7f1e"}

    first = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game), headers=headers)
    second = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game), headers=headers)

    assert first.status_code == 201
    assert second.status_code == 201
    assert second.json()["data"] == first.json()["data"]
    assert await count_orders(db_session) == 1


async def test_idempotency_key_is_scoped_per_user(ac_client, db_session):
    game = await seed_game(db_session, "Iron Bastion", keys=3)

    for uid in ("alice", "bob"):
        res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game),
                                   headers={**auth_headers(uid), "Idempotency-Key": "same-key"})
        assert res.status_code == 201

    assert await count_orders(db_session) == 2


async def test_idempotency_key_reused_for_other_cart(ac_client, db_session):
    game = await seed_game(db_session, "Quiet Harbor", keys=5)
    headers = {**auth_headers(USER), "Idempotency-Key": "cart-1"}

    await ac_client.post(f"{url_prefix}/checkout", json=_cart(game), headers=headers)
    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game, quantity=2), headers=headers)

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "IDEMPOTENCY_KEY_REUSED"
    assert await count_orders(db_session) == 1


async def test_failed_checkout_frees_idempotency_key(ac_client, db_session):
    game = await seed_game(db_session, "Frostline Tactics", keys=0)
    headers = {**auth_headers(USER), "Idempotency-Key": "retry-me"}

    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game), headers=headers)
    assert res.status_code == 409

    await add_keys(db_session, game, ["FROST-RESTOCK-1"])

    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game), headers=headers)
    assert res.status_code == 201
    assert res.json()["data"]["receipt"][0]["key"] == "FROST-RESTOCK-1"


async def test_checkout_in_progress(ac_client, db_session):
    game = await seed_game(db_session, "Starfall Odyssey", keys=2)
    line_hash = cart_request_hash([CheckoutLine(game_id=str(game.public_id), quantity=1)])

    db_session.add(IdempotencyKey(key="busy", created_by=USER, request_hash=line_hash, created_at=now()))
    await db_session.commit()

    res = await ac_client.post(f"{url_prefix}/checkout", json=_cart(game),
                               headers={**auth_headers(USER), "Idempotency-Key": "busy"})

    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CHECKOUT_IN_PROGRESS"
    assert await sold_keys(db_session, game) == []


async def test_completed_key_is_stored(ac_client, db_session):
    game = await seed_game(db_session, "Neon Drift", keys=1)
    await ac_client.post(f"{url_prefix}/checkout", json=_cart(game),
                         headers={**auth_headers(USER), "Idempotency-Key": "stored"})

    record = (await db_session.execute(select(IdempotencyKey).where(IdempotencyKey.key == "stored"))).scalar_one()
    assert record.response_code == 201
    assert record.response_body["receipt"][0]["key"] == "NEON-DRIFT-0000"
    assert record.expires_at is not None


async def test_request_id_is_echoed(ac_client):
    res = await ac_client.get(f"{url_prefix}/health", headers={"X-Request-ID": "req-abc"})
    assert res.status_code == 200
    assert res.headers["X-Request-ID"] == "req-abc"
    assert res.json()["request_id"] == "req-abc"
