import pytest
from gamekeys.schema.full_schema import Role
from tests.helpers import auth_headers, grant_role, seed_game, url_prefix

admin_prefix = f"{url_prefix}/admin"


@pytest.fixture
async def sales(ac_client, db_session):
    await grant_role(db_session, "admin-1", Role.ADMIN)
    await grant_role(db_session, "mod-1", Role.MODERATOR)
    starfall = await seed_game(db_session, "Starfall Odyssey", price=5000, keys=4)
    neon = await seed_game(db_session, "Neon Drift", price=2000, keys=2)
    await seed_game(db_session, "Retired Game", price=100, keys=0, is_active=False)

    for uid, cart in (("buyer-a", [(starfall, 2)]), ("buyer-b", [(starfall, 1), (neon, 1)])):
        items = [{"game_id": str(g.public_id), "quantity": q} for g, q in cart]
        res = await ac_client.post(f"{url_prefix}/checkout", json={"items": items}, headers=auth_headers(uid))
        assert res.status_code == 201


async def test_list_orders_with_filters(ac_client, sales):
    headers = auth_headers("mod-1")

    res = await ac_client.get(f"{admin_prefix}/orders", headers=headers)
    assert res.status_code == 200
    assert res.json()["data"]["total"] == 4

    res = await ac_client.get(f"{admin_prefix}/orders", params={"user_id": "buyer-b"}, headers=headers)
    items = res.json()["data"]["items"]
    assert sorted(o["game_title"] for o in items) == ["Neon Drift", "Starfall Odyssey"]

    res = await ac_client.get(f"{admin_prefix}/orders", params={"status": "failed"}, headers=headers)
    assert res.json()["data"]["total"] == 0

    res = await ac_client.get(f"{admin_prefix}/orders", params={"status": "lost"}, headers=headers)
    assert res.status_code == 400


async def test_status_change_rules(ac_client, sales):
    admin = auth_headers("admin-1")
    order = (await ac_client.get(f"{admin_prefix}/orders", headers=admin)).json()["data"]["items"][0]

    res = await ac_client.patch(f"{admin_prefix}/orders/{order['id']}", json={"status": "pending"}, headers=admin)
    assert res.status_code == 409

    res = await ac_client.patch(f"{admin_prefix}/orders/{order['id']}", json={"status": "failed"}, headers=admin)
    assert res.status_code == 200
    assert res.json()["data"]["status"] == "failed"

    res = await ac_client.patch(f"{admin_prefix}/orders/{order['id']}", json={"status": "pending"}, headers=admin)
    assert res.status_code == 200

    res = await ac_client.patch(f"{admin_prefix}/orders/not-an-id", json={"status": "failed"}, headers=admin)
    assert res.status_code == 404


async def test_moderator_cannot_change_orders(ac_client, sales):
    order = (await ac_client.get(f"{admin_prefix}/orders", headers=auth_headers("mod-1"))).json()["data"]["items"][0]
    res = await ac_client.patch(f"{admin_prefix}/orders/{order['id']}", json={"status": "failed"},
                                headers=auth_headers("mod-1"))
    assert res.status_code == 403


async def test_stats(ac_client, sales):
    res = await ac_client.get(f"{admin_prefix}/stats", headers=auth_headers("mod-1"))
    assert res.status_code == 200
    stats = res.json()["data"]

    assert stats["revenue"] == 3 * 5000 + 2000
    assert stats["order_count"] == 4
    assert stats["orders_by_status"] == {"pending": 0, "completed": 4, "failed": 0}
    assert stats["active_games"] == 2
    assert stats["available_keys"] == 2
    assert [(g["title"], g["units"], g["revenue"]) for g in stats["sales_by_game"]] == [
        ("Starfall Odyssey", 3, 15000),
        ("Neon Drift", 1, 2000),
    ]


async def test_customers_cannot_read_stats(ac_client, sales):
    res = await ac_client.get(f"{admin_prefix}/stats", headers=auth_headers("buyer-a"))
    assert res.status_code == 403
