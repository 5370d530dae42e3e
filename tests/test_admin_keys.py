import pytest
from gamekeys.keys.utils import parse_key_batch
from gamekeys.schema.full_schema import Role
from tests.helpers import auth_headers, grant_role, seed_game, url_prefix

ADMIN = "admin-1"
keys_url = f"{url_prefix}/admin/keys"


@pytest.fixture
async def admin_headers(db_session):
    await grant_role(db_session, ADMIN, Role.ADMIN)
    return auth_headers(ADMIN)


def test_parse_key_batch_drops_blanks_and_flags_duplicates():
    keys, dupes = parse_key_batch("AAA-111\n\n  BBB-222  \r\nAAA-111\n\t\nCCC-333\n")
    assert keys == ["AAA-111", "BBB-222", "CCC-333"]
    assert dupes == ["AAA-111"]


def test_parse_key_batch_empty():
    assert parse_key_batch("") == ([], [])
    assert parse_key_batch(None) == ([], [])


async def test_bulk_add_and_list(ac_client, db_session, admin_headers):
    game = await seed_game(db_session, "Starfall Odyssey")

    res = await ac_client.post(keys_url, json={"game_id": str(game.public_id), "keys": "K-1\nK-2\n\nK-3\n"},
                               headers=admin_headers)
    assert res.status_code == 201
    assert res.json()["data"]["added"] == 3

    res = await ac_client.get(keys_url, params={"game_id": str(game.public_id), "status": "available"},
                              headers=admin_headers)
    data = res.json()["data"]
    assert data["total"] == 3
    assert sorted(k["key_value"] for k in data["items"]) == ["K-1", "K-2", "K-3"]
    assert {k["game_title"] for k in data["items"]} == {"Starfall Odyssey"}

    detail = await ac_client.get(f"{url_prefix}/games/{game.public_id}")
    assert detail.json()["data"]["available_keys"] == 3


async def test_batch_with_duplicates_is_rejected_whole(ac_client, db_session, admin_headers):
    game = await seed_game(db_session, "Neon Drift", keys=1)   # NEON-DRIFT-0000

    res = await ac_client.post(keys_url, json={"game_id": str(game.public_id), "keys": "X-1\nX-1"},
                               headers=admin_headers)
    assert res.status_code == 409
    assert res.json()["error"]["details"]["duplicates"] == ["X-1"]

    res = await ac_client.post(keys_url, json={"game_id": str(game.public_id), "keys": "X-2\nNEON-DRIFT-0000"},
                               headers=admin_headers)
    assert res.status_code == 409
    assert res.json()["error"]["details"]["duplicates"] == ["NEON-DRIFT-0000"]

    res = await ac_client.get(keys_url, params={"q": "x-"}, headers=admin_headers)
    assert res.json()["data"]["total"] == 0


async def test_blank_batch_and_unknown_game(ac_client, db_session, admin_headers):
    game = await seed_game(db_session, "Iron Bastion")

    res = await ac_client.post(keys_url, json={"game_id": str(game.public_id), "keys": "\n  \n"},
                               headers=admin_headers)
    assert res.status_code == 400

    res = await ac_client.post(keys_url, json={"game_id": "0190f0a0-0000-7000-8000-000000000000", "keys": "A"},
                               headers=admin_headers)
    assert res.status_code == 404


async def test_sold_keys_are_immutable(ac_client, db_session, admin_headers):
    game = await seed_game(db_session, "Quiet Harbor", keys=2)
    res = await ac_client.post(f"{url_prefix}/checkout",
                               json={"items": [{"game_id": str(game.public_id), "quantity": 1}]},
                               headers=auth_headers("buyer-1"))
    sold_value = res.json()["data"]["receipt"][0]["key"]

    sold = (await ac_client.get(keys_url, params={"status": "sold"}, headers=admin_headers)).json()["data"]["items"]
    assert [k["key_value"] for k in sold] == [sold_value]
    assert sold[0]["sold_to"] == "buyer-1"

    res = await ac_client.delete(f"{keys_url}/{sold[0]['id']}", headers=admin_headers)
    assert res.status_code == 409

    available = (await ac_client.get(keys_url, params={"status": "available"}, headers=admin_headers)).json()["data"]
    res = await ac_client.delete(f"{keys_url}/{available['items'][0]['id']}", headers=admin_headers)
    assert res.status_code == 200

    res = await ac_client.delete(f"{keys_url}/{available['items'][0]['id']}", headers=admin_headers)
    assert res.status_code == 404


async def test_invalid_status_filter(ac_client, admin_headers):
    res = await ac_client.get(keys_url, params={"status": "reserved"}, headers=admin_headers)
    assert res.status_code == 400


async def test_moderator_can_manage_keys(ac_client, db_session):
    await grant_role(db_session, "mod-1", Role.MODERATOR)
    game = await seed_game(db_session, "Frostline Tactics")

    res = await ac_client.post(keys_url, json={"game_id": str(game.public_id), "keys": "F-1"},
                               headers=auth_headers("mod-1"))
    assert res.status_code == 201


async def test_search_treats_wildcards_literally(ac_client, db_session, admin_headers):
    game = await seed_game(db_session, "Iron Bastion")
    res = await ac_client.post(keys_url, json={"game_id": str(game.public_id), "keys": "AB_1\nABC1\nFULL%OFF"},
                               headers=admin_headers)
    assert res.status_code == 201

    res = await ac_client.get(keys_url, params={"q": "b_1"}, headers=admin_headers)
    assert [k["key_value"] for k in res.json()["data"]["items"]] == ["AB_1"]

    res = await ac_client.get(keys_url, params={"q": "%"}, headers=admin_headers)
    assert [k["key_value"] for k in res.json()["data"]["items"]] == ["FULL%OFF"]
