import uuid
import pytest
from tests.helpers import seed_game, url_prefix


@pytest.fixture
async def catalog(db_session):
    games = {
        "starfall": await seed_game(db_session, "Starfall Odyssey", price=5999, keys=3, category="RPG",
                                    platform=["PC", "PlayStation"], rating=4.7, is_featured=True,
                                    title_ru="Звёздная одиссея"),
        "neon": await seed_game(db_session, "Neon Drift", price=2999, keys=1, category="racing",
                                platform=["PC", "Xbox"], rating=4.2),
        "bastion": await seed_game(db_session, "Iron Bastion", price=3999, category="strategy",
                                   platform=["PC"], rating=4.5, is_featured=True),
        "harbor": await seed_game(db_session, "Quiet Harbor", price=1499, category="adventure",
                                  platform=["Switch"]),
        "hidden": await seed_game(db_session, "Hidden Gem", price=999, category="rpg", platform=["PC"],
                                  is_active=False, is_featured=True),
    }
    return games


def _titles(res):
    return [g["title"] for g in res.json()["data"]["items"]]


async def test_list_hides_inactive_games(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games")
    assert res.status_code == 200
    data = res.json()["data"]
    assert data["total"] == 4
    assert "Hidden Gem" not in _titles(res)
    # newest first by default
    assert _titles(res) == ["Quiet Harbor", "Iron Bastion", "Neon Drift", "Starfall Odyssey"]


@pytest.mark.parametrize("sort,expected", [
    ("price-low", ["Quiet Harbor", "Neon Drift", "Iron Bastion", "Starfall Odyssey"]),
    ("price-high", ["Starfall Odyssey", "Iron Bastion", "Neon Drift", "Quiet Harbor"]),
    ("name", ["Iron Bastion", "Neon Drift", "Quiet Harbor", "Starfall Odyssey"]),
    ("rating", ["Starfall Odyssey", "Iron Bastion", "Neon Drift", "Quiet Harbor"]),
])
async def test_sorting(ac_client, catalog, sort, expected):
    res = await ac_client.get(f"{url_prefix}/games", params={"sort": sort})
    assert _titles(res) == expected


async def test_unknown_sort_is_rejected(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games", params={"sort": "popularity"})
    assert res.status_code == 400


async def test_platform_filter_is_case_insensitive_any_match(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games", params=[("platform", "xbox"), ("platform", "switch"),
                                                             ("sort", "name")])
    assert _titles(res) == ["Neon Drift", "Quiet Harbor"]
    assert res.json()["data"]["total"] == 2


async def test_category_and_price_filters(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games", params={"category": "rpg"})
    assert _titles(res) == ["Starfall Odyssey"]

    res = await ac_client.get(f"{url_prefix}/games", params={"min_price": 2000, "max_price": 4000, "sort": "price-low"})
    assert _titles(res) == ["Neon Drift", "Iron Bastion"]


async def test_search_uses_requested_language_with_fallback(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games", params={"q": "одиссея", "lang": "ru"})
    assert _titles(res) == ["Звёздная одиссея"]

    # no russian title, so the default one is searched and shown
    res = await ac_client.get(f"{url_prefix}/games", params={"q": "drift", "lang": "ru"})
    assert _titles(res) == ["Neon Drift"]

    res = await ac_client.get(f"{url_prefix}/games", params={"q": "STARFALL"})
    assert _titles(res) == ["Starfall Odyssey"]


async def test_repeated_reads_are_stable(ac_client, catalog):
    params = {"sort": "price-low", "limit": 2, "offset": 1, "platform": "pc"}
    first = await ac_client.get(f"{url_prefix}/games", params=params)
    second = await ac_client.get(f"{url_prefix}/games", params=params)

    assert first.json()["data"] == second.json()["data"]
    assert _titles(first) == ["Iron Bastion", "Starfall Odyssey"]
    assert first.json()["data"]["total"] == 3


async def test_page_size_is_capped(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games", params={"limit": 10_000})
    assert res.status_code == 200
    assert res.json()["data"]["limit"] == 100


async def test_featured_only_active(ac_client, catalog):
    res = await ac_client.get(f"{url_prefix}/games/featured")
    assert _titles(res) == ["Starfall Odyssey", "Iron Bastion"]


async def test_game_details_with_stock(ac_client, catalog):
    game = catalog["starfall"]
    res = await ac_client.get(f"{url_prefix}/games/{game.public_id}", params={"lang": "ru"})

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["title"] == "Звёздная одиссея"
    assert data["available_keys"] == 3
    assert data["platform"] == ["PC", "PlayStation"]
    assert data["price"] == 5999


async def test_game_details_not_found(ac_client, catalog):
    hidden = catalog["hidden"]
    for gid in (str(hidden.public_id), str(uuid.uuid4()), "not-a-uuid"):
        res = await ac_client.get(f"{url_prefix}/games/{gid}")
        assert res.status_code == 404
        assert res.json()["error"]["code"] == "HTTP_404"
