
import asyncio
import random
import string
from dotenv import load_dotenv
from sqlalchemy import select
from gamekeys.config.settings import config_settings
from gamekeys.db.connection import async_engine, async_session, create_tables
from gamekeys.keys.repository import insert_keys
from gamekeys.schema.full_schema import Game

load_dotenv()

KEYS_PER_GAME = 25

DEMO_GAMES = [
    {"title": "Starfall Odyssey", "title_ru": "Звёздная одиссея", "price": 5999, "original_price": 6999,
     "category": "rpg", "platform": ["PC", "PlayStation"], "rating": 4.7, "is_featured": True},
    {"title": "Neon Drift", "price": 2999, "category": "racing", "platform": ["PC", "Xbox"], "rating": 4.2},
    {"title": "Iron Bastion", "price": 3999, "category": "strategy", "platform": ["PC"], "rating": 4.5,
     "is_featured": True},
    {"title": "Quiet Harbor", "title_ge": "მშვიდი ნავსადგური", "price": 1499, "category": "adventure",
     "platform": ["PC", "Switch"], "rating": 4.0},
    {"title": "Frostline Tactics", "price": 4499, "category": "strategy", "platform": ["PC", "PlayStation", "Xbox"]},
]


def random_key() -> str:
    return "-".join("".join(random.choices(string.ascii_uppercase + string.digits, k=5)) for _ in range(3))


async def seed_catalog():
    if config_settings.AUTO_CREATE_TABLES:
        await create_tables(async_engine)

    async with async_session() as session:
        created = 0
        for data in DEMO_GAMES:
            exists = (await session.execute(select(Game.id).where(Game.title == data["title"]))).first()
            if exists:
                continue
            game = Game(**data)
            session.add(game)
            await session.flush()
            await insert_keys(session, game.id, [random_key() for _ in range(KEYS_PER_GAME)])
            created += 1
        await session.commit()
        print(f"Seeded {created} games with {KEYS_PER_GAME} keys each")

    await async_engine.dispose()

if __name__ == "__main__":
    asyncio.run(seed_catalog())
