
import asyncio
import os
from dotenv import load_dotenv
from gamekeys.auth.utils import create_access_token
from gamekeys.config.settings import config_settings
from gamekeys.db.connection import async_engine, async_session, create_tables
from gamekeys.schema.full_schema import Role
from gamekeys.user.repository import get_user_role, set_user_role

load_dotenv()


async def grant_admin():
    admin_id = os.environ.get("BOOTSTRAP_ADMIN_ID")
    if not admin_id:
        raise SystemExit("Set BOOTSTRAP_ADMIN_ID to the identity provider's user id")

    if config_settings.AUTO_CREATE_TABLES:
        await create_tables(async_engine)

    async with async_session() as session:
        if await get_user_role(session, admin_id) == Role.ADMIN:
            print("User already has admin role")
        else:
            await set_user_role(session, admin_id, Role.ADMIN)
            await session.commit()
            print("Assigned admin role to user")

    if os.environ.get("PRINT_DEV_TOKEN"):
        print(create_access_token(admin_id))

    await async_engine.dispose()
    print("Done.")

if __name__ == "__main__":
    asyncio.run(grant_admin())
