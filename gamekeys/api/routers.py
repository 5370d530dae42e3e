from fastapi import APIRouter
from gamekeys.api import version_prefix
from gamekeys.catalog.routes import games_public_router, games_admin_router
from gamekeys.common.routes import home_router
from gamekeys.keys.routes import keys_admin_router
from gamekeys.orders.routes import orders_router, orders_admin_router, stats_admin_router
from gamekeys.user.routes import user_router, user_admin_router


public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(games_public_router, prefix="/games",tags=["games"])
public_routers.include_router(user_router, prefix="/users",tags=["users"])
public_routers.include_router(orders_router,tags=["orders"])
public_routers.include_router(home_router,tags=["home"])

#--------------------------------------------------------------------------------------------------------

admin_routers = APIRouter(prefix=f"{version_prefix}/admin")

admin_routers.include_router(games_admin_router, prefix="/games",tags=["games-admin"])
admin_routers.include_router(keys_admin_router, prefix="/keys",tags=["keys-admin"])
admin_routers.include_router(orders_admin_router, prefix="/orders",tags=["orders-admin"])
admin_routers.include_router(stats_admin_router, prefix="/stats",tags=["stats-admin"])
admin_routers.include_router(user_admin_router, prefix="/users",tags=["users-admin"])
