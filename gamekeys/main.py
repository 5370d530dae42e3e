from contextlib import asynccontextmanager
from fastapi import FastAPI
from gamekeys.api import version_prefix, cur_version
from gamekeys.api.routers import public_routers, admin_routers
from gamekeys.common.custom_exceptions import register_all_exceptions
from gamekeys.common.logging_setup import setup_logging, shutdown_logging
from gamekeys.config.admin_config import admin_config
from gamekeys.config.settings import config_settings
from gamekeys.db.connection import async_engine, create_tables
from gamekeys.middlewares.auth_middleware import AuthenticationMiddleware
from gamekeys.middlewares.request_id_middleware import RequestIdMiddleware


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    logger = setup_logging()
    if config_settings.AUTO_CREATE_TABLES:
        await create_tables(async_engine)
    logger.info("app.startup", extra={"admin_enabled": admin_config.ENABLE_ADMIN})

    try:
        yield
    finally:
        logger.info("app.shutdown")
        await async_engine.dispose()
        shutdown_logging()


def create_app():
    app=FastAPI(
        title="GameKeys",
        version=cur_version,
        lifespan=app_lifespan)

    app.include_router(public_routers)

    if admin_config.ENABLE_ADMIN:
        app.include_router(admin_routers)      # mounts /api/v1/admin

    app.add_middleware(AuthenticationMiddleware, skip_paths=[f"{version_prefix}/health"])
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    return app

app=create_app()
