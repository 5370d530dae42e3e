from sqlalchemy.ext.asyncio import create_async_engine,async_sessionmaker,AsyncSession
from sqlmodel import SQLModel
from gamekeys.config.settings import config_settings
from gamekeys.db.utils import _normalize_db_url, engine_kwargs, install_sqlite_pragmas

DATABASE_URL=_normalize_db_url(config_settings.DATABASE_URL)


def make_engine(db_url: str):
    engine = create_async_engine(db_url, **engine_kwargs(db_url, config_settings.DB_POOL_SIZE, config_settings.DB_MAX_OVERFLOW))
    if db_url.startswith("sqlite+aiosqlite://"):
        install_sqlite_pragmas(engine)
    return engine


def make_session_factory(engine):
    return async_sessionmaker(bind=engine,class_=AsyncSession,expire_on_commit=False)


async def create_tables(engine):
    # table models must be imported before metadata.create_all
    import gamekeys.schema.full_schema  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async_engine=make_engine(DATABASE_URL)

async_session=make_session_factory(async_engine)
