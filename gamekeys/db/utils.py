from sqlalchemy import event


def _normalize_db_url(url: str | None) -> str | None:
    # hosted postgres often hands out "postgres://..." urls, the async engine needs the driver in the scheme
    if not url:
        return None
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


def engine_kwargs(db_url: str, pool_size: int = 10, max_overflow: int = 10) -> dict:
    kw = dict(echo=False, pool_pre_ping=True)
    if db_url.startswith("postgresql+asyncpg://"):
        kw.update(pool_size=pool_size, max_overflow=max_overflow)
    return kw


def install_sqlite_pragmas(engine) -> None:
    """WAL so readers never block the key-claim writer, a busy timeout so racing writers wait instead of failing."""

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _):
        cur = dbapi_connection.cursor()
        cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("PRAGMA busy_timeout=5000;")
        cur.execute("PRAGMA foreign_keys=ON;")
        cur.close()
