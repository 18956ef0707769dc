# app/db/session.py
import sys, asyncio
if sys.platform.startswith("win"):
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

from pathlib import Path
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from app.core.config import settings


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> AsyncEngine:
    """SQLite só aplica FOREIGN KEY / ON DELETE com o PRAGMA ligado em cada conexão."""
    if engine.dialect.name != "sqlite":
        return engine

    @event.listens_for(engine.sync_engine, "connect")
    def _fk_on(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


if settings.DATABASE_URL:
    _db_url = settings.DATABASE_URL
else:
    data_dir = (Path(__file__).resolve().parents[2] / "data")
    data_dir.mkdir(parents=True, exist_ok=True)
    # fallback local: arquivo sqlite dentro de data/
    _db_url = f"sqlite+aiosqlite:///{(data_dir / 'studio_insight.db').as_posix()}"

engine = enable_sqlite_foreign_keys(create_async_engine(_db_url, echo=False))
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
