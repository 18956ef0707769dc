# app/db/upsert.py
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_for(db: AsyncSession, table):
    """
    INSERT do dialeto em uso, com suporte a ON CONFLICT DO UPDATE.
    Postgres e SQLite (>= 3.24) têm a mesma semântica de upsert.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upsert não suportado para o dialeto {dialect!r}")
