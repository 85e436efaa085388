from __future__ import annotations

import logging
import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from workshop_app.config import settings
from workshop_app.models import Base  # registers every model on Base.metadata

config = context.config
if config.config_file_name and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name)

log = logging.getLogger("alembic.env")

# reminder pipeline tables; a model that stops registering must not produce a "drop table" diff
REQUIRED_TABLES = {"users", "workshops", "registrations", "settings", "sent_reminders"}

tables = set(Base.metadata.tables)
missing = REQUIRED_TABLES - tables
if missing:
    raise RuntimeError(f"models not registered on Base.metadata: {sorted(missing)}")
log.info("metadata tables: %s", sorted(tables))


def sync_dsn(dsn: str) -> str:
    """The app talks asyncpg/aiosqlite, alembic needs a blocking driver."""
    if "+asyncpg" in dsn:
        return dsn.replace("+asyncpg", "+psycopg")
    if "+aiosqlite" in dsn:
        return dsn.replace("+aiosqlite", "")
    return dsn


config.set_main_option("sqlalchemy.url", sync_dsn(settings.DATABASE_URL))
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        log.info("online migrations on %s", connection.engine.url.render_as_string(hide_password=True))
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # sqlite cannot ALTER most things in place
            render_as_batch=connection.dialect.name == "sqlite",
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
