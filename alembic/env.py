"""
Alembic environment for the contact directory schema.

The URL comes from DATABASE_URL (same variable the service reads) and is
pointed at the psycopg 3 driver. Migrations are hand-written DDL; there is no
ORM metadata to autogenerate from.
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_DRIVER_PREFIX = "postgresql+psycopg://"


def database_url() -> str:
    url = os.environ.get("DATABASE_URL") or config.get_main_option("sqlalchemy.url") or ""
    for scheme in ("postgresql://", "postgres://"):
        if url.startswith(scheme):
            return _DRIVER_PREFIX + url[len(scheme):]
    return url


def run_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=None,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = create_engine(database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=None)
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
