"""Alembic environment for the keeper's schema.

Only tables in ``range_keeper`` are compared or migrated, and the version
table lives in the same schema, so the keeper can share a database with
other services.
"""

from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool, text

from range_keeper.db.base import Base
from range_keeper.db.engine import database_url
from range_keeper.db.tables import SCHEMA

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url() -> str:
    """KEEPER_DATABASE_URL wins over ``sqlalchemy.url`` in alembic.ini."""
    return database_url(os.environ.get("KEEPER_DATABASE_URL") or config.get_main_option("sqlalchemy.url"))


def include_object(obj, name, type_, reflected, compare_to):
    if type_ == "table":
        return obj.schema == SCHEMA
    return True


def _context_options() -> dict:
    return {
        "target_metadata": target_metadata,
        "include_schemas": True,
        "include_object": include_object,
        "version_table_schema": SCHEMA,
    }


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(get_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        # The version table is created inside the schema, so it must exist first.
        connection.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
        connection.commit()

        context.configure(connection=connection, **_context_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
