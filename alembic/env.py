"""Alembic environment for the SRAG case store."""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine

import config
from srag_dp.adapters import orm

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

target_metadata = orm.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_postgres_uri(),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(config.get_postgres_uri())
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
