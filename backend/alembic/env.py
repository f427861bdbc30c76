"""Alembic environment.

Migrations run on the synchronous psycopg2 URL derived from settings.  Pass
``-x db_url=...`` to migrate another database without touching the
environment.
"""

from alembic import context
from sqlalchemy import engine_from_config, pool

from app.config import settings
from app.core.logging import setup_logging
from app.models import Base  # registers every table

config = context.config
db_url = context.get_x_argument(as_dictionary=True).get("db_url", settings.sync_database_url)
config.set_main_option("sqlalchemy.url", db_url)

setup_logging(json_format=settings.log_json, level=settings.log_level)

target_metadata = Base.metadata


def _configure(**kwargs) -> None:
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def run_migrations_offline() -> None:
    _configure(url=db_url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
