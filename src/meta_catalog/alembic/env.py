"""Alembic environment for the catalog schema."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from meta_catalog.config import config as app_config
from meta_catalog.models import Base

config = context.config

# meta_catalog.db.run_migrations sets the URL. From the alembic command line
# fall back to the configured catalog database.
if not config.get_main_option("sqlalchemy.url") and app_config.database_path is not None:
    config.set_main_option("sqlalchemy.url", f"sqlite:///{app_config.database_path}")

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit the migration SQL for the configured URL without connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live SQLite connection.

    Foreign key enforcement stays off (the SQLite default) so tables can be
    dropped and rebuilt while other tables still reference them.
    """
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
