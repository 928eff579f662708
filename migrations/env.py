from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool, text
from alembic import context
import os
import sys

# Project root on sys.path so 'civicconnect' is importable from `alembic ...`
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Import all models so Base.metadata is populated
import civicconnect.models  # noqa: F401
from civicconnect.config import settings
from civicconnect.database import Base

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# gen_random_uuid() defaults in the schema come from pgcrypto
REQUIRED_EXTENSIONS = ("pgcrypto",)


def sync_database_url() -> str:
    """
    Alembic runs on psycopg2. DATABASE_SYNC_URL wins; otherwise the app's
    asyncpg DATABASE_URL is reused with the driver swapped, and alembic.ini
    is the last resort.
    """
    if settings.DATABASE_SYNC_URL:
        return settings.DATABASE_SYNC_URL
    if settings.DATABASE_URL.startswith("postgresql+asyncpg://"):
        return settings.DATABASE_URL.replace("+asyncpg", "+psycopg2", 1)
    return config.get_main_option("sqlalchemy.url")


def skip_empty_autogenerate(context, revision, directives):
    # `alembic revision --autogenerate` with no model changes writes nothing
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []


def run_migrations_offline():
    context.configure(
        url=sync_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    config.set_main_option("sqlalchemy.url", sync_database_url())
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        for extension in REQUIRED_EXTENSIONS:
            connection.execute(text(f'CREATE EXTENSION IF NOT EXISTS "{extension}"'))
        connection.commit()
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            process_revision_directives=skip_empty_autogenerate,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
