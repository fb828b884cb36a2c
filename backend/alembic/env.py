"""
Alembic environment for the note metadata database.

The URL comes from NOTES_DATABASE_URL, or from `alembic -x url=...` to
migrate another database without touching the environment.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from studydesk.config import get_settings
from studydesk.db.base import VERSION_TABLE, Base, include_object
from studydesk.db import models  # noqa: F401 - registers the notes table

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def get_url() -> str:
    """Sync (psycopg2) URL of the note database."""
    override = context.get_x_argument(as_dictionary=True).get("url")
    if override:
        return override
    url = get_settings().notes_database_url_sync
    if url is None:
        raise RuntimeError("NOTES_DATABASE_URL is not set; nothing to migrate.")
    return url


def configure_options() -> dict:
    return {
        "target_metadata": Base.metadata,
        "version_table": VERSION_TABLE,
        "include_object": include_object,
        "compare_type": True,
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL to the script output instead of executing it."""
    context.configure(
        url=get_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(get_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **configure_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
