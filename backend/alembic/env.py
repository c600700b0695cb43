"""
Alembic environment for the storefront schema.

The target database comes from the application settings (``DATABASE_URL``),
so ``alembic upgrade head`` and the running API always point at the same
database. ``alembic.ini`` puts ``backend/`` on the import path.
"""
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from database import Base, SQLALCHEMY_DATABASE_URL
import models.log  # noqa: F401
import models.order  # noqa: F401
import models.product  # noqa: F401

config = context.config

# ConfigParser treats % as interpolation; URL-encoded passwords contain it
config.set_main_option("sqlalchemy.url", SQLALCHEMY_DATABASE_URL.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _batch_mode(dialect_name: str) -> bool:
    # SQLite cannot alter constraints in place; batch mode rebuilds the table
    return dialect_name == "sqlite"


def run_migrations_offline() -> None:
    context.configure(
        url=SQLALCHEMY_DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_batch_mode(SQLALCHEMY_DATABASE_URL.split(":", 1)[0].split("+", 1)[0]),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=_batch_mode(connection.dialect.name),
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
