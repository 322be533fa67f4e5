"""
Alembic environment.

Every shard database carries the full schema. Pick the target with
``alembic -x shard=<name> upgrade head`` (default: the default shard).
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from pwb.core.database import Base, DEFAULT_SHARD, shard_urls
import pwb.models  # noqa: F401  registers every table on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

shard = context.get_x_argument(as_dictionary=True).get("shard", DEFAULT_SHARD)
urls = shard_urls()
if shard not in urls:
    raise SystemExit(f"Unknown shard '{shard}'. Configured: {', '.join(sorted(urls))}")
config.set_main_option("sqlalchemy.url", urls[shard].replace("%", "%%"))

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
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
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
