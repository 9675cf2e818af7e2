from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context
from virtual_shop.core.config import Settings
from virtual_shop.db.session import Base
import virtual_shop.db.models  # noqa

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)
target_metadata = Base.metadata

def _dsn():
    return config.get_main_option('sqlalchemy.url') or Settings().POSTGRES_DSN

def run_migrations_offline():
    context.configure(
        url=_dsn(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = engine_from_config(
        {"sqlalchemy.url": _dsn()},
        prefix="sqlalchemy.",
        poolclass=pool.NullPool
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True
        )
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
