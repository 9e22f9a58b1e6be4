from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from sima.core.config import get_settings
from sima.db.base import Base
from sima.db.models.audit_model import AuditLog  # noqa: F401
from sima.db.models.persona_model import PersonaRegistrada  # noqa: F401
from sima.db.models.registro_model import RegistroDelictual  # noqa: F401
from sima.db.models.user_model import Usuario  # noqa: F401

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Alembic runs on a synchronous engine; the app itself talks to asyncpg.
DATABASE_URL = get_settings().database_url.replace("+asyncpg", "")


def run_migrations_offline():
    """Run migrations in 'offline' mode."""
    context.configure(
        url=DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """Run migrations in 'online' mode (sync engine for Alembic)."""
    connectable = create_engine(
        DATABASE_URL,
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
