from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from venuebook.core.config import settings
from venuebook.db.session import Base

# Import all models so Alembic sees them in metadata
from venuebook.models.user import User  # noqa: F401
from venuebook.models.user_role import UserRole  # noqa: F401
from venuebook.models.booking import Booking  # noqa: F401
from venuebook.models.email_log import EmailLog  # noqa: F401
from venuebook.models.audit_log import AuditLog  # noqa: F401


# Alembic Config object
config = context.config

# start_api passes the URL explicitly; the alembic CLI falls back to settings
if not config.get_main_option("sqlalchemy.url"):
    config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

# Logging config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

# Target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    # alembic.ini carries no URL; DATABASE_URL comes from settings above
    connectable = create_engine(config.get_main_option("sqlalchemy.url"), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
