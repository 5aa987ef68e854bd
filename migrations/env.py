"""Migration runner. Revisions are raw SQL, so there is no model metadata."""
import logging.config

from alembic import context

from stickyboard import config as settings

alembic_config = context.config

if alembic_config.config_file_name is not None:
    logging.config.fileConfig(alembic_config.config_file_name)


def run_offline(url):
    """Emit the SQL script instead of touching a database."""
    context.configure(url=url, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_online(url):
    from sqlalchemy import create_engine, pool

    engine = create_engine(url, poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(settings.database_url())
else:
    run_online(settings.database_url())
