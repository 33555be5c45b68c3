"""Alembic environment for the report engine.

Runs inside the Flask app from ``wsgi`` so migrations use the same database
URL and model metadata as the service. ``SKIP_CREATE_ALL`` keeps the app
factory from creating tables behind Alembic's back.
"""
import logging
import os
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

os.environ.setdefault("SKIP_CREATE_ALL", "1")
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from wsgi import app  # noqa: E402

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)
logger = logging.getLogger("alembic.env")


def _metadata():
    from assessment import models  # noqa: F401
    return app.extensions["migrate"].db.metadata


def _engine():
    return app.extensions["migrate"].db.engine


def run_migrations_offline():
    url = _engine().url.render_as_string(hide_password=False)
    context.configure(url=url, target_metadata=_metadata(), literal_binds=True,
                      compare_type=True, render_as_batch=url.startswith("sqlite"))
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = _engine()
    logger.info("Migrating %s", engine.url.render_as_string(hide_password=True))
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=_metadata(), compare_type=True,
                          render_as_batch=engine.dialect.name == "sqlite")
        with context.begin_transaction():
            context.run_migrations()


with app.app_context():
    if context.is_offline_mode():
        run_migrations_offline()
    else:
        run_migrations_online()
