import os
from flask import Flask
from .extensions import db, migrate


def create_app(config_overrides=None):
    """App factory.

    ``config_overrides`` is applied on top of ``config.Config``; tests use it
    to point at an in-memory database.
    """
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if config_overrides:
        app.config.update(config_overrides)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(app)
    migrate.init_app(app, db)

    from .api.analyze import bp as analyze_bp
    app.register_blueprint(analyze_bp)

    # alembic's env.py sets SKIP_CREATE_ALL so migrations own the schema
    if not os.getenv("SKIP_CREATE_ALL"):
        with app.app_context():
            from . import models  # noqa: F401
            db.create_all()

    return app
