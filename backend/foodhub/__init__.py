# backend/foodhub/__init__.py
from flask import Flask

from .config import Config
from .extensions import db, migrate


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        # Overrides must land before extensions read the config
        app.config.update(test_config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Fail fast on broken order reference settings
    from .services.sales_order_service import sales_order_manager_from_config
    sales_order_manager_from_config(app.config)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
