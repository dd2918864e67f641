# app/__init__.py
import os
import logging

from flask import Flask, current_app

# Use an alias for the real SQLAlchemy instance to avoid shadowing by a module named "app.db"
from .models.base import db as SA_DB  # <- single SQLAlchemy() instance

SERVICES_KEY = "pet_services"


def create_app(config=None):
    """Build the app; ``config`` overrides settings read from the environment.

    Tests pass ``CLOCK`` (callable returning epoch ms) and ``RNG``
    (``random.Random``) to make hunger decay and daily rewards deterministic.
    """
    app = Flask(__name__)

    BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
    DB_PATH = os.path.join(BASE_DIR, "xiuh.db")
    DB_URI = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

    app.config.update(
        SECRET_KEY=os.environ.get("SECRET_KEY", "dev"),
        SQLALCHEMY_DATABASE_URI=DB_URI,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        AUTO_CREATE_TABLES=os.environ.get("AUTO_CREATE_TABLES", "1") == "1",
    )
    if config:
        app.config.update(config)

    SA_DB.init_app(app)

    # Helpful startup log
    app.logger.setLevel(logging.INFO)
    app.logger.info("DB URI: %s", app.config["SQLALCHEMY_DATABASE_URI"])
    app.logger.info("AUTO_CREATE_TABLES=%s", app.config["AUTO_CREATE_TABLES"])

    with app.app_context():
        # Ensure all models are imported so metadata is complete
        from . import models as _models  # noqa: F401

        if app.config["AUTO_CREATE_TABLES"]:
            SA_DB.create_all()

    from services import build_services
    from services.clock import now_ms
    from services.gateway import SqlGateway

    app.extensions[SERVICES_KEY] = build_services(
        SqlGateway(SA_DB),
        clock=app.config.get("CLOCK") or now_ms,
        rng=app.config.get("RNG"),
    )

    from .api_commands import bp as commands_api_bp
    app.register_blueprint(commands_api_bp)

    return app


def get_services():
    """Services container of the current app."""
    return current_app.extensions[SERVICES_KEY]
