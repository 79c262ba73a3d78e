"""Application factory for the WIP tracking web API."""

from __future__ import annotations

from typing import Any

from flask import Flask, jsonify
from flask.typing import ResponseReturnValue

from . import store as store_module
from .blueprints.calendar.routes import bp as calendar_bp
from .blueprints.wip.routes import bp as wip_bp


DEFAULT_CONFIG: dict[str, Any] = {
    "SECRET_KEY": "dev",
    "CONFIG_PATH": None,
    "ENTRIES_PATH": None,
    "HOLIDAYS_PATH": None,
    "TODAY": None,
}


def create_app(config: dict[str, Any] | None = None) -> Flask:
    """Create and configure the Flask application.

    Settings come from ``DEFAULT_CONFIG``, then from ``WIPTRACK_*`` environment
    variables with the prefix stripped (``WIPTRACK_CONFIG_PATH``,
    ``WIPTRACK_ENTRIES_PATH``, ``WIPTRACK_HOLIDAYS_PATH``, ``WIPTRACK_TODAY``),
    then from *config*.
    """
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env("WIPTRACK")

    if config:
        app.config.update(config)

    store = store_module.init_app(app)
    app.logger.info(
        "Loaded %d entries and %d holidays", len(store.entries), len(store.holidays)
    )

    app.register_blueprint(calendar_bp)
    app.register_blueprint(wip_bp)

    @app.get("/healthz")
    def healthcheck() -> tuple[str, int]:
        return "OK", 200

    @app.get("/")
    def index() -> ResponseReturnValue:
        current = store_module.get_store()
        return jsonify(
            {
                "entries": len(current.entries),
                "holidays": len(current.holidays),
                "refreshed_at": current.refreshed_at.isoformat() if current.refreshed_at else None,
            }
        )

    return app
