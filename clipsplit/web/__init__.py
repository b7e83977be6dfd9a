"""Flask application factory for the clipsplit local API."""

import logging

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from clipsplit.log import configure_logging

logger = logging.getLogger(__name__)


def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__)
    app.config["LOG_LEVEL"] = "INFO"
    app.config["LOG_FILE"] = None
    if config:
        app.config.update(config)

    if not app.config.get("TESTING"):
        configure_logging(app.config["LOG_LEVEL"], app.config["LOG_FILE"])

    from clipsplit.web.routes import ClipSession, bp
    app.extensions["clipsplit"] = ClipSession()
    app.register_blueprint(bp)

    @app.errorhandler(Exception)
    def handle_error(error):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        logger.exception("Unhandled error")
        return jsonify({"error": str(error) or "Internal error"}), 500

    return app
