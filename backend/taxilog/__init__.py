from __future__ import annotations

import logging

from flask import Flask
from flask_cors import CORS

from taxilog.api.routes import api_bp
from taxilog.config import Config


def create_app() -> Flask:
    app = Flask(__name__)
    app.config.from_object(Config)
    CORS(app)  # ok for MVP; tighten later

    logging.getLogger("taxilog").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    app.register_blueprint(api_bp)
    return app
