"""Flask application factory."""

from __future__ import annotations

import atexit
import logging

from flask import Flask
from flask_cors import CORS

from ..config import API_CONFIG, SOURCE_CONFIG
from ..manager import LocationManager
from ..sources import GPS_PROVIDER, NETWORK_PROVIDER, HttpLocationSource, InMemoryLocationSource
from .host import HttpHost, LoopThread
from .routes import api_bp

logger = logging.getLogger(__name__)


def default_source():
    """HTTP source when a geolocation URL is configured, otherwise host-driven providers."""

    if SOURCE_CONFIG.http_url:
        return HttpLocationSource()
    return InMemoryLocationSource({GPS_PROVIDER: True, NETWORK_PROVIDER: True})


def create_app(manager: LocationManager | None = None, *, host: HttpHost | None = None) -> Flask:
    """Create and configure the Flask application."""

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = API_CONFIG.max_content_bytes

    CORS(app)
    app.register_blueprint(api_bp, url_prefix="/api")

    loop_thread = LoopThread().start()
    atexit.register(loop_thread.stop)
    app.extensions["location_chain"] = {
        "manager": manager or LocationManager(default_source()),
        "host": host or HttpHost(),
        "loop": loop_thread,
    }

    @app.get("/health")
    def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    logger.info("Flask application initialised")
    return app
