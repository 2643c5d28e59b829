from flask import Flask, jsonify, request, g
from flask_cors import CORS
import time
import logging

from .src.config import Config
from .src.errors import CatalogError
from .src.services.catalog import Catalog
from .routes.health import bp as health_bp
from .routes.catalog import bp as catalog_bp


def create_app(config=Config, catalog=None):
    app = Flask(__name__)
    app.config.from_object(config)

    CORS(app, resources={r"/*": {"origins": getattr(config, "CORS_ORIGINS", "*")}})

    # Un único catálogo (y caché de token) compartido por todas las peticiones
    app.extensions["spotify_search"] = catalog or Catalog.from_config(config)

    app.register_blueprint(health_bp)
    app.register_blueprint(catalog_bp, url_prefix="/api/v1")

    logging.basicConfig(level=logging.DEBUG if getattr(config, 'DEBUG', False) else logging.INFO)

    @app.errorhandler(CatalogError)
    def _catalog_error(exc):
        if exc.status_code >= 500:
            logging.warning("%s %s failed: %s (%s)", request.method, request.path, exc.message, exc.kind)
        resp = jsonify(exc.to_dict())
        if exc.retry_after is not None:
            resp.headers["Retry-After"] = str(exc.retry_after)
        return resp, exc.status_code

    @app.before_request
    def _log_start():
        g._start_time = time.time()

    @app.after_request
    def _log_request(resp):
        started = getattr(g, '_start_time', None)
        dur_ms = int((time.time() - started) * 1000) if started else -1
        logging.info(
            "%s %s -> %s (%d ms) ip=%s",
            request.method,
            request.path,
            resp.status_code,
            dur_ms,
            request.headers.get('X-Forwarded-For', request.remote_addr),
        )
        return resp

    @app.get("/")
    def root():
        return jsonify({"name": "spotify_search", "status": "ok"}), 200

    return app
