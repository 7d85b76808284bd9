"""Flask application factory for the vintagecam web API."""

import logging
from typing import Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from ..config import ConfigManager
from ..processing import ProcessingError
from ..storage import DiskBackend, MetadataStore, RedisBackend, StorageError
from .services import CapacityError, ImageService, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "vintagecam"


def build_store(config: ConfigManager) -> MetadataStore:
    """Build (but do not start) the metadata store described by ``config``."""
    disk = DiskBackend(config.get("storage.metadata_dir"))
    network = None
    redis_url = config.get("storage.redis_url")
    connect_timeout = float(config.get("storage.connect_timeout", 5.0))
    if config.get("storage.use_redis", True) and redis_url:
        network = RedisBackend(redis_url, connect_timeout=connect_timeout)
    return MetadataStore(disk, network, connect_timeout=connect_timeout)


def get_image_service(app: Flask) -> ImageService:
    return app.extensions[EXTENSION_KEY]


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(CapacityError)
    def handle_capacity_error(e):
        response = jsonify({"error": str(e), "retryAfter": e.retry_after})
        response.status_code = 503
        response.headers["Retry-After"] = str(e.retry_after)
        return response

    @app.errorhandler(ProcessingError)
    def handle_processing_error(e):
        logger.error(f"Processing error: {e}")
        return jsonify({"error": "Failed to process image"}), 500

    @app.errorhandler(StorageError)
    def handle_storage_error(e):
        logger.error(f"Storage error: {e}")
        return jsonify({"error": "Storage operation failed"}), 500

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        max_mb = app.config["MAX_CONTENT_LENGTH"] // (1024 * 1024)
        return jsonify({"error": f"File too large. Maximum size is {max_mb}MB"}), 413

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code


def create_app(
    config_path: Optional[str] = None,
    config: Optional[ConfigManager] = None,
    store: Optional[MetadataStore] = None,
    service: Optional[ImageService] = None,
    debug: bool = False
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_path: Optional path to a vintagecam config file
        config: Pre-loaded configuration (skips file loading)
        store: Metadata store to use (built from config and started if None)
        service: Pre-built image service (built from config and store if None)
        debug: Enable debug mode

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)
    app.config["DEBUG"] = debug

    if config is None:
        try:
            config = ConfigManager.load(config_path=config_path)
            logger.info(f"Loaded vintagecam config from: {config.config_path}")
        except Exception as e:
            logger.error(f"Failed to load vintagecam config: {e}")
            raise

    max_mb = int(config.get("upload.max_size_mb", 10))
    app.config["MAX_CONTENT_LENGTH"] = max_mb * 1024 * 1024
    app.config["VINTAGECAM_CONFIG"] = config

    if service is None:
        if store is None:
            store = build_store(config)
            store.start(background=True)
        service = ImageService(config, store)
    app.extensions[EXTENSION_KEY] = service

    _register_error_handlers(app)

    from .routes.api import api_bp
    from .routes.health import health_bp

    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(health_bp)

    logger.info("vintagecam web app created")

    return app
