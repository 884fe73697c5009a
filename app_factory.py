"""
Application Factory

Creates and configures the Flask application with all dependencies.
Passing a prepared DependencyContainer lets tests swap in other
repositories without touching Redis.
"""

import logging
import os
from typing import Optional

from flask import Flask, jsonify
from flask_cors import CORS

from fileshare.application.dependency_container import DependencyContainer
from fileshare.application.event_publisher import EventPublisher
from fileshare.application.file_service import FileService, sweep_event_publisher
from fileshare.application.sweep_scheduler import SweepScheduler
from fileshare.config.celery_config import make_celery
from fileshare.config.logging_config import configure_logging
from fileshare.config.mail_config import MailConfig
from fileshare.config.redis_config import RedisConfig, file_store, init_redis, redis_health_check
from fileshare.config.storage_config import StorageConfig
from fileshare.domain.accounts import UserRepository
from fileshare.domain.clock import utc_now
from fileshare.domain.file_storage import (
    ExpiredFileSweeper,
    FileManager,
    FileRecordRepository,
    IBlobStorageRepository,
    OrphanReconciler,
)
from fileshare.domain.notifications import FileNotifier
from fileshare.infrastructure.event_handlers import register_event_handlers
from fileshare.infrastructure.local_blob_storage_repository import LocalBlobStorageRepository
from fileshare.infrastructure.redis_file_record_repository import RedisFileRecordRepository
from fileshare.infrastructure.redis_user_repository import RedisUserRepository
from fileshare.infrastructure.sendgrid_notifier import SendGridNotifier

logger = logging.getLogger(__name__)


class AppConfig:
    """Application configuration."""

    def __init__(self):
        self.api_version = os.getenv("API_VERSION", "v1")
        self.flask_env = os.getenv("FLASK_ENV", "development")
        self.is_production = self.flask_env == "production"
        self.log_level = os.getenv("LOG_LEVEL", "INFO")

        self.redis = RedisConfig()
        self.storage = StorageConfig()
        self.mail = MailConfig()


def create_app(
    config: Optional[AppConfig] = None,
    container: Optional[DependencyContainer] = None,
    start_sweeper: bool = True,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        container: Pre-built container, the Redis-backed one if None
        start_sweeper: Start the in-process sweeper when SWEEP_MODE=inprocess.
            Worker processes pass False so only the web process sweeps.

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()

    configure_logging(config.log_level)

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.storage.max_file_size
    app.config["DEFAULT_MAX_DOWNLOADS"] = config.storage.default_max_downloads
    app.config["ALLOWED_MIME_TYPES"] = config.storage.allowed_mime_types

    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
                "allow_headers": ["Content-Type", "Authorization", "X-User-Id"],
                "expose_headers": ["Content-Type", "Content-Disposition", "X-Download-Count"],
                "max_age": 3600,
            }
        },
    )

    _initialize_infrastructure(app, config)

    app.container = container if container is not None else build_container(config)

    _register_blueprints(app, config)
    _register_health_endpoint(app, config)

    if start_sweeper and config.storage.sweep_mode == "inprocess":
        _start_inprocess_sweeper(app)

    return app


def _initialize_infrastructure(app: Flask, config: AppConfig) -> None:
    """
    Initialize infrastructure components (Redis pool, Celery).

    Neither opens a connection here.
    """
    try:
        init_redis(config.redis)
        app.celery = make_celery(app)
        logger.info("Redis and Celery initialized")
    except Exception as e:
        logger.warning(f"Could not initialize infrastructure: {e}")
        app.celery = None


def build_container(config: AppConfig) -> DependencyContainer:
    """
    Register every service of the production object graph.

    Services are built on first resolution so the app can start while Redis
    is still coming up.
    """
    container = DependencyContainer()
    clock = utc_now
    storage = config.storage

    container.register_lazy_singleton(
        FileRecordRepository,
        lambda: RedisFileRecordRepository(
            file_store(),
            clock=clock,
            access_log_limit=storage.access_log_limit,
        ),
    )
    container.register_lazy_singleton(
        UserRepository,
        lambda: RedisUserRepository(file_store()),
    )
    container.register_lazy_singleton(
        IBlobStorageRepository, lambda: LocalBlobStorageRepository(storage.upload_dir)
    )
    container.register_singleton(
        FileNotifier,
        SendGridNotifier(
            config.mail.sendgrid_api_key, config.mail.from_email, config.mail.from_name
        ),
    )

    publisher = EventPublisher()
    register_event_handlers(
        publisher, container.resolve(FileNotifier) if config.mail.enabled else None
    )
    container.register_singleton(EventPublisher, publisher)

    container.register_lazy_singleton(
        FileManager,
        lambda: FileManager(
            container.resolve(FileRecordRepository),
            container.resolve(IBlobStorageRepository),
            clock=clock,
            default_expiry_hours=storage.default_expiry_hours,
            access_log_limit=storage.access_log_limit,
        ),
    )
    container.register_transient(
        OrphanReconciler,
        lambda: OrphanReconciler(
            container.resolve(FileRecordRepository),
            container.resolve(IBlobStorageRepository),
        ),
    )
    container.register_lazy_singleton(
        SweepScheduler,
        lambda: SweepScheduler(
            ExpiredFileSweeper(
                container.resolve(FileRecordRepository),
                container.resolve(IBlobStorageRepository),
                clock=clock,
            ),
            interval_seconds=storage.sweep_interval_seconds,
            on_pass=sweep_event_publisher(publisher, clock),
        ),
    )
    container.register_lazy_singleton(
        FileService,
        lambda: FileService(
            container.resolve(FileManager),
            container.resolve(SweepScheduler),
            container.resolve(OrphanReconciler),
            publisher,
            user_repository=container.resolve(UserRepository),
            notifier=container.resolve(FileNotifier),
            frontend_url=storage.frontend_url,
        ),
    )

    logger.info("Application services registered with DependencyContainer")
    return container


def _register_blueprints(app: Flask, config: AppConfig) -> None:
    from fileshare.api.v1 import api_v1_bp

    app.register_blueprint(api_v1_bp)

    logger.info(
        f"API {config.api_version} registered at /api/{config.api_version} "
        f"with Swagger UI at /api/{config.api_version}/docs"
    )


def _start_inprocess_sweeper(app: Flask) -> None:
    try:
        app.container.resolve(FileService).start_sweeping()
    except Exception as e:
        logger.error(f"Could not start in-process sweep scheduler: {e}", exc_info=True)


def _get_health_status(app: Flask, config: AppConfig) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    health_status = {
        "status": "ok",
        "message": "backend ready",
        "redis": "unknown",
        "celery": "unknown",
        "sweep_mode": config.storage.sweep_mode,
    }

    try:
        if redis_health_check():
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["redis"] = f"error: {str(e)}"
        health_status["status"] = "degraded"

    if getattr(app, "celery", None) is not None:
        health_status["celery"] = "available"
    else:
        health_status["celery"] = "unavailable"
        if config.storage.sweep_mode == "celery":
            health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask, config: AppConfig) -> None:
    @app.route("/health", methods=["GET"])
    def health():
        """Overall health of the application and its dependencies."""
        health_status, status_code = _get_health_status(app, config)
        return jsonify(health_status), status_code
