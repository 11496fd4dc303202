"""Logging configuration and setup."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional
import structlog

from ..config import settings


def setup_logging(log_file: Optional[str] = None, log_level: Optional[str] = None) -> None:
    """Set up structured logging for the application.

    Args:
        log_file: Optional log file path
        log_level: Logging level
    """
    # Use settings if parameters not provided
    if log_file is None:
        log_file = settings.log_file
    if log_level is None:
        log_level = settings.log_level
    level = getattr(logging, log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    ))
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '{"timestamp": "%(asctime)s", "logger": "%(name)s", "level": "%(levelname)s", "message": "%(message)s"}'
        ))
        root_logger.addHandler(file_handler)

    # Quiet chatty libraries
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("google").setLevel(logging.WARNING)

    if settings.sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.logging import LoggingIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            integrations=[
                LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
                SqlalchemyIntegration(),
            ],
            traces_sample_rate=0.1,
            environment=settings.environment
        )
        logging.info("Sentry logging integration initialized")

    logging.info(f"Logging configured - Level: {log_level}, File: {log_file}")


class SyncLogger:
    """Structured logger for one import or sync run."""

    def __init__(self, operation: str, source_market: str):
        """Initialize the run logger.

        Args:
            operation: "import" or "sync"
            source_market: Market slug the run applies to
        """
        self.operation = operation
        self.source_market = source_market
        self.logger = structlog.get_logger(f"etl.{operation}").bind(
            operation=operation,
            source_market=source_market,
        )

    def log_run_start(self, record_count: int, **counts):
        """Log the start of a run.

        Args:
            record_count: Number of raw records to process
            counts: Extra counts, e.g. removed URLs for a sync
        """
        self.logger.info("Run started", record_count=record_count, **counts)

    def log_record_skipped(self, url: str, reason: str):
        self.logger.info("Record skipped", url=url, reason=reason)

    def log_record_saved(self, url: str, action: str, images: int):
        self.logger.debug("Record saved", url=url, action=action, images=images)

    def log_record_failed(self, url: Optional[str], error: str):
        self.logger.warning("Record failed", url=url, error=error)

    def log_deactivation(self, requested: int, deactivated: int):
        """Log the bulk deactivation of removed listings.

        Args:
            requested: Number of removed URLs
            deactivated: Number of rows the update matched
        """
        self.logger.info("Removed listings deactivated", requested=requested, deactivated=deactivated)

    def log_run_complete(self, success: bool, summary: dict):
        """Log completion of a run.

        Args:
            success: Whether the run finished without errors
            summary: Summary counters
        """
        self.logger.info("Run completed", success=success, summary=summary)
