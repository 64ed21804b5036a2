"""Logging configuration service for the Cosmic Archive checker.

All console output goes to stderr: stdout is reserved for the list of
fresh game JAR paths.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any

import structlog

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class LoggingService:
    """Service for configuring and managing application logging."""

    def __init__(
        self,
        log_level: str = "INFO",
        log_dir: Path | None = None,
    ) -> None:
        """Initialize the logging service.

        Args:
            log_level: The minimum log level to capture
            log_dir: Directory for log files (None for console only)
        """
        self.log_level = log_level.upper()
        self.log_dir = log_dir
        self.is_development = os.getenv("ENVIRONMENT", "development") == "development"

    def configure(self) -> None:
        """Configure structlog with appropriate processors and handlers."""
        self._configure_stdlib_logging()

        structlog.configure(
            processors=self._get_processors(),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=False,
        )

    def _configure_stdlib_logging(self) -> None:
        """Configure standard library logging handlers."""
        root_logger = logging.getLogger()
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        numeric_level = getattr(logging, self.log_level, logging.INFO)
        root_logger.setLevel(numeric_level)

        # Resolved at configure time so redirected stderr (tests, pipes) is honoured
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)

        if self.is_development:
            console_formatter = logging.Formatter(
                fmt="%(asctime)s [%(levelname)8s] %(name)s: %(message)s",
                datefmt="%H:%M:%S"
            )
        else:
            console_formatter = logging.Formatter("%(message)s")

        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

        if self.log_dir:
            self._setup_file_logging(root_logger, numeric_level)

        # httpx logs every request at INFO; keep it one level quieter than ours
        logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))

    def _setup_file_logging(self, root_logger: logging.Logger, level: int) -> None:
        """Set up file-based logging with rotation."""
        if not self.log_dir:
            return

        self.log_dir.mkdir(parents=True, exist_ok=True)

        file_formatter = logging.Formatter("%(message)s")

        app_log_path = self.log_dir / "app.log"
        file_handler = logging.handlers.RotatingFileHandler(
            filename=app_log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

        # ERROR and CRITICAL only
        error_log_path = self.log_dir / "error.log"
        error_handler = logging.handlers.RotatingFileHandler(
            filename=error_log_path,
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

    def _get_processors(self) -> list[Any]:
        """Get the appropriate structlog processors for the environment."""
        common_processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        if self.is_development and not self.log_dir:
            # Colours only when a human is watching
            return common_processors + [
                structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
            ]
        return common_processors + [
            structlog.processors.JSONRenderer()
        ]

    def get_logger(self, name: str | None = None) -> structlog.stdlib.BoundLogger:
        """Get a configured logger instance.

        Args:
            name: Logger name (defaults to calling module)

        Returns:
            Configured structlog logger
        """
        return structlog.stdlib.get_logger(name)


def resolve_log_level(log_level: str | None = None) -> str:
    """Pick the log level from an explicit value or the LOG_LEVEL variable.

    Unknown values fall back to INFO.
    """
    candidate = (log_level or os.getenv("LOG_LEVEL") or "INFO").upper()
    return candidate if candidate in VALID_LOG_LEVELS else "INFO"


def setup_logging(
    log_level: str | None = None,
    log_dir: Path | None = None,
    environment: str | None = None,
) -> LoggingService:
    """Set up application logging with the specified configuration.

    Args:
        log_level: Minimum log level to capture (defaults to $LOG_LEVEL, then INFO)
        log_dir: Directory for log files (None for console only)
        environment: Environment name (development/production)

    Returns:
        Configured LoggingService instance
    """
    if environment:
        os.environ["ENVIRONMENT"] = environment

    service = LoggingService(log_level=resolve_log_level(log_level), log_dir=log_dir)
    service.configure()
    return service
