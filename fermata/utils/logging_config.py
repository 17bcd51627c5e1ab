"""
Fermata Logging Configuration

structlog on top of the standard logging module. Every log record flows
through one processor chain and is rendered per destination:

- logs/fermata.log: JSON lines at the configured level (size rotated)
- logs/errors.log: JSON lines, errors only
- stdout: human-readable console output (optional)

Request ids are carried in contextvars so every line emitted while a
ranking request runs can be correlated.
"""

import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

# Loggers that are too chatty at INFO for a batch pipeline
QUIET_LOGGERS: Dict[str, int] = {
    "fermata.analyzers.phonetic_analyzer": logging.WARNING,
    "fermata.analyzers.semantic_analyzer": logging.WARNING,
    "fermata.analyzers.musicality_analyzer": logging.WARNING,
    "aiohttp": logging.WARNING,
    "aiohttp.client": logging.WARNING,
    "urllib3": logging.WARNING,
}

PRE_CHAIN = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
]


class FermataLogger:
    """Owns the root handlers and the structlog configuration."""

    def __init__(
        self,
        log_dir: str = "logs",
        log_level: str = "INFO",
        enable_console: bool = True,
        max_file_size: int = 5 * 1024 * 1024,
        backup_count: int = 3
    ):
        """
        Args:
            log_dir: Where the rotating log files are written
            log_level: Level name for the pipeline loggers
            enable_console: Also render to stdout
            max_file_size: Bytes per file before rotation
            backup_count: Rotated files kept per log
        """
        self.log_dir = Path(log_dir)
        self.level = logging.getLevelName(log_level.upper())
        if not isinstance(self.level, int):
            self.level = logging.INFO
        self.enable_console = enable_console
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.configure()

    def configure(self):
        structlog.configure(
            processors=PRE_CHAIN + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(self.level)

        json_renderer = structlog.processors.JSONRenderer(sort_keys=True)
        root.addHandler(self._file_handler("fermata.log", self.level, json_renderer))
        root.addHandler(self._file_handler("errors.log", logging.ERROR, json_renderer))

        if self.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setLevel(self.level)
            console.setFormatter(self._formatter(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())))
            root.addHandler(console)

        # DEBUG runs keep analyzer output but still mute HTTP libraries
        for name, level in QUIET_LOGGERS.items():
            if self.level == logging.DEBUG and name.startswith("fermata."):
                continue
            logging.getLogger(name).setLevel(level)

    def _file_handler(self, filename: str, level: int, renderer) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            self.log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(self._formatter(renderer))
        return handler

    @staticmethod
    def _formatter(renderer) -> structlog.stdlib.ProcessorFormatter:
        # foreign_pre_chain covers records from plain logging users (aiohttp)
        return structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=PRE_CHAIN,
        )

    def get_logger(self, name: str) -> structlog.stdlib.BoundLogger:
        return structlog.get_logger(name)

    def set_request_context(self, request_id: str, **context: Any):
        """Replace the bound context with a fresh one for a new request."""
        clear_contextvars()
        bind_contextvars(
            request_id=request_id,
            started_at=datetime.now(timezone.utc).isoformat(),
            **context
        )

    def log_performance(self, operation: str, duration: float, **kwargs):
        self.get_logger("fermata.performance").info(
            "timing",
            operation=operation,
            duration_ms=round(duration * 1000, 1),
            **kwargs
        )

    def log_error(self, error: Exception, context: Dict[str, Any], **kwargs):
        self.get_logger("fermata.errors").error(
            "stage_failed",
            error_type=type(error).__name__,
            error_message=str(error),
            context=context,
            **kwargs
        )


_logger_instance: Optional[FermataLogger] = None


def setup_logging(
    log_dir: str = "logs",
    log_level: str = "INFO",
    enable_console: bool = True,
    **kwargs
) -> FermataLogger:
    """Install the process-wide logging configuration and return it."""
    global _logger_instance
    _logger_instance = FermataLogger(
        log_dir=log_dir,
        log_level=log_level,
        enable_console=enable_console,
        **kwargs
    )
    return _logger_instance


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Logger from the installed configuration.

    Raises:
        RuntimeError: If setup_logging() has not run
    """
    if _logger_instance is None:
        raise RuntimeError("Logging not configured; call setup_logging() first")
    return _logger_instance.get_logger(name)


# The helpers below are no-ops until setup_logging() runs, so library use
# without logging configured stays silent.

def log_performance(operation: str, duration: float, **kwargs):
    if _logger_instance:
        _logger_instance.log_performance(operation, duration, **kwargs)


def log_error(error: Exception, context: Dict[str, Any], **kwargs):
    if _logger_instance:
        _logger_instance.log_error(error, context, **kwargs)


def set_request_context(request_id: str, **context: Any):
    if _logger_instance:
        _logger_instance.set_request_context(request_id, **context)
