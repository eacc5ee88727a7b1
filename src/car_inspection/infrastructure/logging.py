"""Structured JSON logging configuration for the car inspection service."""

import logging
import logging.handlers
import json
import sys
import uuid
from datetime import datetime
from typing import Optional
from contextvars import ContextVar
from pathlib import Path


SERVICE_NAME = "car-inspection-service"

# Correlation ID tracked across one async request
correlation_id_context: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

_RESERVED_RECORD_KEYS = frozenset({
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'lineno', 'funcName', 'created', 'msecs', 'relativeCreated',
    'thread', 'threadName', 'processName', 'process', 'message', 'exc_info',
    'exc_text', 'stack_info', 'correlation_id', 'taskName'
})


class CorrelationIDFilter(logging.Filter):
    """Add correlation ID to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_context.get() or "unknown"
        return True


class JSONFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    def __init__(self, service_name: str = SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": getattr(record, 'correlation_id', 'unknown'),
        }

        if record.module:
            log_entry["module"] = record.module
        if record.funcName and record.funcName != '<module>':
            log_entry["function"] = record.funcName
        if record.lineno:
            log_entry["line"] = record.lineno

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info)
            }

        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class LoggingConfig:
    """Centralized logging configuration."""

    def __init__(self,
                 log_level: str = "INFO",
                 service_name: str = SERVICE_NAME,
                 log_dir: Optional[str] = None,
                 max_file_size: int = 10 * 1024 * 1024,  # 10MB
                 backup_count: int = 5,
                 enable_console: bool = True,
                 enable_file: bool = True):
        """
        Initialize logging configuration.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            service_name: Service name for log entries and log file names
            log_dir: Directory for log files (defaults to logs/ in project root)
            max_file_size: Maximum size per log file in bytes
            backup_count: Number of rotated files to keep
            enable_console: Whether to log to stdout
            enable_file: Whether to log to rotating files
        """
        self.log_level = getattr(logging, log_level.upper(), logging.INFO)
        self.service_name = service_name
        self.max_file_size = max_file_size
        self.backup_count = backup_count
        self.enable_console = enable_console
        self.enable_file = enable_file

        if log_dir:
            self.log_dir = Path(log_dir)
        else:
            project_root = Path(__file__).parent.parent.parent.parent
            self.log_dir = project_root / "logs"

        if self.enable_file:
            self.log_dir.mkdir(parents=True, exist_ok=True)

    def setup_logging(self) -> None:
        """Configure the root logger."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
        root_logger.setLevel(self.log_level)

        correlation_filter = CorrelationIDFilter()
        json_formatter = JSONFormatter(service_name=self.service_name)

        if self.enable_console:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(self.log_level)
            console_handler.addFilter(correlation_filter)
            console_handler.setFormatter(json_formatter)
            root_logger.addHandler(console_handler)

        if self.enable_file:
            root_logger.addHandler(self._rotating_handler(
                self.log_dir / f"{self.service_name}.log", self.log_level,
                correlation_filter, json_formatter
            ))
            # ERROR and CRITICAL also go to their own file
            root_logger.addHandler(self._rotating_handler(
                self.log_dir / f"{self.service_name}-errors.log", logging.ERROR,
                correlation_filter, json_formatter
            ))

        self._configure_third_party_loggers()

    def _rotating_handler(
        self,
        filename: Path,
        level: int,
        correlation_filter: logging.Filter,
        formatter: logging.Formatter
    ) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            filename=filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.addFilter(correlation_filter)
        handler.setFormatter(formatter)
        return handler

    def _configure_third_party_loggers(self) -> None:
        """Reduce noise from third-party libraries."""
        for name in (
            'sqlalchemy.engine', 'sqlalchemy.dialects', 'sqlalchemy.pool', 'sqlalchemy.orm',
            'uvicorn.access', 'fastapi', 'asyncpg', 'reportlab',
        ):
            logging.getLogger(name).setLevel(logging.WARNING)


def generate_correlation_id() -> str:
    return str(uuid.uuid4())


def set_correlation_id(correlation_id: str) -> None:
    correlation_id_context.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return correlation_id_context.get()


def clear_correlation_id() -> None:
    correlation_id_context.set(None)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name."""
    return logging.getLogger(name)


def mask_token(token: Optional[str], visible: int = 6) -> str:
    """Shorten a secret token so it can appear in logs."""
    if not token:
        return ""
    if len(token) <= visible:
        return "***"
    return f"{token[:visible]}***"


def log_with_extra(logger: logging.Logger, level: int, message: str, **extra) -> None:
    """Log a message with extra fields."""
    logger.log(level, message, extra=extra)


def log_database_operation(logger: logging.Logger, operation: str, table: str, **extra) -> None:
    """Log a database operation."""
    log_with_extra(
        logger,
        logging.DEBUG,
        f"Database {operation}: {table}",
        db_operation=operation,
        db_table=table,
        **extra
    )


def log_authentication_attempt(logger: logging.Logger, email: str, success: bool, **extra) -> None:
    """Log an authentication attempt."""
    level = logging.INFO if success else logging.WARNING
    status = "successful" if success else "failed"
    log_with_extra(
        logger,
        level,
        f"Authentication attempt {status} for {email}",
        auth_email=email,
        auth_success=success,
        **extra
    )


def log_business_rule_violation(logger: logging.Logger, rule: str, details: str, **extra) -> None:
    """Log a business rule violation."""
    log_with_extra(
        logger,
        logging.WARNING,
        f"Business rule violation: {rule} - {details}",
        business_rule=rule,
        violation_details=details,
        **extra
    )
