"""
Structured logging for the developer helper modules.

Other modules log through ``log_warning``/``log_error`` and friends; the first
call configures structlog with defaults unless ``configure_logging`` already ran.
"""

import sys
import structlog
import logging
import threading
import uuid
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, Optional, Union
from contextvars import ContextVar

# Context variables for correlation IDs
correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar('user_id', default=None)

_LEVELS: Dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "information": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
    "fatal": logging.CRITICAL,
}

_configure_lock = threading.RLock()
_configured = False
_service_name = "developer-helper"
_file_handler: Optional[logging.Handler] = None


def _resolve_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        if level not in _LEVELS.values():
            raise ValueError(f"Unknown log level: {level}")
        return level
    try:
        return _LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Unknown log level: {level}") from None


def configure_logging(
    service_name: str = "developer-helper",
    log_level: str = "info",
    log_file: Optional[str] = None,
    json_logs: bool = True,
    retained_file_count: int = 31,
) -> None:
    """Configure structured logging.

    ``log_file`` enables a file handler rotated at midnight that keeps
    ``retained_file_count`` old files.
    """
    global _configured, _service_name, _file_handler

    with _configure_lock:
        _service_name = service_name
        level = _resolve_level(log_level)
        renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

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
                add_service_context,
                add_correlation_context,
                renderer,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        # Configure standard library logging
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=level,
        )
        root = logging.getLogger()
        root.setLevel(level)

        if _file_handler is not None:
            root.removeHandler(_file_handler)
            _file_handler.close()
            _file_handler = None

        if log_file:
            _file_handler = TimedRotatingFileHandler(
                log_file,
                when="midnight",
                backupCount=retained_file_count,
                encoding="utf-8",
                delay=True,
            )
            _file_handler.setFormatter(logging.Formatter("%(message)s"))
            root.addHandler(_file_handler)

        _configured = True


def ensure_configured() -> None:
    """Configure logging from settings if nobody has done so yet."""
    if _configured:
        return

    from .config import get_config

    config = get_config()
    with _configure_lock:
        if _configured:
            return
        configure_logging(
            service_name=config.service_name,
            log_level=config.log_level,
            log_file=config.log_file,
            json_logs=config.log_json,
        )


def is_configured() -> bool:
    return _configured


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    event_dict.setdefault("service", _service_name)
    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add correlation context to log events."""
    correlation_id = correlation_id_var.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id

    user_id = user_id_var.get()
    if user_id:
        event_dict["user_id"] = user_id

    return event_dict


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """Set correlation ID in context."""
    if correlation_id is None:
        correlation_id = str(uuid.uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def set_user_context(user_id: Optional[str] = None):
    """Set user context in logging."""
    if user_id:
        user_id_var.set(user_id)


def clear_context():
    """Clear all context variables."""
    correlation_id_var.set(None)
    user_id_var.set(None)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


_logger = get_logger("developer_helper")


def log(level: Union[str, int], message: str, exc_info: Optional[BaseException] = None, **kwargs: Any) -> None:
    """Log ``message`` at an arbitrary level."""
    ensure_configured()
    if exc_info is not None:
        kwargs["exc_info"] = exc_info
    _logger.log(_resolve_level(level), message, **kwargs)


def log_debug(message: str, **kwargs: Any) -> None:
    ensure_configured()
    _logger.debug(message, **kwargs)


def log_info(message: str, **kwargs: Any) -> None:
    ensure_configured()
    _logger.info(message, **kwargs)


def log_warning(message: str, **kwargs: Any) -> None:
    ensure_configured()
    _logger.warning(message, **kwargs)


def log_error(message: str, exc_info: Optional[BaseException] = None, **kwargs: Any) -> None:
    """Log an error, with the exception's traceback when one is given."""
    ensure_configured()
    if exc_info is not None:
        kwargs["exc_info"] = exc_info
    _logger.error(message, **kwargs)


def log_critical(message: str, exc_info: Optional[BaseException] = None, **kwargs: Any) -> None:
    ensure_configured()
    if exc_info is not None:
        kwargs["exc_info"] = exc_info
    _logger.critical(message, **kwargs)
