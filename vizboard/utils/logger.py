# vizboard/utils/logger.py
import logging
import sys
import time
import structlog
from typing import Any, Dict, Optional
from vizboard.core.config import settings


def setup_logging():
    """Route structlog through stdlib logging; JSON lines when LOG_JSON_FORMAT is set"""
    logging.basicConfig(
        level=getattr(logging, settings.logging.level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stdout,
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    processors.append(
        structlog.processors.JSONRenderer()
        if settings.logging.json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def bind_request_context(**kwargs):
    """Attach fields (request id, method, path) to every log line of the current request"""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context():
    structlog.contextvars.clear_contextvars()


class Logger:
    """Thin wrapper over a structlog logger with per-instance context"""

    def __init__(self, name: str):
        self.logger = structlog.get_logger(name)
        self._context: Dict[str, Any] = {}

    def bind(self, **kwargs) -> "Logger":
        """Return a child logger carrying extra context"""
        child = Logger.__new__(Logger)
        child.logger = self.logger
        child._context = {**self._context, **kwargs}
        return child

    def info(self, message: str, **kwargs):
        self.logger.info(message, **self._merge_context(kwargs))

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, **self._merge_context(kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, **self._merge_context(kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(message, **self._merge_context(kwargs))

    def exception(self, message: str, **kwargs):
        """Log at error level with the active traceback"""
        self.logger.exception(message, **self._merge_context(kwargs))

    def _merge_context(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        return {**self._context, **kwargs}

    def log_api_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        user_id: Optional[str] = None,
        **kwargs,
    ):
        """One line per HTTP request; 5xx responses are logged as errors"""
        log = self.error if status_code >= 500 else self.info
        log(
            "API Request",
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
            user_id=user_id,
            **kwargs,
        )

    def log_data_change(
        self,
        action: str,
        resource: str,
        name: str,
        user_id: Optional[str] = None,
        **kwargs,
    ):
        """Record a create/update/delete of a dataset, dashboard or setting"""
        self.info(
            f"{resource} {action}",
            resource=resource,
            action=action,
            name=name,
            user_id=user_id,
            **kwargs,
        )

    def log_auth_event(self, event: str, success: bool, user_id: Optional[str] = None, **kwargs):
        """Authentication outcomes; failures never carry the submitted password"""
        log = self.info if success else self.warning
        log(f"Auth {event}", auth_event=event, success=success, user_id=user_id, **kwargs)


def get_logger(name: str) -> Logger:
    """Get a logger instance for a module"""
    return Logger(name)


setup_logging()


class Timer:
    """Context manager that logs how long a block took

    Callers may set ``rows`` inside the block to have it reported.
    """

    def __init__(self, logger: Logger, operation_name: str, **context):
        self.logger = logger
        self.operation_name = operation_name
        self.context = context
        self.rows: Optional[int] = None
        self.duration_ms: Optional[float] = None
        self._start: Optional[float] = None

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = round((time.perf_counter() - self._start) * 1000, 2)
        fields = dict(self.context, duration_ms=self.duration_ms)
        if self.rows is not None:
            fields["rows"] = self.rows

        if exc_type:
            self.logger.warning(
                f"Operation failed: {self.operation_name}",
                error=str(exc_val),
                **fields,
            )
        else:
            self.logger.debug(f"Operation completed: {self.operation_name}", **fields)
