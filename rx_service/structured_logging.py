"""
Structured logging for the prescription service.

One JSON object per log line, tagged with the request ID of the HTTP call
that produced it so a prescription run can be followed across the model,
translation and database calls it makes.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

SERVICE_NAME = "clinic-rx"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "urllib3", "aiosqlite")


def get_request_id() -> Optional[str]:
    """Get the current request ID from context."""
    return request_id_var.get()


def set_request_id(request_id: Optional[str] = None) -> str:
    """Set a request ID in context, generating a short one if not given."""
    if not request_id:
        request_id = uuid.uuid4().hex[:8]
    request_id_var.set(request_id)
    return request_id


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def __init__(self, service_name: str = SERVICE_NAME):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry["data"] = extra_data

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


_LOGGING_KWARGS = ("exc_info", "stack_info", "stacklevel", "extra")


class StructuredLogger(logging.LoggerAdapter):
    """Adapter that moves keyword arguments into the record's extra_data."""

    def __init__(self, name: str):
        super().__init__(logging.getLogger(name), {})

    def process(self, msg: Any, kwargs: dict) -> tuple[Any, dict]:
        data = {k: kwargs.pop(k) for k in list(kwargs) if k not in _LOGGING_KWARGS}
        if data:
            kwargs["extra"] = {**kwargs.get("extra", {}), "extra_data": data}
        return msg, kwargs


def setup_logging(
    level: str | int = logging.INFO,
    service_name: str = SERVICE_NAME,
    use_json: bool = True,
) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Level name ("INFO") or number
        service_name: Value of the "service" field in JSON lines
        use_json: JSON lines when True, plain text otherwise
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if use_json:
        handler.setFormatter(JSONFormatter(service_name))
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def log_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_ip: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    """Write one access-log line for an HTTP request."""
    logger = StructuredLogger("http")

    data: dict[str, Any] = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": round(duration_ms, 2),
    }
    if client_ip:
        data["client_ip"] = mask_ip(client_ip)

    if error or status_code >= 500:
        if error:
            data["error"] = error
        logger.error(f"{method} {path} {status_code}", **data)
    else:
        logger.info(f"{method} {path} {status_code}", **data)


def mask_ip(ip: str) -> str:
    """Keep the network half of an IPv4 address, hide the rest."""
    parts = ip.split(".")
    if len(parts) == 4:
        return f"{parts[0]}.{parts[1]}.xxx.xxx"
    return "xxx"
