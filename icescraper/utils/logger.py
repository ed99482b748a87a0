"""
Structured Logger - JSON log lines for passes and outbound HTTP calls
"""
import json
import logging
from typing import Any, Dict, Optional

from icescraper import config
from icescraper.utils.timezone import get_local_time

SERVICE_NAME = "ice-calendar-sync"


def _stamp() -> Dict[str, Any]:
    return {
        "timestamp": get_local_time().isoformat(),
        "timezone": config.LOCAL_TIMEZONE,
    }


class StructuredLogger:
    """Emits one JSON object per message on a named logger"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)
        self.name = name

    def _emit(self, level: int, event_type: str, fields: Dict[str, Any]):
        entry = {**_stamp(), "event_type": event_type, "service": SERVICE_NAME, "logger": self.name}
        entry.update(fields)
        self.logger.log(level, json.dumps(entry, default=str))

    def log_sync_event(self, event_type: str, details: Dict[str, Any]):
        """A pass finished or failed; failures log at error level"""
        lowered = event_type.lower()
        if "error" in lowered or "failed" in lowered:
            level = logging.ERROR
        elif "warning" in lowered:
            level = logging.WARNING
        else:
            level = logging.INFO
        self._emit(level, event_type, details)

    def log_api_call(self, method: str, endpoint: str, status_code: Optional[int] = None,
                     duration_ms: Optional[float] = None, error: Optional[str] = None):
        """One booking site or calendar request"""
        fields: Dict[str, Any] = {"method": method, "endpoint": endpoint}
        if status_code is not None:
            fields["status_code"] = status_code
        if duration_ms is not None:
            fields["duration_ms"] = duration_ms
        if error:
            fields["error"] = error

        failed = bool(error) or (status_code is not None and status_code >= 400)
        self._emit(logging.ERROR if failed else logging.INFO, "api_call", fields)

    def log_performance(self, operation: str, duration_seconds: float,
                        item_count: Optional[int] = None, success: bool = True):
        fields: Dict[str, Any] = {
            "operation": operation,
            "duration_seconds": duration_seconds,
            "success": success,
        }
        if item_count is not None:
            fields["item_count"] = item_count
            fields["items_per_second"] = item_count / duration_seconds if duration_seconds > 0 else 0
        self._emit(logging.INFO, "performance", fields)


class JsonFormatter(logging.Formatter):
    """Wraps plain messages in JSON; messages that already are JSON pass through"""

    def format(self, record):
        message = record.getMessage()
        try:
            json.loads(message)
            return message
        except (json.JSONDecodeError, TypeError):
            pass

        entry = {**_stamp(), "level": record.levelname, "logger": record.name, "message": message}
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging():
    """Install the root handler once per process"""
    root = logging.getLogger()
    root.setLevel(config.LOG_LEVEL)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    if config.STRUCTURED_LOGGING:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
    root.addHandler(handler)
