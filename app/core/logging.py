import logging
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

# Correlation id of the analysis request being served, set by CorrelationIdMiddleware
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_FORMAT = "%(timestamp) %(level) %(name) %(message)"
NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class AnalyticsJsonFormatter(jsonlogger.JsonFormatter):
    """
    One JSON object per log line, stamped with the service identity and the
    current request id so analyzer runs can be traced across services.

    Scope fields passed through ``extra`` (``company_id``, ``manager_id``,
    ``cycle_id``) are kept when set and dropped when None.
    """

    SCOPE_FIELDS = ("company_id", "manager_id", "cycle_id")

    def __init__(self, *args, service: str = "", environment: str = "", **kwargs):
        super().__init__(*args, **kwargs)
        self.service = service
        self.environment = environment

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        req_id = request_id_var.get()
        if req_id:
            log_record["request_id"] = req_id

        # Time the record was created, not the time it was formatted
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        if self.service:
            log_record["service"] = self.service
        if self.environment:
            log_record["environment"] = self.environment

        for field in self.SCOPE_FIELDS:
            if field in log_record and log_record[field] is None:
                del log_record[field]


def setup_logging(level: str = "INFO", service: Optional[str] = None, environment: Optional[str] = None):
    root = logging.getLogger()
    if any(isinstance(h.formatter, AnalyticsJsonFormatter) for h in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(AnalyticsJsonFormatter(LOG_FORMAT, service=service or "", environment=environment or ""))
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
