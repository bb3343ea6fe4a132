"""
Structured logging configuration for ingest runs

Provides JSON-formatted logging with structured fields for:
- Ledger cross-check diagnostics
- Skipped lines and rejected files
- Run lifecycle events
"""

import json
import logging
import logging.config
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'message', 'asctime', 'taskName',
}


@dataclass
class RunContext:
    """Context shared by every event of one extraction run"""
    run_id: str
    component: Optional[str] = None

    @classmethod
    def create(cls, **kwargs) -> 'RunContext':
        run_id = kwargs.get('run_id', f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}_{uuid.uuid4().hex[:8]}")
        return cls(
            run_id=run_id,
            component=kwargs.get('component')
        )


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def __init__(self, extra_fields: Optional[Dict[str, Any]] = None):
        super().__init__()
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.thread and record.thread != threading.main_thread().ident:
            log_data['thread_id'] = record.thread

        log_data.update(self.extra_fields)

        extra_data = {}
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                # Only include JSON-serializable values
                json.dumps(value)
                extra_data[key] = value
            except (TypeError, ValueError):
                extra_data[key] = str(value)

        if extra_data:
            log_data['extra'] = extra_data

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_data, default=str, ensure_ascii=False, separators=(',', ':'))


class IngestLogger:
    """
    Structured logger for ingest diagnostics

    Every event carries ``event_type`` and ``run_id`` so a run's diagnostics
    can be filtered out of a shared log stream.
    """

    def __init__(self, logger_name: str, context: Optional[RunContext] = None):
        self.logger = logging.getLogger(logger_name)
        self.context = context or RunContext.create(component=logger_name.split('.')[-1])

    def _log_structured(self, level: int, event_type: str, message: str, **kwargs):
        log_data = {
            'event_type': event_type,
            'run_id': self.context.run_id,
            'component': self.context.component,
            **kwargs
        }
        self.logger.log(level, message, extra=log_data)

    def ledger_mismatch(self, security_code: str, vendor_value: int, local_value: int,
                        date: str, **kwargs):
        """Log a vendor/local position disagreement"""
        self._log_structured(
            level=logging.WARNING,
            event_type="ledger.mismatch",
            message=(f"Position mismatch for {security_code} on {date}: "
                     f"vendor={vendor_value} local={local_value}"),
            security_code=security_code,
            vendor_value=vendor_value,
            local_value=local_value,
            trade_date=date,
            **kwargs
        )

    def line_skipped(self, path: str, line_no: int, reason: str, **kwargs):
        """Log a line dropped because it could not be parsed"""
        self._log_structured(
            level=logging.WARNING,
            event_type="ingest.line_skipped",
            message=f"Skipped {path}:{line_no}: {reason}",
            path=path,
            line_no=line_no,
            reason=reason,
            **kwargs
        )

    def file_event(self, path: str, status: str, message: str, **kwargs):
        """Log file lifecycle event"""
        level = logging.ERROR if status in ['failed', 'rejected'] else logging.INFO
        self._log_structured(
            level=level,
            event_type=f"ingest.file_{status}",
            message=message,
            path=path,
            **kwargs
        )


def configure_structured_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    extra_fields: Optional[Dict[str, Any]] = None
):
    """
    Configure logging for the application

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        json_format: Whether to use JSON formatting
        extra_fields: Extra fields to include in all log messages
    """
    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {},
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': log_level,
                'stream': 'ext://sys.stderr'
            }
        },
        'root': {
            'level': log_level,
            'handlers': ['console']
        }
    }

    if json_format:
        config['formatters']['structured'] = {
            '()': StructuredLogFormatter,
            'extra_fields': extra_fields or {}
        }
        formatter_name = 'structured'
    else:
        config['formatters']['standard'] = {
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S'
        }
        formatter_name = 'standard'
    config['handlers']['console']['formatter'] = formatter_name

    if log_file:
        config['handlers']['file'] = {
            'class': 'logging.handlers.RotatingFileHandler',
            'level': log_level,
            'formatter': formatter_name,
            'filename': log_file,
            'encoding': 'utf-8',
            'maxBytes': 10 * 1024 * 1024,  # 10MB
            'backupCount': 5
        }
        config['root']['handlers'].append('file')

    logging.config.dictConfig(config)


def get_ingest_logger(name: str, context: Optional[RunContext] = None) -> IngestLogger:
    """Get an ingest logger with optional context"""
    return IngestLogger(name, context)
