"""
Centralized Error Handling and Logging
Failures inside a run are recorded as data; this module gives them a
consistent structured log entry and message format.
"""

import json
import logging
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union
from contextvars import ContextVar

# Context variables for run tracing
trace_id_var: ContextVar[str] = ContextVar('trace_id', default='')
scenario_context_var: ContextVar[str] = ContextVar('scenario_context', default='')

logger = logging.getLogger(__name__)

class ErrorHandlingConfig:
    """Centralized configuration for error logging behavior"""

    # Security settings
    SANITIZE_SENSITIVE_FIELDS = True
    SENSITIVE_FIELD_PATTERNS = [
        'password', 'token', 'key', 'secret', 'authorization',
        'auth', 'bearer', 'credential', 'api_key'
    ]

    MAX_VALUE_LOG_SIZE = 5000  # Truncate large values

    @classmethod
    def is_sensitive_field(cls, field_name: str) -> bool:
        """Check if a field contains sensitive data"""
        field_lower = field_name.lower()
        return any(pattern in field_lower for pattern in cls.SENSITIVE_FIELD_PATTERNS)

    @classmethod
    def sanitize_data(cls, data: Union[Dict, str, Any]) -> Any:
        """Recursively sanitize sensitive data from logs"""
        if not cls.SANITIZE_SENSITIVE_FIELDS:
            return data

        if isinstance(data, dict):
            return {
                key: "***REDACTED***" if cls.is_sensitive_field(str(key)) else cls.sanitize_data(value)
                for key, value in data.items()
            }
        elif isinstance(data, (list, tuple)):
            return [cls.sanitize_data(item) for item in data]
        elif isinstance(data, str) and len(data) > cls.MAX_VALUE_LOG_SIZE:
            return data[:cls.MAX_VALUE_LOG_SIZE] + "...[TRUNCATED]"
        else:
            return data

def describe_exception(exc: BaseException) -> str:
    """Message of an exception, falling back to its class name"""
    message = str(exc)
    return message if message else type(exc).__name__

class StructuredLogger:
    """Structured logging with consistent format and context"""

    @staticmethod
    def log_error(
        error_type: str,
        message: str,
        exception: Optional[BaseException] = None,
        extra_context: Optional[Dict] = None,
        include_traceback: bool = False,
        level: int = logging.ERROR
    ) -> str:
        """Log structured error with full context, returning its trace id"""

        trace_id = str(uuid.uuid4())[:8]
        trace_id_var.set(trace_id)

        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "trace_id": trace_id,
            "error_type": error_type,
            "message": message,
            "level": logging.getLevelName(level)
        }

        if exception:
            log_entry["exception"] = {
                "type": type(exception).__name__,
                "details": describe_exception(exception),
                "module": getattr(exception, '__module__', 'unknown')
            }

            if include_traceback:
                log_entry["exception"]["traceback"] = "".join(
                    traceback.format_exception(type(exception), exception, exception.__traceback__)
                )

        if extra_context:
            log_entry["context"] = ErrorHandlingConfig.sanitize_data(extra_context)

        scenario_context = scenario_context_var.get('')
        if scenario_context:
            log_entry["scenario_context"] = scenario_context

        logger.log(level, json.dumps(log_entry, default=str))

        return trace_id
