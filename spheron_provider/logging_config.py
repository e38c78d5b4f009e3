"""Logging configuration and setup."""

import logging
import logging.handlers
import json
from typing import Dict, Any, Optional
from datetime import datetime, timezone
from spheron_provider.config import config


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        # Add extra fields if present
        if hasattr(record, 'resource_type'):
            log_entry['resource_type'] = record.resource_type
        if hasattr(record, 'resource_id'):
            log_entry['resource_id'] = record.resource_id
        if hasattr(record, 'operation'):
            log_entry['operation'] = record.operation
        if hasattr(record, 'success'):
            log_entry['success'] = record.success

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class OperationLogger:
    """Logger for resource lifecycle operations."""

    def __init__(self):
        self.logger = logging.getLogger('spheron_provider.operations')

    def log_operation(self, resource_type: str, operation: str,
                      resource_id: Optional[str] = None, success: bool = True,
                      details: Dict[str, Any] = None):
        """Log a create/read/update/delete/import operation on a resource."""
        extra = {
            'resource_type': resource_type,
            'resource_id': resource_id or 'unknown',
            'operation': operation,
            'success': success
        }

        outcome = "completed" if success else "failed"
        message = f"Resource operation {operation} {outcome} for {resource_type} {resource_id or ''}".rstrip()
        if details:
            message += f" - Details: {json.dumps(details, default=str)}"

        if success:
            self.logger.debug(message, extra=extra)
        else:
            self.logger.warning(message, extra=extra)


def setup_logging(level: Optional[str] = None):
    """Set up logging configuration."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or config.logging.level).upper()))

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    # File handler if configured
    if config.logging.file_path:
        file_handler = logging.handlers.RotatingFileHandler(
            config.logging.file_path,
            maxBytes=config.logging.max_file_size,
            backupCount=config.logging.backup_count
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    # Set specific logger levels
    logging.getLogger('spheron_provider').setLevel(logging.DEBUG)
    logging.getLogger('urllib3').setLevel(logging.WARNING)


# Initialize operation logger
operation_logger = OperationLogger()
