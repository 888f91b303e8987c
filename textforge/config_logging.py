#!/usr/bin/env python3
"""
TextForge Configuration & Logging Module
========================================
Centralized configuration, structured logging, and the error taxonomy
shared by every engine component.

Configuration is read from TEXTFORGE_* environment variables. It only
drives ambient behavior (log output, worker pool size, default values);
an operation called with explicit arguments behaves the same under any
configuration.
"""

import os
import sys
import json
import logging
import time
import functools
import threading
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Callable, List, Tuple
from pathlib import Path
from dataclasses import dataclass
from contextlib import contextmanager

__version__ = "1.0.0"

# =============================================================================
# CONFIGURATION CONSTANTS
# =============================================================================
DEFAULT_BATCH_WORKERS = 1
DEFAULT_INDENT_WIDTH = 2
DEFAULT_SUMMARY_SENTENCES = 3
DEFAULT_MAX_RUNS = 100
DEFAULT_RUN_TTL = 3600              # seconds a finished batch run is kept
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

VALID_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')
VALID_LOG_FORMATS = ('json', 'text')


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got {value!r}", field=name)


# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================

@dataclass
class EngineConfig:
    """Engine configuration with library-friendly defaults."""

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # Options: json, text
    log_to_console: bool = True
    log_file: Optional[Path] = None

    # Batch processing
    batch_workers: int = DEFAULT_BATCH_WORKERS
    max_runs: int = DEFAULT_MAX_RUNS
    run_ttl: float = DEFAULT_RUN_TTL

    # Operation defaults
    indent_width: int = DEFAULT_INDENT_WIDTH
    summary_sentences: int = DEFAULT_SUMMARY_SENTENCES

    def __post_init__(self):
        self.log_level = (self.log_level or "INFO").upper()
        self.log_format = (self.log_format or "text").lower()
        if self.log_file is not None and not isinstance(self.log_file, Path):
            self.log_file = Path(self.log_file)

    @classmethod
    def from_env(cls) -> 'EngineConfig':
        """Load configuration from environment variables."""
        log_file = os.environ.get('TEXTFORGE_LOG_FILE')
        return cls(
            log_level=os.environ.get('TEXTFORGE_LOG_LEVEL', 'INFO'),
            log_format=os.environ.get('TEXTFORGE_LOG_FORMAT', 'text'),
            log_to_console=_env_bool('TEXTFORGE_LOG_CONSOLE', True),
            log_file=Path(log_file) if log_file else None,
            batch_workers=_env_int('TEXTFORGE_BATCH_WORKERS', DEFAULT_BATCH_WORKERS),
            max_runs=_env_int('TEXTFORGE_MAX_RUNS', DEFAULT_MAX_RUNS),
            run_ttl=_env_int('TEXTFORGE_RUN_TTL', DEFAULT_RUN_TTL),
            indent_width=_env_int('TEXTFORGE_INDENT_WIDTH', DEFAULT_INDENT_WIDTH),
            summary_sentences=_env_int('TEXTFORGE_SUMMARY_SENTENCES', DEFAULT_SUMMARY_SENTENCES),
        )

    def validate(self) -> Tuple[bool, List[str]]:
        """Validate configuration and return (is_valid, errors)."""
        errors = []

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"Invalid log_level: {self.log_level}. Must be one of {', '.join(VALID_LOG_LEVELS)}")

        if self.log_format not in VALID_LOG_FORMATS:
            errors.append(f"Invalid log_format: {self.log_format}. Must be 'json' or 'text'")

        if self.batch_workers < 1:
            errors.append("batch_workers must be at least 1")

        if self.indent_width < 1:
            errors.append("indent_width must be at least 1")

        if self.summary_sentences < 0:
            errors.append("summary_sentences cannot be negative")

        if self.max_runs < 1:
            errors.append("max_runs must be at least 1")

        if self.run_ttl < 0:
            errors.append("run_ttl cannot be negative")

        return (len(errors) == 0, errors)


# Global config instance
_config: Optional[EngineConfig] = None
_config_lock = threading.Lock()


def get_config() -> EngineConfig:
    """Get or create the global configuration."""
    global _config
    with _config_lock:
        if _config is None:
            _config = EngineConfig.from_env()
        return _config


def reset_config():
    """Reset the global configuration (for testing)."""
    global _config
    with _config_lock:
        _config = None


# =============================================================================
# STRUCTURED LOGGING
# =============================================================================

# LogRecord attributes that never count as structured context
_RESERVED_RECORD_KEYS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'pathname', 'process', 'processName', 'relativeCreated',
    'stack_info', 'thread', 'threadName', 'exc_info', 'exc_text',
    'message', 'taskName', 'asctime',
))


class StructuredLogger:
    """Thread-safe structured logger with correlation IDs."""

    _local = threading.local()

    def __init__(self, name: str, config: Optional[EngineConfig] = None):
        self.name = name
        self.config = config or get_config()
        self._setup_logger()

    def _setup_logger(self):
        """Configure the underlying Python logger."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(getattr(logging, self.config.log_level, logging.INFO))
        self.logger.handlers.clear()

        if self.config.log_format == 'json':
            formatter = JsonFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
            )

        if self.config.log_to_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(formatter)
            self.logger.addHandler(console_handler)

        # Only opt-in file output; the engine never writes files on its own
        if self.config.log_file is not None:
            from logging.handlers import RotatingFileHandler
            file_handler = RotatingFileHandler(
                self.config.log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_BACKUP_COUNT,
                encoding='utf-8'
            )
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    @classmethod
    def set_correlation_id(cls, correlation_id: Optional[str]):
        """Set correlation ID for current thread."""
        cls._local.correlation_id = correlation_id

    @classmethod
    def get_correlation_id(cls) -> Optional[str]:
        """Get correlation ID for current thread."""
        return getattr(cls._local, 'correlation_id', None)

    def _log(self, level: int, message: str, exc_info: bool = False, **kwargs):
        extra = {'correlation_id': self.get_correlation_id()}
        extra.update(kwargs)
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **kwargs):
        """Log debug message."""
        self._log(logging.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs):
        """Log info message."""
        self._log(logging.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message."""
        self._log(logging.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs):
        """Log error message with optional exception info."""
        self._log(logging.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs):
        """Log exception with full traceback."""
        self.error(message, exc_info=True, **kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message."""
        self._log(logging.CRITICAL, message, **kwargs)

    @contextmanager
    def log_operation(self, operation: str, **context):
        """Context manager for logging operation start/end with timing."""
        start_time = time.time()
        self.info(f"{operation} started", operation=operation, status='started', **context)
        try:
            yield
            duration_ms = (time.time() - start_time) * 1000
            self.info(f"{operation} completed", operation=operation, status='completed',
                      duration_ms=round(duration_ms, 2), **context)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self.error(f"{operation} failed: {e}", operation=operation, status='failed',
                       duration_ms=round(duration_ms, 2), exc_info=True, **context)
            raise


class JsonFormatter(logging.Formatter):
    """JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.exc_info:
            log_data['traceback'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(name, get_config())


# =============================================================================
# ERROR HANDLING
# =============================================================================

class TextForgeError(Exception):
    """Base exception for the text processing engine."""

    def __init__(self, message: str, code: str = "UNKNOWN_ERROR",
                 details: Optional[Dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a serializable error payload."""
        return {
            'success': False,
            'error': {
                'code': self.code,
                'message': self.message,
                'details': self.details
            }
        }


class ValidationError(TextForgeError):
    """Invalid argument supplied by the caller."""
    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(message, code="VALIDATION_ERROR",
                         details={'field': field, **kwargs})
        self.field = field


class InvalidPatternError(TextForgeError):
    """A regular expression (or its replacement template) failed to compile."""
    def __init__(self, pattern: Any, message: str, **kwargs):
        super().__init__(f"Invalid pattern {pattern!r}: {message}", code="INVALID_PATTERN",
                         details={'pattern': pattern, 'reason': message, **kwargs})
        self.pattern = pattern
        self.reason = message


class ProcessingError(TextForgeError):
    """Unexpected failure inside an analysis or transform step."""
    def __init__(self, message: str, stage: Optional[str] = None, **kwargs):
        super().__init__(message, code="PROCESSING_ERROR",
                         details={'stage': stage, **kwargs})
        self.stage = stage


class BatchItemError(TextForgeError):
    """A single document failed inside a batch run."""
    def __init__(self, document: Any, cause: BaseException):
        doc_id = getattr(document, 'id', None)
        doc_name = getattr(document, 'name', None)
        super().__init__(
            f"Processing failed for document {doc_name!r}: {cause}",
            code="BATCH_ITEM_ERROR",
            details={
                'document_id': doc_id,
                'document_name': doc_name,
                'cause_type': type(cause).__name__,
                'cause': str(cause),
            }
        )
        self.document = document
        self.cause = cause


def handle_errors(stage: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator turning unexpected exceptions into ProcessingError."""
    def decorator(func: Callable):
        op_stage = stage or func.__name__

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except TextForgeError:
                raise
            except Exception as e:
                _logger = logger or get_logger(func.__module__)
                _logger.exception(f"Unexpected error in {op_stage}: {e}", stage=op_stage)
                raise ProcessingError(
                    f"{op_stage} failed: {type(e).__name__}: {e}", stage=op_stage
                ) from e
        return wrapper
    return decorator
