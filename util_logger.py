"""
Unified Logger System.

JSON-only structured logging for the batch submission pipeline.

Design Principles:
    - Strong typing with dataclasses (stdlib only)
    - Enum safety for categories
    - Component-specific loggers
    - Clean factory pattern

Log records go to stderr so that stdout stays free for the run report
printed by the CLI.

Exports:
    ComponentType: Enum for component types
    LogLevel: Enum for log levels
    LogContext: Logging context dataclass
    LoggerFactory: Factory for creating loggers
    log_exceptions: Exception logging decorator (sync and async)

Dependencies:
    Standard library only (logging, enum, dataclasses, json)
"""

from enum import Enum
from typing import Optional, Dict, Any
from datetime import datetime, timezone
from dataclasses import dataclass
import inspect
import logging
import sys
import os
import json
import traceback
from functools import wraps


# ============================================================================
# COMPONENT TYPES
# ============================================================================

class ComponentType(Enum):
    """
    Component types aligned with the layers of the pipeline.

    NO "UTIL" or other non-architectural types.
    """
    CONTROLLER = "controller"  # Run orchestration
    SERVICE = "service"        # Builder, submitter, router
    REPOSITORY = "repository"  # Blob storage access
    ADAPTER = "adapter"        # Compute backend integration
    FACTORY = "factory"        # Object creation
    TRIGGER = "trigger"        # CLI entry point
    VALIDATOR = "validator"    # Config and input validation


# ============================================================================
# LOG LEVELS
# ============================================================================

class LogLevel(Enum):
    """Standard Python log levels as enum for type safety."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_python_level(self) -> int:
        """Convert to Python logging level constant."""
        return getattr(logging, self.value)

    @classmethod
    def from_string(cls, level: str) -> 'LogLevel':
        """Create from string, case-insensitive."""
        return cls[level.upper()]


# ============================================================================
# LOG CONTEXT
# ============================================================================

@dataclass
class LogContext:
    """Context for correlating log lines of one run."""
    job_id: Optional[str] = None
    pool_id: Optional[str] = None
    task_id: Optional[str] = None
    correlation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            k: v for k, v in {
                'job_id': self.job_id,
                'pool_id': self.pool_id,
                'task_id': self.task_id,
                'correlation_id': self.correlation_id,
            }.items() if v is not None
        }


# ============================================================================
# COMPONENT CONFIGURATION
# ============================================================================

@dataclass
class ComponentConfig:
    """Configuration for component-specific logging."""
    component_type: ComponentType
    log_level: LogLevel = LogLevel.INFO
    enable_debug_context: bool = False


# ============================================================================
# JSON FORMATTER
# ============================================================================

class JSONFormatter(logging.Formatter):
    """One JSON object per record; custom dimensions under customDimensions."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if hasattr(record, 'custom_dimensions'):
            log_obj['customDimensions'] = record.custom_dimensions

        if record.exc_info:
            log_obj['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_obj, default=str)


# ============================================================================
# LOGGER FACTORY
# ============================================================================

class LoggerFactory:
    """
    Factory for creating component-specific loggers.

    Example:
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "JobSubmitter")
        logger.info("Submitting tasks")
    """

    _default_level = LogLevel.DEBUG if os.getenv('DEBUG_MODE', '').lower() == 'true' else LogLevel.INFO

    DEFAULT_CONFIGS = {
        ComponentType.CONTROLLER: ComponentConfig(ComponentType.CONTROLLER, _default_level, True),
        ComponentType.SERVICE: ComponentConfig(ComponentType.SERVICE, _default_level),
        ComponentType.REPOSITORY: ComponentConfig(ComponentType.REPOSITORY, _default_level),
        ComponentType.ADAPTER: ComponentConfig(ComponentType.ADAPTER, _default_level),
        ComponentType.FACTORY: ComponentConfig(ComponentType.FACTORY, _default_level),
        ComponentType.TRIGGER: ComponentConfig(ComponentType.TRIGGER, _default_level),
        ComponentType.VALIDATOR: ComponentConfig(ComponentType.VALIDATOR, _default_level),
    }

    _created: Dict[str, logging.Logger] = {}

    @classmethod
    def create_logger(
        cls,
        component_type: ComponentType,
        name: str,
        context: Optional[LogContext] = None,
        config: Optional[ComponentConfig] = None
    ) -> logging.Logger:
        """
        Create a logger for a specific component.

        Args:
            component_type: Type of component
            name: Component name (e.g., "JobSubmitter")
            context: Optional log context added to every record
            config: Optional custom configuration

        Returns:
            Configured Python logger
        """
        if config is None:
            config = cls.DEFAULT_CONFIGS.get(component_type, ComponentConfig(component_type=component_type))

        logger_name = f"{component_type.value}.{name}"
        logger = logging.getLogger(logger_name)
        log_level = config.log_level.to_python_level()
        logger.setLevel(log_level)

        if not any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers):
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(JSONFormatter())
            logger.addHandler(handler)

        # Propagate so callers (and pytest caplog) can attach root handlers
        logger.propagate = True

        base_dims = {'component_type': component_type.value, 'component_name': name}
        if context:
            base_dims.update(context.to_dict())
        logger._base_dimensions = base_dims

        if not hasattr(logger, '_context_wrapped'):
            original_log = logger._log

            def log_with_context(level, msg, args, exc_info=None, extra=None, stack_info=False, stacklevel=1):
                extra = dict(extra) if extra else {}
                custom_dims = dict(logger._base_dimensions)
                if 'custom_dimensions' in extra:
                    custom_dims.update(extra['custom_dimensions'])
                extra['custom_dimensions'] = custom_dims
                original_log(level, msg, args, exc_info=exc_info, extra=extra,
                             stack_info=stack_info, stacklevel=stacklevel + 1)

            logger._log = log_with_context
            logger._context_wrapped = True

        cls._created[logger_name] = logger
        return logger

    @classmethod
    def create_with_context(
        cls,
        component_type: ComponentType,
        name: str,
        job_id: Optional[str] = None,
        pool_id: Optional[str] = None,
        task_id: Optional[str] = None
    ) -> logging.Logger:
        """
        Create logger with job/pool context.

        The context is stored on the named logger, so the latest call wins
        for that name.
        """
        context = LogContext(
            job_id=job_id,
            pool_id=pool_id,
            task_id=task_id
        ) if any([job_id, pool_id, task_id]) else None

        return cls.create_logger(component_type=component_type, name=name, context=context)

    @classmethod
    def set_level(cls, level: str) -> None:
        """Apply a level (e.g. from LOG_LEVEL) to every logger created so far and future defaults."""
        log_level = LogLevel.from_string(level)
        for component_type, component_config in cls.DEFAULT_CONFIGS.items():
            cls.DEFAULT_CONFIGS[component_type] = ComponentConfig(
                component_type=component_type,
                log_level=log_level,
                enable_debug_context=component_config.enable_debug_context,
            )
        for logger in cls._created.values():
            logger.setLevel(log_level.to_python_level())


# ============================================================================
# EXCEPTION DECORATOR
# ============================================================================

def log_exceptions(component_type: Optional[ComponentType] = None,
                   component_name: Optional[str] = None,
                   logger: Optional[logging.Logger] = None):
    """
    Decorator to log exceptions with context, then re-raise.

    Works on plain functions and coroutine functions.

    Example:
        @log_exceptions(ComponentType.CONTROLLER, "BatchOrchestrator")
        async def run(...):
            ...
    """
    def _resolve_logger(func) -> logging.Logger:
        if logger:
            return logger
        if component_type and component_name:
            return LoggerFactory.create_logger(component_type, component_name)
        return LoggerFactory.create_logger(ComponentType.SERVICE, func.__module__ or "unknown")

    def _log_failure(func, e: Exception, args, kwargs):
        _resolve_logger(func).error(
            f"Exception in {func.__name__}",
            exc_info=True,
            extra={
                'custom_dimensions': {
                    'function_name': func.__name__,
                    'function_module': func.__module__,
                    'exception_type': type(e).__name__,
                    'exception_message': str(e),
                    'function_args': str(args)[:500],
                    'function_kwargs': str(kwargs)[:500],
                    'traceback': traceback.format_exc()
                }
            }
        )

    def decorator(func):
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    _log_failure(func, e, args, kwargs)
                    raise
            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except Exception as e:
                _log_failure(func, e, args, kwargs)
                raise
        return wrapper
    return decorator
