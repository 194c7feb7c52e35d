"""Observability utilities for structured logging and metrics."""

import threading
import uuid
from collections import deque
from typing import Any, Deque, Dict, List, Optional
from dataclasses import dataclass, field
from enum import Enum

from .logging_config import setup_logger


class LogLevel(Enum):
    """Log levels for structured logging."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class LogContext:
    """Context information for structured logging."""

    correlation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    operation: str = ""
    component: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_operation(self, operation: str) -> "LogContext":
        """Create new context with operation set."""
        return LogContext(
            correlation_id=self.correlation_id,
            operation=operation,
            component=self.component,
            metadata=self.metadata.copy(),
        )

    def with_metadata(self, **kwargs) -> "LogContext":
        """Create new context with additional metadata."""
        new_metadata = self.metadata.copy()
        new_metadata.update(kwargs)
        return LogContext(
            correlation_id=self.correlation_id,
            operation=self.operation,
            component=self.component,
            metadata=new_metadata,
        )


class StructuredLogger:
    """Structured logger with context support."""

    def __init__(self, name: str, level: Optional[str] = None):
        self._logger = setup_logger(name, level=level)

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs,
    ):
        if context:
            formatted_message = f"[{context.correlation_id}] {message}"
            if context.operation:
                formatted_message = f"[{context.operation}] {formatted_message}"

            if context.metadata or kwargs:
                metadata_str = ", ".join(
                    f"{k}={v}" for k, v in {**context.metadata, **kwargs}.items()
                )
                formatted_message = f"{formatted_message} ({metadata_str})"
        elif kwargs:
            metadata_str = ", ".join(f"{k}={v}" for k, v in kwargs.items())
            formatted_message = f"{message} ({metadata_str})"
        else:
            formatted_message = message

        # stacklevel points %(funcName)s at the caller, not at this wrapper
        getattr(self._logger, level.value.lower())(formatted_message, stacklevel=3)

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log debug message."""
        self._log(LogLevel.DEBUG, message, context, **kwargs)

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log info message."""
        self._log(LogLevel.INFO, message, context, **kwargs)

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log warning message."""
        self._log(LogLevel.WARNING, message, context, **kwargs)

    def error(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log error message."""
        self._log(LogLevel.ERROR, message, context, **kwargs)

    def critical(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log critical message."""
        self._log(LogLevel.CRITICAL, message, context, **kwargs)


@dataclass
class PerformanceMetrics:
    """Performance metrics for a single operation."""

    operation: str
    start_time: float
    end_time: float
    success: bool
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        """Calculate operation duration in seconds."""
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> float:
        """Calculate operation duration in milliseconds."""
        return self.duration * 1000


DEFAULT_RETAINED_METRICS = 1000


@dataclass
class _OperationTotals:
    count: int = 0
    successful: int = 0
    total_duration: float = 0.0
    min_duration: float = float("inf")
    max_duration: float = 0.0

    def add(self, metric: PerformanceMetrics) -> None:
        self.count += 1
        if metric.success:
            self.successful += 1
        self.total_duration += metric.duration
        self.min_duration = min(self.min_duration, metric.duration)
        self.max_duration = max(self.max_duration, metric.duration)

    def merge(self, other: "_OperationTotals") -> None:
        self.count += other.count
        self.successful += other.successful
        self.total_duration += other.total_duration
        self.min_duration = min(self.min_duration, other.min_duration)
        self.max_duration = max(self.max_duration, other.max_duration)


class MetricsCollector:
    """
    Collector for performance metrics, safe to share between threads.

    Summaries come from running totals per operation. Only the most recent
    ``max_retained`` metrics are kept, so a consumer that never stops holds
    bounded memory.
    """

    def __init__(self, max_retained: int = DEFAULT_RETAINED_METRICS):
        self._metrics: Deque[PerformanceMetrics] = deque(maxlen=max_retained)
        self._totals: Dict[str, _OperationTotals] = {}
        self._lock = threading.Lock()

    def record_metric(self, metric: PerformanceMetrics):
        """Record a performance metric."""
        with self._lock:
            self._metrics.append(metric)
            self._totals.setdefault(metric.operation, _OperationTotals()).add(metric)

    def get_metrics(self, operation: Optional[str] = None) -> List[PerformanceMetrics]:
        """Get the retained recent metrics, optionally filtered by operation."""
        with self._lock:
            metrics = list(self._metrics)
        if operation:
            return [m for m in metrics if m.operation == operation]
        return metrics

    def get_summary(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Get summary statistics over every metric ever recorded."""
        totals = _OperationTotals()
        with self._lock:
            for name, op_totals in self._totals.items():
                if operation is None or name == operation:
                    totals.merge(op_totals)

        if not totals.count:
            return {}

        return {
            "total_operations": totals.count,
            "successful_operations": totals.successful,
            "failed_operations": totals.count - totals.successful,
            "success_rate": totals.successful / totals.count,
            "avg_duration": totals.total_duration / totals.count,
            "min_duration": totals.min_duration,
            "max_duration": totals.max_duration,
            "total_duration": totals.total_duration,
        }

    def clear_metrics(self):
        """Clear all recorded metrics and totals."""
        with self._lock:
            self._metrics.clear()
            self._totals.clear()
