# backend/classbook/services/base.py
"""
Base service for classbook.

Every service gets the request's session, a Clock and a logger named after
the service. Services own their transactions; repositories only flush.
Operations wrapped in ``measure_operation`` are timed into Prometheus and
into a small in-process summary readable through ``get_metrics``.
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.clock import Clock, system_clock
from ..core.exceptions import ServiceException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """Session, clock, logging and timing shared by the classbook services."""

    # service name -> operation name -> running totals
    _class_metrics: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def __init__(self, db: Session, clock: Optional[Clock] = None):
        """
        Args:
            db: Database session for this request
            clock: Source of "now"; defaults to the system clock
        """
        self.db = db
        self.clock = clock or system_clock
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit on success, roll back on any error.

        Store failures are re-raised as ServiceException("DATABASE_ERROR");
        the driver message goes to the log only. Domain exceptions raised
        inside the block propagate unchanged after the rollback.
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction rolled back after store error: {str(e)}")
            self.db.rollback()
            raise ServiceException("Database operation failed", code="DATABASE_ERROR") from e
        except Exception as e:
            self.logger.debug(f"Transaction rolled back: {type(e).__name__}")
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method and record its outcome.

        Usage:
            @BaseService.measure_operation("materialize")
            def materialize(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                error_type = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.perf_counter() - started
                    succeeded = error_type is None
                    self._record_metric(operation_name, elapsed, succeeded)
                    if elapsed > SLOW_OPERATION_SECONDS:
                        self.logger.warning(f"Slow operation: {operation_name} took {elapsed:.2f}s")
                    prometheus_metrics.record_service_operation(
                        service=self.__class__.__name__,
                        operation=operation_name,
                        duration=elapsed,
                        status="success" if succeeded else "error",
                        error_type=error_type,
                    )

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Info log of a completed operation with structured context."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def log_security_event(self, event: str, **context: Any) -> None:
        """Warn about a denied or suspicious request."""
        self.logger.warning(
            f"Security event: {event}",
            extra={"security_event": event, **context},
        )

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        per_service = BaseService._class_metrics.setdefault(self.__class__.__name__, {})
        totals = per_service.setdefault(
            operation,
            {"count": 0, "failures": 0, "total_time": 0.0, "min_time": float("inf"), "max_time": 0.0},
        )
        totals["count"] += 1
        totals["total_time"] += elapsed
        totals["min_time"] = min(totals["min_time"], elapsed)
        totals["max_time"] = max(totals["max_time"], elapsed)
        if not success:
            totals["failures"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """Per-operation count, timings and success rate for this service class."""
        summary = {}
        for operation, totals in BaseService._class_metrics.get(self.__class__.__name__, {}).items():
            count = totals["count"]
            summary[operation] = {
                "count": count,
                "avg_time": totals["total_time"] / count,
                "min_time": totals["min_time"],
                "max_time": totals["max_time"],
                "success_rate": (count - totals["failures"]) / count,
                "failure_count": totals["failures"],
            }
        return summary

    def reset_metrics(self) -> None:
        BaseService._class_metrics.pop(self.__class__.__name__, None)
