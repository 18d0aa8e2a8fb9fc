# backend/tutorsched/services/base.py
"""
Base Service Pattern for the scheduling engine.

Provides common functionality for all service classes including:
- Transaction management
- Logging
- Performance monitoring
"""

from contextlib import contextmanager
from functools import wraps
import logging
import time
from typing import Any, Callable, Dict, Iterator, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException, UpstreamUnavailableException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

SLOW_OPERATION_SECONDS = 1.0


class BaseService:
    """
    Base class for all service layer components.

    Services receive a SQLAlchemy session and build their repositories
    through RepositoryFactory. They never cache scheduling state between
    calls; every query reads current persisted rows.
    """

    # Class-level metrics storage
    _class_metrics: Dict[str, Dict[str, Dict[str, float]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Context manager for database transactions.

        Usage:
            with self.transaction():
                self.db.add(entity)
                # commit is handled automatically
        """
        try:
            yield self.db
            self.db.commit()
            self.logger.debug("Transaction committed successfully")
        except (SQLAlchemyError, RepositoryException) as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise UpstreamUnavailableException(f"Database operation failed: {str(e)}")
        except Exception as e:
            self.logger.error(f"Unexpected error in transaction: {str(e)}")
            self.db.rollback()
            raise

    @contextmanager
    def repository_errors(self, operation: str) -> Iterator[None]:
        """Surface persistence failures on read paths as UpstreamUnavailableException."""
        try:
            yield
        except RepositoryException as e:
            self.logger.error(f"{operation} failed: {str(e)}")
            raise UpstreamUnavailableException(
                f"Persistence unavailable during {operation}",
                code="PERSISTENCE_UNAVAILABLE",
            ) from e

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Decorator to measure operation performance.

        Usage:
            @BaseService.measure_operation("is_available")
            def is_available(self, ...):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                start_time = time.time()
                success = False
                error_type = None

                try:
                    result = func(self, *args, **kwargs)
                    success = True
                    return result
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    elapsed = time.time() - start_time

                    if hasattr(self, "_record_metric"):
                        self._record_metric(operation_name, elapsed, success)

                    if elapsed > SLOW_OPERATION_SECONDS and hasattr(self, "logger"):
                        self.logger.warning(
                            f"Slow operation detected: {operation_name} took {elapsed:.2f}s"
                        )

                    try:
                        prometheus_metrics.record_service_operation(
                            service=self.__class__.__name__,
                            operation=operation_name,
                            duration=elapsed,
                            status="success" if success else "error",
                            error_type=error_type,
                        )
                    except Exception:
                        # Metrics collection must not break the operation
                        logger.debug("Failed to record metrics for %s", operation_name)

            wrapper._operation_name = operation_name  # type: ignore[attr-defined]
            wrapper._is_measured = True  # type: ignore[attr-defined]
            return cast(F, wrapper)

        return decorator

    def log_operation(self, operation: str, **context: Any) -> None:
        """Log an operation with structured context."""
        self.logger.info(f"Operation: {operation}", extra={"operation": operation, **context})

    def _record_metric(self, operation: str, elapsed: float, success: bool) -> None:
        class_name = self.__class__.__name__
        metrics = BaseService._class_metrics.setdefault(class_name, {})

        if operation not in metrics:
            metrics[operation] = {
                "count": 0,
                "total_time": 0.0,
                "success_count": 0,
                "failure_count": 0,
                "min_time": float("inf"),
                "max_time": 0.0,
            }

        metric_data = metrics[operation]
        metric_data["count"] += 1
        metric_data["total_time"] += elapsed
        metric_data["min_time"] = min(metric_data["min_time"], elapsed)
        metric_data["max_time"] = max(metric_data["max_time"], elapsed)

        if success:
            metric_data["success_count"] += 1
        else:
            metric_data["failure_count"] += 1

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get performance metrics for this service.

        Returns:
            Dictionary with metrics for each measured operation
        """
        metrics = BaseService._class_metrics.get(self.__class__.__name__, {})

        result = {}
        for operation, data in metrics.items():
            count = data["count"]
            if count == 0:
                continue
            result[operation] = {
                "count": count,
                "avg_time": data["total_time"] / count,
                "min_time": data["min_time"],
                "max_time": data["max_time"],
                "success_rate": data["success_count"] / count,
                "failure_count": data["failure_count"],
            }
        return result
