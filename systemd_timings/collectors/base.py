"""
Base collector interface for metric collection.

Collectors implement collect() to gather metric records for one tick.
Recoverable problems are reported through CollectorResult.add_error();
anything that aborts the tick is raised and turned into an error result
by safe_collect().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime

from ..logging import get_logger
from ..models.metric import Metric


@dataclass
class CollectorResult:
    """Result of a collection cycle."""

    # Records produced this tick
    metrics: list[Metric] = field(default_factory=list)

    # Non-fatal errors (one bad property or unit)
    errors: list[str] = field(default_factory=list)

    # Tick state (collected, waiting, done, error)
    state: str = "collected"

    # Fatal error message if collection failed
    error: str | None = None

    # Collection timestamp
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def available(self) -> bool:
        return self.error is None

    def add_metric(self, tags: dict[str, str], fields: dict[str, int]) -> Metric:
        """Record a metric stamped with this result's timestamp."""
        metric = Metric(tags=tags, fields=fields, timestamp=self.timestamp)
        self.metrics.append(metric)
        return metric

    def add_error(self, error: str) -> None:
        """Report a non-fatal error."""
        self.errors.append(error)

    def set_state(self, state: str) -> None:
        self.state = state

    def set_error(self, error: str) -> None:
        """Mark collection as failed with error."""
        self.error = error
        self.state = "error"

    def __repr__(self) -> str:
        status = "OK" if self.available else f"ERROR: {self.error}"
        return (
            f"CollectorResult({len(self.metrics)} metrics, {len(self.errors)} errors, "
            f"state={self.state}, {status})"
        )


class Collector(ABC):
    """
    Abstract base class for metric collectors.

    Collectors can be enabled/disabled and have configurable intervals.
    """

    def __init__(
        self,
        name: str,
        update_interval: float = 10.0,
        enabled: bool = True,
    ):
        """
        Initialize collector.

        Args:
            name: Human-readable collector name
            update_interval: Collection interval in seconds
            enabled: Whether collector is enabled
        """
        self.name = name
        self.update_interval = update_interval
        self.enabled = enabled
        self.logger = get_logger(f"collectors.{name}")

        self._last_result: CollectorResult | None = None

    @property
    def last_result(self) -> CollectorResult | None:
        return self._last_result

    @abstractmethod
    async def collect(self) -> CollectorResult:
        """
        Collect metrics from the source.

        This method is called periodically at update_interval.

        Returns:
            CollectorResult with collected metrics

        Raises:
            Exception: Any error that aborts the whole tick
        """
        pass

    async def safe_collect(self) -> CollectorResult:
        """
        Safely collect metrics, catching exceptions.

        Returns:
            CollectorResult, with error set if collection failed
        """
        try:
            result = await self.collect()
        except Exception as e:
            self.logger.error(f"Collection failed: {e}")
            result = CollectorResult()
            result.set_error(str(e))

        for error in result.errors:
            self.logger.warning(error)

        self._last_result = result
        return result

    def __repr__(self) -> str:
        status = "enabled" if self.enabled else "disabled"
        return f"{self.__class__.__name__}({self.name!r}, {status}, {self.update_interval}s)"
