"""Base scaler interface."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional
import logging

from ..config import ScalerLogger
from ..models import MetricDescriptor, MetricSample

logger = logging.getLogger(__name__)


class Scaler(ABC):
    """
    Abstract base class for scalers.

    A scaler is built once per trigger, polled any number of times through
    ``is_active`` and ``get_metrics``, and closed exactly once. Polls may run
    concurrently; the scaler holds no state between them besides its open
    backend client.
    """

    def __init__(self, metadata: Any, log: Optional[ScalerLogger] = None):
        """
        Initialize the scaler.

        Args:
            metadata: Resolved, immutable metadata for the trigger
            log: Logger scoped to this scaler instance
        """
        self.metadata = metadata
        self.logger = log or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    async def is_active(self) -> bool:
        """
        Report whether the backend has work for the scaled workload.

        Returns:
            True if the primary value is greater than zero

        Raises:
            ScalerError: If the value cannot be fetched
        """
        pass

    @abstractmethod
    async def get_metrics(
        self, metric_name: str, metric_selector: Optional[Any] = None
    ) -> List[MetricSample]:
        """
        Fetch the current value of an advertised metric.

        Args:
            metric_name: One of the names from the metric specs
            metric_selector: Label selector from the metrics API (unused by
                the bundled scalers)

        Returns:
            A list holding exactly one sample

        Raises:
            UnsupportedOperationError: If the metric name is not advertised
            ScalerError: If the value cannot be fetched
        """
        pass

    @abstractmethod
    def get_metric_spec_for_scaling(self) -> List[MetricDescriptor]:
        """Metrics the controller scales deployments on."""
        pass

    @abstractmethod
    def get_metric_spec_for_scaling_job(self) -> List[MetricDescriptor]:
        """Metrics the controller scales jobs on."""
        pass

    async def close(self):
        """
        Clean up resources (override if needed).
        """
        pass
