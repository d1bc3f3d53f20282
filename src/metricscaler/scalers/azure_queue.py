"""Azure Storage queue scaler."""

from typing import Any, List, Optional

from ..clients.azure_queue import AzureQueueClient
from ..config import ScalerLogger
from ..exceptions import ScalerError, UnsupportedOperationError
from ..models import AzureQueueMetadata, MetricDescriptor, MetricSample
from .base import Scaler

QUEUE_LENGTH_METRIC_NAME = "queueLength"
VISIBLE_QUEUE_LENGTH_METRIC_NAME = "visibleQueueLength"


class AzureQueueScaler(Scaler):
    """Scaler for the length of an Azure Storage queue."""

    metadata: AzureQueueMetadata

    def __init__(
        self,
        metadata: AzureQueueMetadata,
        client: AzureQueueClient,
        log: Optional[ScalerLogger] = None,
    ):
        super().__init__(metadata, log)
        self.client = client

    async def is_active(self) -> bool:
        """Active while the approximate queue length is above zero."""
        try:
            length = await self.client.approximate_length()
        except ScalerError as e:
            self.logger.error(f"Error getting queue length for '{self.metadata.queue_name}': {e}")
            raise

        return length > 0

    async def get_metrics(
        self, metric_name: str, metric_selector: Optional[Any] = None
    ) -> List[MetricSample]:
        """
        Fetch ``queueLength`` or ``visibleQueueLength``.

        The visible length peeks at most ``visible_peek_limit`` messages, so
        its value never exceeds that bound.
        """
        try:
            if metric_name == QUEUE_LENGTH_METRIC_NAME:
                value = await self.client.approximate_length()
            elif metric_name == VISIBLE_QUEUE_LENGTH_METRIC_NAME:
                value = await self.client.visible_count(self.metadata.visible_peek_limit)
            else:
                raise UnsupportedOperationError(f"no metric found with name: {metric_name}")
        except ScalerError as e:
            self.logger.error(f"Error getting metric {metric_name}: {e}")
            raise

        return [MetricSample(name=metric_name, value=value)]

    def get_metric_spec_for_scaling(self) -> List[MetricDescriptor]:
        return [
            MetricDescriptor(
                name=QUEUE_LENGTH_METRIC_NAME,
                target_value=self.metadata.target_queue_length,
            )
        ]

    def get_metric_spec_for_scaling_job(self) -> List[MetricDescriptor]:
        return [
            MetricDescriptor(
                name=VISIBLE_QUEUE_LENGTH_METRIC_NAME,
                target_value=self.metadata.target_queue_length,
            )
        ]

    async def close(self):
        """Close the queue client."""
        await self.client.close()
