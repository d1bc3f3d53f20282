"""MySQL query scaler."""

from typing import Any, List, Optional

from ..clients.mysql import MySQLClient
from ..config import ScalerLogger
from ..exceptions import ScalerError, UnsupportedOperationError
from ..models import MetricDescriptor, MetricSample, MySQLMetadata
from .base import Scaler

MYSQL_METRIC_NAME = "MySQLQueryValue"


class MySQLScaler(Scaler):
    """Scaler for the integer result of an operator-supplied MySQL query."""

    metadata: MySQLMetadata

    def __init__(
        self,
        metadata: MySQLMetadata,
        client: MySQLClient,
        log: Optional[ScalerLogger] = None,
    ):
        super().__init__(metadata, log)
        self.client = client

    async def _get_query_result(self) -> int:
        try:
            return await self.client.scalar_query(self.metadata.query)
        except ScalerError as e:
            self.logger.error(f"Error inspecting MySQL: {e}")
            raise

    async def is_active(self) -> bool:
        """Active while the query result is above zero."""
        return await self._get_query_result() > 0

    async def get_metrics(
        self, metric_name: str, metric_selector: Optional[Any] = None
    ) -> List[MetricSample]:
        if metric_name != MYSQL_METRIC_NAME:
            self.logger.error(f"Unknown metric requested: {metric_name}")
            raise UnsupportedOperationError(f"no metric found with name: {metric_name}")

        value = await self._get_query_result()
        return [MetricSample(name=MYSQL_METRIC_NAME, value=value)]

    def get_metric_spec_for_scaling(self) -> List[MetricDescriptor]:
        return [
            MetricDescriptor(
                name=MYSQL_METRIC_NAME,
                target_value=self.metadata.query_value,
            )
        ]

    def get_metric_spec_for_scaling_job(self) -> List[MetricDescriptor]:
        # Job scaling is not implemented for MySQL triggers
        self.logger.error("MySQL scaler does not implement a metric spec for scaling jobs")
        return []

    async def close(self):
        """Dispose of the connection pool."""
        try:
            await self.client.close()
        except Exception as e:
            self.logger.error(f"Error closing MySQL connection: {e}")
            raise
