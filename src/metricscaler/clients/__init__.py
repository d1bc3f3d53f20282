"""Backend clients for metricscaler."""

from .azure_queue import AzureQueueClient
from .mysql import MySQLClient

__all__ = [
    "AzureQueueClient",
    "MySQLClient",
]
