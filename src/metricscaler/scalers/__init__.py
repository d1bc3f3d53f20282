"""Scaler plugins for metricscaler."""

from .base import Scaler
from .azure_queue import AzureQueueScaler
from .mysql import MySQLScaler

__all__ = [
    "Scaler",
    "AzureQueueScaler",
    "MySQLScaler",
]
