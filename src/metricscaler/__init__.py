"""Pluggable metric sources for autoscaling controllers."""

from .exceptions import (
    AuthError,
    BackendConnectionError,
    ConfigError,
    QueryError,
    ScalerError,
    UnsupportedOperationError,
)
from .factory import create_scaler
from .models import MetricDescriptor, MetricSample
from .scalers import AzureQueueScaler, MySQLScaler, Scaler

__all__ = [
    "create_scaler",
    "Scaler",
    "AzureQueueScaler",
    "MySQLScaler",
    "MetricDescriptor",
    "MetricSample",
    "ScalerError",
    "ConfigError",
    "AuthError",
    "BackendConnectionError",
    "QueryError",
    "UnsupportedOperationError",
]
