"""Configuration management for metricscaler."""

import os
import logging
from typing import Union
from pythonjsonlogger import jsonlogger

ScalerLogger = Union[logging.Logger, logging.LoggerAdapter]


def setup_logging():
    """Configure structured logging for the probe and embedding processes."""
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    logger = logging.getLogger()
    logger.setLevel(log_level)

    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(name)s %(levelname)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def scaler_logger(trigger_type: str, trigger_name: str = "") -> logging.LoggerAdapter:
    """
    Build the logger handed to every component of one scaler instance.

    Args:
        trigger_type: Backend kind, e.g. ``azure-queue``
        trigger_name: Name of the trigger within its scaled object

    Returns:
        A LoggerAdapter tagging each record with the scaler identity
    """
    return logging.LoggerAdapter(
        logging.getLogger(f"metricscaler.{trigger_type}"),
        {"scaler": trigger_type, "trigger": trigger_name},
    )


class Config:
    """Process configuration."""

    # Per-request timeout for identity provider and backend connects
    METRIC_FETCH_TIMEOUT = float(os.getenv("METRIC_FETCH_TIMEOUT", "10"))  # seconds

    # Pod identity token endpoint (instance metadata service)
    POD_IDENTITY_TOKEN_URL = os.getenv(
        "POD_IDENTITY_TOKEN_URL",
        "http://169.254.169.254/metadata/identity/oauth2/token",
    )
    POD_IDENTITY_API_VERSION = "2018-02-01"

    # SQL connection pool
    SQL_POOL_SIZE = int(os.getenv("SQL_POOL_SIZE", "5"))
    SQL_MAX_OVERFLOW = int(os.getenv("SQL_MAX_OVERFLOW", "10"))
