"""Scaler construction from trigger configuration."""

import logging
from typing import Mapping, Optional

from .clients import AzureQueueClient, MySQLClient
from .config import ScalerLogger, scaler_logger
from .credentials import PodIdentityTokenProvider, select_credential
from .exceptions import ConfigError, ScalerError
from .models import SharedSecret
from .resolver import resolve_azure_queue_metadata, resolve_mysql_metadata
from .scalers import AzureQueueScaler, MySQLScaler, Scaler

logger = logging.getLogger(__name__)

AZURE_QUEUE_TRIGGER = "azure-queue"
MYSQL_TRIGGER = "mysql"

SUPPORTED_TRIGGERS = (AZURE_QUEUE_TRIGGER, MYSQL_TRIGGER)


async def _build_azure_queue_scaler(
    resolved_env: Mapping[str, str],
    metadata: Mapping[str, str],
    auth_params: Mapping[str, str],
    pod_identity: str,
    token_provider: Optional[PodIdentityTokenProvider],
    log: ScalerLogger,
) -> Scaler:
    meta, mode = resolve_azure_queue_metadata(
        metadata, resolved_env, auth_params, pod_identity, log=log
    )
    credential = await select_credential(mode, meta, token_provider, log=log)

    account_name = meta.account_name
    if isinstance(credential, SharedSecret):
        account_name = credential.account_name

    client = await AzureQueueClient.open(credential, account_name, meta.queue_name, log=log)
    return AzureQueueScaler(meta, client, log)


async def _build_mysql_scaler(
    resolved_env: Mapping[str, str],
    metadata: Mapping[str, str],
    auth_params: Mapping[str, str],
    pod_identity: str,
    log: ScalerLogger,
) -> Scaler:
    meta, mode = resolve_mysql_metadata(
        metadata, resolved_env, auth_params, pod_identity, log=log
    )
    await select_credential(mode, meta, log=log)
    client = await MySQLClient.open(meta, log=log)
    return MySQLScaler(meta, client, log)


async def create_scaler(
    trigger_type: str,
    resolved_env: Mapping[str, str],
    metadata: Mapping[str, str],
    auth_params: Mapping[str, str],
    pod_identity: str = "",
    *,
    token_provider: Optional[PodIdentityTokenProvider] = None,
    trigger_name: str = "",
) -> Scaler:
    """
    Create a scaler based on trigger configuration.

    Resolves metadata, selects the credential and opens the backend client.
    Any failure aborts construction; nothing is retried.

    Args:
        trigger_type: Backend kind, ``azure-queue`` or ``mysql``
        resolved_env: Environment of the scale target
        metadata: Declared trigger metadata
        auth_params: Parameters from the trigger authentication
        pod_identity: Requested identity mode, empty when not set
        token_provider: Identity provider override for token mode
        trigger_name: Name used to tag the scaler's log records

    Returns:
        The scaler for the trigger

    Raises:
        ConfigError: For an unknown trigger type or invalid metadata
        AuthError: If the credential cannot be obtained
        BackendConnectionError: If the backend cannot be reached
    """
    kind = trigger_type.lower()
    log = scaler_logger(kind, trigger_name)

    try:
        if kind == AZURE_QUEUE_TRIGGER:
            scaler = await _build_azure_queue_scaler(
                resolved_env, metadata, auth_params, pod_identity, token_provider, log
            )
        elif kind == MYSQL_TRIGGER:
            scaler = await _build_mysql_scaler(
                resolved_env, metadata, auth_params, pod_identity, log
            )
        else:
            raise ConfigError(
                f"unknown trigger type: {trigger_type}, "
                f"expected one of {', '.join(SUPPORTED_TRIGGERS)}"
            )
    except ScalerError as e:
        log.error(f"Error creating {trigger_type} scaler: {e}")
        raise

    log.info(f"{kind} scaler created")
    return scaler
