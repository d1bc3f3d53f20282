"""Metadata resolution from declared, environment and auth-parameter maps."""

import logging
import re
from typing import Mapping, Optional, Tuple

from pydantic import ValidationError

from .config import ScalerLogger
from .exceptions import ConfigError
from .models import (
    MAX_PEEK_MESSAGES,
    AzureQueueMetadata,
    IdentityMode,
    MySQLMetadata,
)

logger = logging.getLogger(__name__)

DEFAULT_TARGET_QUEUE_LENGTH = 5
DEFAULT_CONNECTION_SETTING = "AzureWebJobsStorage"
DEFAULT_MYSQL_PASSWORD = ""

_INTEGER = re.compile(r"[+-]?\d+")


def _parse_int(field: str, value: str) -> int:
    if not _INTEGER.fullmatch(value.strip()):
        raise ConfigError(f"error parsing metadata {field}: {value!r} is not an integer")
    return int(value)


def _build(model, log: ScalerLogger, **fields):
    try:
        return model(**fields)
    except ValidationError as e:
        log.error(f"Invalid {model.__name__}: {e}")
        raise ConfigError(str(e)) from e


def resolve_identity_mode(
    requested: Optional[str], declared: Mapping[str, str]
) -> IdentityMode:
    """
    Decide the effective identity mode of a trigger.

    An explicitly requested mode always wins. Without one, the legacy
    ``useAAdPodIdentity: "true"`` flag selects the azure token mode.

    Args:
        requested: Identity mode from the trigger authentication, if any
        declared: Declared trigger metadata

    Returns:
        The effective IdentityMode

    Raises:
        ConfigError: If the mode is not one of "", "none" or "azure"
    """
    if not requested:
        if declared.get("useAAdPodIdentity") == "true":
            return IdentityMode.AZURE
        return IdentityMode.NONE

    try:
        return IdentityMode(requested)
    except ValueError:
        raise ConfigError(f"pod identity {requested} not supported") from None


def resolve_azure_queue_metadata(
    declared: Mapping[str, str],
    resolved_env: Mapping[str, str],
    auth_params: Mapping[str, str],
    identity_mode: Optional[str] = None,
    log: Optional[ScalerLogger] = None,
) -> Tuple[AzureQueueMetadata, IdentityMode]:
    """
    Resolve Azure queue trigger metadata.

    Args:
        declared: Declared trigger metadata
        resolved_env: Environment of the scale target, keyed by variable name
        auth_params: Parameters from the trigger authentication
        identity_mode: Requested identity mode, empty when not set
        log: Logger scoped to the scaler being built

    Returns:
        The metadata record and the effective identity mode

    Raises:
        ConfigError: If a required field is missing or malformed
    """
    log = log or logger

    target = DEFAULT_TARGET_QUEUE_LENGTH
    if "queueLength" in declared:
        target = _parse_int("queueLength", declared["queueLength"])
        if target < 0:
            raise ConfigError("queueLength must not be negative")

    queue_name = declared.get("queueName", "")
    if not queue_name:
        raise ConfigError("no queueName given")

    if declared.get("visibleQueuePeekLimit"):
        peek_limit = _parse_int("visibleQueuePeekLimit", declared["visibleQueuePeekLimit"])
        if not 1 <= peek_limit <= MAX_PEEK_MESSAGES:
            raise ConfigError(
                f"visibleQueuePeekLimit must be between 1 and {MAX_PEEK_MESSAGES}"
            )
    else:
        peek_limit = min(target, MAX_PEEK_MESSAGES)
        if peek_limit != target:
            log.warning(
                f"queueLength {target} exceeds the peek limit, "
                f"visibleQueueLength will peek at most {peek_limit} messages"
            )

    mode = resolve_identity_mode(identity_mode, declared)
    connection = ""
    account_name = ""

    if mode is IdentityMode.NONE:
        connection = auth_params.get("connection", "")
        if not connection:
            setting = declared.get("connection") or DEFAULT_CONNECTION_SETTING
            connection = resolved_env.get(setting, "")
            if not connection:
                raise ConfigError("no connection setting given")
    else:
        account_name = declared.get("accountName", "")
        if not account_name:
            raise ConfigError("no accountName given")

    meta = _build(
        AzureQueueMetadata,
        log,
        queue_name=queue_name,
        target_queue_length=target,
        visible_peek_limit=peek_limit,
        connection=connection,
        account_name=account_name,
        identity_mode=mode,
    )
    return meta, mode


def resolve_mysql_metadata(
    declared: Mapping[str, str],
    resolved_env: Mapping[str, str],
    auth_params: Mapping[str, str],
    identity_mode: Optional[str] = None,
    log: Optional[ScalerLogger] = None,
) -> Tuple[MySQLMetadata, IdentityMode]:
    """
    Resolve MySQL trigger metadata.

    The connection comes from, in order: ``authParams["connectionString"]``,
    ``declared["connectionString"]`` looked up in the resolved environment,
    then the discrete host/port/username/dbName/password fields.

    Raises:
        ConfigError: If a required field is missing or malformed
    """
    log = log or logger

    query = declared.get("query", "")
    if not query:
        raise ConfigError("no query given")

    if "queryValue" not in declared:
        raise ConfigError("no queryValue given")
    query_value = _parse_int("queryValue", declared["queryValue"])

    mode = resolve_identity_mode(identity_mode, declared)
    if mode is not IdentityMode.NONE:
        raise ConfigError(f"pod identity {mode.value} not supported for mysql")

    connection_string = auth_params.get("connectionString", "")
    if not connection_string and declared.get("connectionString"):
        connection_string = resolved_env.get(declared["connectionString"], "")

    if connection_string:
        meta = _build(
            MySQLMetadata,
            log,
            query=query,
            query_value=query_value,
            connection_string=connection_string,
        )
        return meta, mode

    fields = {}
    for key in ("host", "port", "username", "dbName"):
        value = declared.get(key, "")
        if not value:
            raise ConfigError(f"no {key} given")
        fields[key] = value

    password = auth_params.get("password", "")
    if not password and declared.get("password"):
        password = resolved_env.get(declared["password"], DEFAULT_MYSQL_PASSWORD)

    meta = _build(
        MySQLMetadata,
        log,
        query=query,
        query_value=query_value,
        host=fields["host"],
        port=_parse_int("port", fields["port"]),
        username=fields["username"],
        db_name=fields["dbName"],
        password=password,
    )
    return meta, mode
