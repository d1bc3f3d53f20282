"""Typed records exchanged between resolvers, credentials, clients and scalers."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

EXTERNAL_METRIC_TYPE = "External"

# Azure Queue Storage refuses peeks above this many messages
MAX_PEEK_MESSAGES = 32


class IdentityMode(str, Enum):
    """How a scaler authenticates against its backend."""

    NONE = "none"
    AZURE = "azure"


class AzureQueueMetadata(BaseModel):
    """Resolved trigger metadata for an Azure Storage queue."""

    model_config = ConfigDict(frozen=True)

    queue_name: str = Field(min_length=1)
    target_queue_length: int = Field(ge=0)
    visible_peek_limit: int = Field(ge=0, le=MAX_PEEK_MESSAGES)
    connection: str = Field(default="", repr=False)
    account_name: str = ""
    identity_mode: IdentityMode = IdentityMode.NONE

    @model_validator(mode="after")
    def _check_identity_fields(self) -> "AzureQueueMetadata":
        if self.identity_mode is IdentityMode.AZURE and not self.account_name:
            raise ValueError("no accountName given")
        if self.identity_mode is IdentityMode.NONE and not self.connection:
            raise ValueError("no connection setting given")
        return self


class MySQLMetadata(BaseModel):
    """
    Resolved trigger metadata for a MySQL query.

    Exactly one connection form is populated: either ``connection_string``
    or the discrete ``host``/``port``/``username``/``db_name`` fields
    (``password`` may stay empty).
    """

    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1)
    query_value: int
    connection_string: str = Field(default="", repr=False)
    host: str = ""
    port: Optional[int] = None
    username: str = ""
    db_name: str = ""
    password: str = Field(default="", repr=False)

    @model_validator(mode="after")
    def _check_connection_form(self) -> "MySQLMetadata":
        discrete = (self.host, self.port, self.username, self.db_name)
        if self.connection_string:
            if any(field not in ("", None) for field in discrete) or self.password:
                raise ValueError("connectionString and discrete fields are exclusive")
        elif any(field in ("", None) for field in discrete):
            raise ValueError("no connection setting given")
        return self


ScalerMetadata = Union[AzureQueueMetadata, MySQLMetadata]


class SharedSecret(BaseModel):
    """Account name plus key parsed from a storage connection string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["sharedSecret"] = "sharedSecret"
    account_name: str
    key: str = Field(repr=False)
    endpoint_protocol: str = "https"
    endpoint_suffix: str = "core.windows.net"
    queue_endpoint: Optional[str] = None


class BearerToken(BaseModel):
    """Access token issued by the identity provider."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bearerToken"] = "bearerToken"
    token: str = Field(repr=False)
    expires_on: int = 0


class NoCredential(BaseModel):
    """Marker for backends that authenticate through their connection settings."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


Credential = Union[SharedSecret, BearerToken, NoCredential]


class MetricDescriptor(BaseModel):
    """A metric the controller should scale on, with its per-replica target."""

    model_config = ConfigDict(frozen=True)

    name: str
    target_value: int
    type: str = EXTERNAL_METRIC_TYPE


class MetricSample(BaseModel):
    """One observation of a metric, taken at poll time."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
