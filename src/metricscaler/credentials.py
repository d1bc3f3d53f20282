"""Credential selection for scaler backends."""

import asyncio
import logging
from typing import Optional

import aiohttp

from .config import Config, ScalerLogger
from .exceptions import AuthError
from .models import (
    BearerToken,
    Credential,
    IdentityMode,
    MySQLMetadata,
    NoCredential,
    ScalerMetadata,
    SharedSecret,
)

logger = logging.getLogger(__name__)

STORAGE_RESOURCE = "https://storage.azure.com/"


def parse_storage_connection_string(value: str) -> SharedSecret:
    """
    Parse an Azure storage connection string into a shared-key credential.

    Args:
        value: A ``Key=Value;Key=Value`` connection string

    Returns:
        SharedSecret with the account name, key and endpoint settings

    Raises:
        AuthError: If the account name or key is missing
    """
    settings = {}
    for part in value.split(";"):
        if not part.strip():
            continue
        name, sep, setting = part.partition("=")
        if not sep:
            raise AuthError("can't parse storage connection string: malformed segment")
        settings[name.strip().lower()] = setting.strip()

    account_name = settings.get("accountname", "")
    account_key = settings.get("accountkey", "")
    if not account_name or not account_key:
        raise AuthError("can't parse storage connection string. Missing key or name")

    return SharedSecret(
        account_name=account_name,
        key=account_key,
        endpoint_protocol=settings.get("defaultendpointsprotocol") or "https",
        endpoint_suffix=settings.get("endpointsuffix") or "core.windows.net",
        queue_endpoint=settings.get("queueendpoint") or None,
    )


class PodIdentityTokenProvider:
    """Fetches access tokens from the pod identity / instance metadata endpoint."""

    def __init__(
        self,
        token_url: Optional[str] = None,
        log: Optional[ScalerLogger] = None,
    ):
        self.token_url = token_url or Config.POD_IDENTITY_TOKEN_URL
        self.logger = log or logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={"Metadata": "true"},
                timeout=aiohttp.ClientTimeout(total=Config.METRIC_FETCH_TIMEOUT),
            )
        return self.session

    async def get_token(self, resource: str) -> BearerToken:
        """
        Request a token scoped to ``resource``.

        Raises:
            AuthError: If the provider is unreachable or refuses the request
        """
        params = {"api-version": Config.POD_IDENTITY_API_VERSION, "resource": resource}
        try:
            session = await self._get_session()
            async with session.get(self.token_url, params=params) as response:
                if response.status != 200:
                    body = await response.text()
                    raise AuthError(
                        f"identity provider returned status {response.status}: {body}"
                    )
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise AuthError(f"error fetching pod identity token: {e}") from e

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("identity provider response has no access_token")

        try:
            expires_on = int(data.get("expires_on") or 0)
        except (TypeError, ValueError) as e:
            raise AuthError(f"identity provider returned invalid expires_on: {e}") from e

        self.logger.debug(f"Fetched pod identity token for {resource}")
        return BearerToken(token=token, expires_on=expires_on)

    async def close(self):
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()


async def select_credential(
    identity_mode: IdentityMode,
    metadata: ScalerMetadata,
    token_provider: Optional[PodIdentityTokenProvider] = None,
    log: Optional[ScalerLogger] = None,
) -> Credential:
    """
    Produce the credential a backend client authenticates with.

    Args:
        identity_mode: Effective identity mode from the resolver
        metadata: Resolved scaler metadata
        token_provider: Provider used under azure identity; a default one is
            created and closed when omitted
        log: Logger scoped to the scaler being built

    Returns:
        SharedSecret, BearerToken or NoCredential

    Raises:
        AuthError: If the connection string is malformed or the token request fails
    """
    log = log or logger

    if isinstance(metadata, MySQLMetadata):
        return NoCredential()

    if identity_mode is IdentityMode.NONE:
        return parse_storage_connection_string(metadata.connection)

    if identity_mode is IdentityMode.AZURE:
        provider = token_provider or PodIdentityTokenProvider(log=log)
        try:
            return await provider.get_token(STORAGE_RESOURCE)
        except AuthError as e:
            log.error(f"Error fetching token, cannot determine queue size: {e}")
            raise
        finally:
            if token_provider is None:
                await provider.close()

    raise AuthError(f"identity mode {identity_mode} not supported")
