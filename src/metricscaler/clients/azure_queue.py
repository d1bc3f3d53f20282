"""Azure Storage queue backend client."""

import logging
from typing import Optional

from azure.core.credentials import AccessToken, AzureNamedKeyCredential
from azure.core.exceptions import AzureError, ResourceExistsError
from azure.storage.queue.aio import QueueClient

from ..config import Config, ScalerLogger
from ..exceptions import BackendConnectionError, QueryError
from ..models import MAX_PEEK_MESSAGES, BearerToken, Credential, SharedSecret

logger = logging.getLogger(__name__)


class StaticTokenCredential:
    """Async token credential serving a token fetched once at construction."""

    def __init__(self, token: BearerToken):
        self._token = token

    async def get_token(self, *scopes, **kwargs) -> AccessToken:
        return AccessToken(self._token.token, self._token.expires_on)

    async def close(self):
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        pass


def queue_account_url(credential: Credential, account_name: str) -> str:
    """Build the queue service endpoint for an account."""
    if isinstance(credential, SharedSecret):
        if credential.queue_endpoint:
            return credential.queue_endpoint.rstrip("/")
        return (
            f"{credential.endpoint_protocol}://{account_name}"
            f".queue.{credential.endpoint_suffix}"
        )
    return f"https://{account_name}.queue.core.windows.net"


def _sdk_credential(credential: Credential):
    if isinstance(credential, SharedSecret):
        return AzureNamedKeyCredential(credential.account_name, credential.key)
    if isinstance(credential, BearerToken):
        return StaticTokenCredential(credential)
    return None


class AzureQueueClient:
    """
    Handle to one Azure Storage queue.

    Every call issues an independent request through the SDK's async
    pipeline, so a single handle may be polled concurrently.
    """

    def __init__(self, queue_client: QueueClient, log: Optional[ScalerLogger] = None):
        self.queue_client = queue_client
        self.logger = log or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    def url(self) -> str:
        return self.queue_client.url

    @classmethod
    async def open(
        cls,
        credential: Credential,
        account_name: str,
        queue_name: str,
        log: Optional[ScalerLogger] = None,
    ) -> "AzureQueueClient":
        """
        Connect to a queue, creating it when absent.

        Args:
            credential: Credential chosen for the scaler
            account_name: Storage account hosting the queue
            queue_name: Name of the queue

        Returns:
            An open AzureQueueClient

        Raises:
            BackendConnectionError: If the queue cannot be reached or created
        """
        log = log or logger
        account_url = queue_account_url(credential, account_name)
        queue_client = QueueClient(
            account_url=account_url,
            queue_name=queue_name,
            credential=_sdk_credential(credential),
            connection_timeout=Config.METRIC_FETCH_TIMEOUT,
        )

        try:
            await queue_client.create_queue()
            log.info(f"Created queue '{queue_name}' at {account_url}")
        except ResourceExistsError:
            log.debug(f"Queue '{queue_name}' already exists at {account_url}")
        except AzureError as e:
            log.error(f"Error opening queue '{queue_name}' at {account_url}: {e}")
            await queue_client.close()
            raise BackendConnectionError(f"error opening azure queue: {e}") from e

        return cls(queue_client, log)

    async def approximate_length(self) -> int:
        """
        Fetch the approximate message count reported by the service.

        The count is an eventually consistent estimate, not an exact value.

        Raises:
            QueryError: If the properties request fails
        """
        try:
            properties = await self.queue_client.get_queue_properties()
        except AzureError as e:
            raise QueryError(f"error getting azure queue properties: {e}") from e

        length = properties.approximate_message_count or 0
        self.logger.debug(f"Azure queue approximate length: {length}")
        return length

    async def visible_count(self, max_peek: int) -> int:
        """
        Count messages not held under another consumer's lease.

        Peeks at most ``max_peek`` messages without dequeuing them.

        Args:
            max_peek: Peek bound, between 0 and 32

        Raises:
            ValueError: If max_peek is outside the service limit
            QueryError: If the peek request fails
        """
        if not 0 <= max_peek <= MAX_PEEK_MESSAGES:
            raise ValueError(
                f"max_peek must be between 0 and {MAX_PEEK_MESSAGES}, got {max_peek}"
            )
        if max_peek == 0:
            return 0

        try:
            messages = await self.queue_client.peek_messages(max_messages=max_peek)
        except AzureError as e:
            raise QueryError(f"error peeking azure queue messages: {e}") from e

        count = min(len(messages), max_peek)
        self.logger.debug(f"Azure queue visible messages: {count}")
        return count

    async def close(self):
        """Close the SDK transport."""
        await self.queue_client.close()
