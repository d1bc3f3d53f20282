"""MySQL backend client."""

import logging
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..config import Config, ScalerLogger
from ..exceptions import BackendConnectionError, QueryError
from ..models import MySQLMetadata

logger = logging.getLogger(__name__)

DRIVER_NAME = "mysql+aiomysql"

# user:password@tcp(host:port)/dbname?param=value or user@unix(/path.sock)/dbname,
# driver params are ignored
_DSN = re.compile(
    r"^(?:(?P<user>[^:@/]*)(?::(?P<password>.*))?@)?"
    r"(?:(?P<net>\w+)(?:\((?P<addr>[^)]*)\))?)?"
    r"/(?P<database>[^?]*)"
    r"(?:\?.*)?$"
)


def _parse_dsn(dsn: str) -> URL:
    match = _DSN.match(dsn)
    if not match:
        raise ValueError("connection string is neither a URL nor a MySQL DSN")

    host, port, query = None, None, {}
    net = match.group("net")
    if net == "unix":
        if not match.group("addr"):
            raise ValueError("unix DSN without a socket path")
        query = {"unix_socket": match.group("addr")}
    elif net not in (None, "tcp", "tcp6"):
        raise ValueError(f"unsupported DSN network {net!r}")
    elif match.group("addr"):
        host, _, port_text = match.group("addr").rpartition(":")
        if not host:
            host, port_text = port_text, ""
        port = int(port_text) if port_text else None

    return URL.create(
        DRIVER_NAME,
        username=match.group("user") or None,
        password=match.group("password"),
        host=host,
        port=port,
        database=match.group("database") or None,
        query=query,
    )


def build_connection_url(metadata: MySQLMetadata) -> URL:
    """
    Build the SQLAlchemy URL for a MySQL trigger.

    Passthrough connection strings may be SQLAlchemy URLs or MySQL DSNs;
    otherwise the URL is assembled from the discrete fields.

    Raises:
        ValueError: If the connection string cannot be parsed
    """
    if metadata.connection_string:
        if "://" not in metadata.connection_string:
            return _parse_dsn(metadata.connection_string)
        try:
            url = make_url(metadata.connection_string)
        except ArgumentError as e:
            raise ValueError(str(e)) from e
        if url.drivername == "mysql":
            url = url.set(drivername=DRIVER_NAME)
        return url

    return URL.create(
        DRIVER_NAME,
        host=metadata.host,
        port=metadata.port,
        database=metadata.db_name,
        password=metadata.password or None,
        username=metadata.username,
    )


def _to_int(value: Any) -> int:
    if value is None or isinstance(value, bool):
        raise QueryError(f"query result {value!r} is not a number")
    if isinstance(value, int):
        number = value
    else:
        try:
            decimal = Decimal(value.decode() if isinstance(value, bytes) else str(value))
        except (InvalidOperation, UnicodeDecodeError) as e:
            raise QueryError(f"query result {value!r} is not a number") from e
        if not decimal.is_finite() or decimal != decimal.to_integral_value():
            raise QueryError(f"query result {value!r} is not an integer")
        number = int(decimal)
    if number < 0:
        raise QueryError(f"query result {number} is negative")
    return number


class MySQLClient:
    """Pooled connection to a MySQL database running one configured query."""

    def __init__(self, engine: AsyncEngine, log: Optional[ScalerLogger] = None):
        self.engine = engine
        self.logger = log or logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    async def open(
        cls, metadata: MySQLMetadata, log: Optional[ScalerLogger] = None
    ) -> "MySQLClient":
        """
        Open a connection pool and probe it once.

        Raises:
            BackendConnectionError: If the URL is invalid or the probe fails
        """
        log = log or logger
        try:
            url = build_connection_url(metadata)
        except ValueError as e:
            raise BackendConnectionError(f"invalid MySQL connection string: {e}") from e

        try:
            engine = create_async_engine(
                url,
                pool_size=Config.SQL_POOL_SIZE,
                max_overflow=Config.SQL_MAX_OVERFLOW,
                connect_args={"connect_timeout": int(Config.METRIC_FETCH_TIMEOUT)},
            )
        except SQLAlchemyError as e:
            log.error(f"Found error when opening connection: {e}")
            raise BackendConnectionError(f"error opening MySQL connection: {e}") from e

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            log.error(f"Found error when pinging database: {e}")
            await engine.dispose()
            raise BackendConnectionError(f"error establishing MySQL connection: {e}") from e

        return cls(engine, log)

    async def scalar_query(self, query: str) -> int:
        """
        Run the operator-supplied query and return its single integer value.

        The query text is executed verbatim, without parameter binding.

        Raises:
            QueryError: Unless the result is one row with one non-negative integer
        """
        try:
            async with self.engine.connect() as conn:
                result = await conn.exec_driver_sql(
                    query, execution_options={"no_parameters": True}
                )
                rows = result.fetchmany(2)
        except (SQLAlchemyError, OSError) as e:
            raise QueryError(f"could not query MySQL database: {e}") from e

        if not rows:
            raise QueryError("query returned no rows, expected exactly 1")
        if len(rows) > 1:
            raise QueryError("query returned more than one row, expected exactly 1")
        if len(rows[0]) != 1:
            raise QueryError(f"query returned {len(rows[0])} columns, expected exactly 1")

        value = _to_int(rows[0][0])
        self.logger.debug(f"MySQL query value: {value}")
        return value

    async def close(self):
        """Dispose of the connection pool."""
        await self.engine.dispose()
