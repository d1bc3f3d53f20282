"""Error taxonomy shared by resolvers, credentials, clients and scalers."""


class ScalerError(Exception):
    """Base exception for scaler operations"""

    pass


class ConfigError(ScalerError):
    """Raised when trigger metadata is missing or malformed"""

    pass


class AuthError(ScalerError):
    """Raised when a credential or token cannot be obtained"""

    pass


class BackendConnectionError(ScalerError):
    """Raised when the backend is unreachable or fails its liveness probe"""

    pass


class QueryError(ScalerError):
    """Raised when a single poll fails to fetch or parse a value"""

    pass


class UnsupportedOperationError(ScalerError):
    """Raised for a metric name the scaler does not advertise"""

    pass
