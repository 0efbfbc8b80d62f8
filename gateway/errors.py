"""
Exceptions raised by the gateway.

Everything a request handler can fail with derives from GatewayError,
which the application turns into a 500 JSON error body.
"""

from typing import Optional


class GatewayError(Exception):
    """Base exception for request-level failures."""
    pass


class MissingParameterError(GatewayError):
    """Raised when a required query parameter is absent or empty."""

    def __init__(self, name: str):
        super().__init__(f'Missing required parameter "{name}"')
        self.name = name


class UpstreamError(GatewayError):
    """Raised when the upstream API call fails or returns a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(Exception):
    """Raised at startup when required configuration is missing or invalid."""
    pass
