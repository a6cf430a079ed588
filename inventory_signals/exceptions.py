"""
Exception taxonomy.

Adapters raise these; the engine's public operations catch them and turn them
into structured results, so none of them cross a public boundary under
expected failure conditions.

  InventorySignalsError
    ├── ConfigurationError  : channel enabled but missing recipient / URL
    ├── UpstreamError       : a remote call failed
    │     ├── PlatformError : commerce platform query or mutation
    │     └── ChannelError  : e-mail transport or webhook
    ├── ValidationError     : absent or malformed input
    └── DisabledError       : feature switched off
"""

from __future__ import annotations

from typing import Optional


class InventorySignalsError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(InventorySignalsError):
    """A channel or adapter is missing a required setting."""


class UpstreamError(InventorySignalsError):
    """A call to an external service failed.

    Args:
        message:     Error detail.
        status_code: HTTP status code, if the failure was an HTTP response.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class PlatformError(UpstreamError):
    """The commerce platform rejected a query or mutation."""


class ChannelError(UpstreamError):
    """A notification transport failed."""


class ValidationError(InventorySignalsError):
    """Input was missing or malformed."""


class DisabledError(InventorySignalsError):
    """The requested feature is switched off."""
