"""Exceptions raised by the SDK."""

from __future__ import annotations


class PerennialSDKError(Exception):
    """Base class for SDK errors."""


class InvalidInputError(PerennialSDKError, ValueError):
    """Caller supplied an unusable argument (zero address, maker trigger order, ...)."""


class UnsupportedConfigurationError(PerennialSDKError):
    """The SDK instance is not configured for the requested operation."""


class PriceCommitmentError(PerennialSDKError):
    """A signed price update could not be fetched."""

    def __init__(self, message: str, feed_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.feed_ids = feed_ids


class RpcError(PerennialSDKError):
    """JSON-RPC node returned an error object."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
