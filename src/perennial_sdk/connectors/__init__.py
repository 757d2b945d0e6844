"""Connectors for the RPC node and the price attestation service."""

from perennial_sdk.connectors.backoff import (
    BackoffConfig,
    BackoffState,
    RateLimitError,
    RateLimitKind,
    compute_backoff_delay,
    handle_error_response,
)
from perennial_sdk.connectors.pyth import PythAttestationSource
from perennial_sdk.connectors.rpc import JsonRpcChainReader

__all__ = [
    "BackoffConfig",
    "BackoffState",
    "JsonRpcChainReader",
    "PythAttestationSource",
    "RateLimitError",
    "RateLimitKind",
    "compute_backoff_delay",
    "handle_error_response",
]
