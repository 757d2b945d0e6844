"""
Backoff for RPC node and price service requests.

- On 429 (or the node's "limit exceeded" error): back off, honour Retry-After
- On 5xx / network errors: retry with exponential backoff and jitter
- Other 4xx: fail immediately
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass
from enum import Enum

# JSON-RPC error code used by most node providers for request throttling.
RPC_LIMIT_EXCEEDED = -32005


class RateLimitKind(str, Enum):
    """Type of rate limit error."""

    RATE_LIMIT = "RATE_LIMIT"  # HTTP 429
    RPC_LIMIT_EXCEEDED = "RPC_LIMIT_EXCEEDED"  # JSON-RPC -32005


class RateLimitError(Exception):
    """Raised when a provider throttles requests and retries are exhausted."""

    def __init__(
        self,
        message: str,
        error_code: int | None = None,
        retry_after_ms: int | None = None,
        kind: RateLimitKind = RateLimitKind.RATE_LIMIT,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.retry_after_ms = retry_after_ms
        self.kind = kind


@dataclass
class BackoffConfig:
    """Configuration for exponential backoff."""

    base_delay_ms: int = 250
    max_delay_ms: int = 10000
    multiplier: float = 2.0
    jitter_factor: float = 0.5  # 0.5 = ±50% jitter
    max_retries: int = 3


@dataclass
class BackoffState:
    """Mutable state for backoff tracking."""

    attempt: int = 0
    last_error_time_ms: int = 0
    consecutive_errors: int = 0

    def reset(self) -> None:
        """Reset backoff state after successful operation."""
        self.attempt = 0
        self.consecutive_errors = 0

    def record_error(self) -> None:
        """Record an error occurrence."""
        self.attempt += 1
        self.consecutive_errors += 1
        self.last_error_time_ms = int(time.time() * 1000)

    def exhausted(self, config: BackoffConfig) -> bool:
        return self.attempt > config.max_retries


def compute_backoff_delay(
    config: BackoffConfig,
    state: BackoffState,
    retry_after_ms: int | None = None,
    *,
    rng: random.Random | None = None,
) -> int:
    """
    Compute backoff delay with exponential increase and jitter.

    Respects Retry-After when provided.

    Args:
        config: Backoff configuration.
        state: Current backoff state.
        retry_after_ms: Server-provided retry delay (Retry-After header).
        rng: Optional seeded Random instance for deterministic jitter.

    Returns:
        Delay in milliseconds before next retry.
    """
    if state.attempt == 0:
        return 0

    delay = config.base_delay_ms * (config.multiplier ** (state.attempt - 1))

    # delay * (1 - jitter_factor) to delay * (1 + jitter_factor)
    jitter_min = 1.0 - config.jitter_factor
    jitter_max = 1.0 + config.jitter_factor
    if rng is not None:
        jitter_multiplier = rng.uniform(jitter_min, jitter_max)
    else:
        jitter_multiplier = random.uniform(jitter_min, jitter_max)
    delay = delay * jitter_multiplier

    delay = min(delay, config.max_delay_ms)

    # Server knows best
    if retry_after_ms is not None and retry_after_ms > 0:
        delay = max(delay, retry_after_ms)

    return int(delay)


def parse_retry_after(value: str | None) -> int | None:
    """Retry-After seconds header to milliseconds; None if absent or malformed."""
    if value is None:
        return None
    try:
        return int(value) * 1000
    except ValueError:
        return None


def handle_error_response(
    status_code: int,
    error_code: int | None = None,
    retry_after_ms: int | None = None,
) -> RateLimitError | None:
    """
    Classify a provider error response.

    Args:
        status_code: HTTP status code.
        error_code: JSON-RPC error code, if the body carried one.
        retry_after_ms: Suggested retry delay if provided (Retry-After header).

    Returns:
        RateLimitError if rate limiting detected, None otherwise.
    """
    if status_code == 429:
        return RateLimitError(
            "Rate limit exceeded (429)",
            error_code=error_code,
            retry_after_ms=retry_after_ms,
            kind=RateLimitKind.RATE_LIMIT,
        )

    if error_code == RPC_LIMIT_EXCEEDED:
        return RateLimitError(
            f"RPC limit exceeded ({RPC_LIMIT_EXCEEDED})",
            error_code=error_code,
            retry_after_ms=retry_after_ms,
            kind=RateLimitKind.RPC_LIMIT_EXCEEDED,
        )

    return None
