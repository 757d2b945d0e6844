"""
Strategies for failed price update fetches.

When a composer decides a fresh price must be committed but the update cannot
be fetched, the handler decides what happens. Handlers that return let the
composer continue without the commit action; raising aborts composition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from perennial_sdk.errors import PriceCommitmentError
    from perennial_sdk.metrics import ComposerMetrics

logger = logging.getLogger(__name__)


class CommitmentErrorHandler(Protocol):
    def __call__(self, error: PriceCommitmentError, market: str) -> None: ...


class LogCommitmentErrors:
    """Default: log a warning, count it, and continue without the commit."""

    def __init__(self, metrics: ComposerMetrics | None = None) -> None:
        self._metrics = metrics

    def __call__(self, error: PriceCommitmentError, market: str) -> None:
        logger.warning(
            "Price update unavailable, composing without commit",
            extra={"market": market, "feed_ids": list(error.feed_ids), "error": str(error)},
        )
        if self._metrics is not None:
            self._metrics.record_commitment_error()


class CallbackCommitmentErrors:
    """Forward the error to a caller-supplied callback, then continue."""

    def __init__(
        self,
        callback: Callable[[PriceCommitmentError, str], None],
        metrics: ComposerMetrics | None = None,
    ) -> None:
        self._callback = callback
        self._metrics = metrics

    def __call__(self, error: PriceCommitmentError, market: str) -> None:
        if self._metrics is not None:
            self._metrics.record_commitment_error()
        self._callback(error, market)


class RaiseCommitmentErrors:
    """Abort composition by re-raising the error."""

    def __call__(self, error: PriceCommitmentError, market: str) -> None:
        raise error
