"""
Oracle staleness evaluation.

A price is stale, and must be re-committed before trading, when any holds:
- the oracle's latest version is older than half of `stale_after`
- pending positions for the market reached `max_pending_global`
- pending positions for the account reached `max_pending_local`

Half of `stale_after` leaves headroom so a trade never lands on a price that
expires while the transaction is in flight.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from perennial_sdk.contracts.market import MarketSnapshot, RiskParameters


def now_seconds() -> int:
    return int(time.time())


def is_stale(
    snapshot: MarketSnapshot | None,
    last_observed_timestamp: int | None,
    now: int,
    risk: RiskParameters | None = None,
) -> bool:
    """
    Decide whether a fresh price attestation must precede the trade.

    Args:
        snapshot: Market snapshot; None means nothing is known about the market.
        last_observed_timestamp: Timestamp of the oracle's latest version.
        now: Current unix time in seconds.
        risk: Risk parameters override; defaults to `snapshot.risk`.

    Returns:
        True when the price must be committed. Missing data counts as stale.
    """
    if snapshot is None or last_observed_timestamp is None:
        return True

    params = risk or snapshot.risk

    if now - last_observed_timestamp > params.stale_after // 2:
        return True
    # Backlog of unsettled positions for the market
    if snapshot.pending_global >= params.max_pending_global:
        return True
    # Backlog of unsettled positions for this account
    return snapshot.pending_local >= params.max_pending_local
