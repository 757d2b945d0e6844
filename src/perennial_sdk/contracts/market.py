"""Market reference data and per-request market snapshots.

Producer: MarketDataSource (external read path) or the caller.
Consumer: TransactionComposer (staleness evaluation, limit order fee pricing).
"""

from __future__ import annotations

from pydantic import Field, NonNegativeInt

from perennial_sdk.contracts.base import Address, ContractBase, FeedId


class RiskParameters(ContractBase):
    """Market parameters that bound how long a committed price stays usable."""

    stale_after: NonNegativeInt = Field(description="Seconds after which an oracle version is stale")
    max_pending_global: NonNegativeInt = Field(description="Max unsettled positions for the market")
    max_pending_local: NonNegativeInt = Field(description="Max unsettled positions per account")


class GlobalPosition(ContractBase):
    """Aggregate open interest (6-decimal)."""

    maker: NonNegativeInt = 0
    long: NonNegativeInt = 0
    short: NonNegativeInt = 0


class MarketSnapshot(ContractBase):
    """Cached view of one market's on-chain state for a single request."""

    market: Address
    asset: str
    latest_price: int = Field(description="Latest oracle price (6-decimal)")
    risk: RiskParameters
    global_position: GlobalPosition = Field(default_factory=GlobalPosition)
    pending_global: NonNegativeInt = Field(default=0, description="Pending positions for the market")
    pending_local: NonNegativeInt = Field(default=0, description="Pending positions for the user")
    latest_oracle_timestamp: NonNegativeInt | None = Field(
        default=None,
        description="Timestamp of the latest oracle version if read together with the snapshot",
    )


class MarketSnapshots(ContractBase):
    """Snapshots for a set of markets, fetched for one account."""

    user: Address | None = None
    markets: dict[Address, MarketSnapshot] = Field(default_factory=dict)

    def get(self, market: str) -> MarketSnapshot | None:
        """Look up a snapshot by market address (any casing)."""
        lowered = market.lower()
        for address, snapshot in self.markets.items():
            if address.lower() == lowered:
                return snapshot
        return None


class MarketOracleInfo(ContractBase):
    """Oracle wiring for a market: which feed prices it and who accepts commits."""

    market: Address
    asset: str
    oracle_address: Address = Field(description="Oracle contract exposing latest()")
    provider_id: FeedId = Field(description="Price feed id")
    keeper_factory: Address = Field(description="Keeper/factory accepting price commits")


class MarketOracles(ContractBase):
    """Oracle info keyed by asset."""

    oracles: dict[str, MarketOracleInfo] = Field(default_factory=dict)

    def find_by_market(self, market: str) -> MarketOracleInfo | None:
        lowered = market.lower()
        for info in self.oracles.values():
            if info.market.lower() == lowered:
                return info
        return None
