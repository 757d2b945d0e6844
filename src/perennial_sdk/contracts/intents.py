"""Trading intents accepted by the TransactionComposer.

Each intent is self-contained: market data may be supplied inline or is
fetched by the composer when absent.
"""

from __future__ import annotations

from pydantic import Field, NonNegativeInt, PositiveInt

from perennial_sdk.contracts.base import Address, ContractBase, Uint256
from perennial_sdk.contracts.fees import FeeConfig
from perennial_sdk.contracts.market import MarketOracles, MarketSnapshots
from perennial_sdk.contracts.types import OrderType, PositionSide, TriggerComparison


class OrderRef(ContractBase):
    """Identifies a placed trigger order."""

    market: Address
    nonce: Uint256


class _MarketIntent(ContractBase):
    market: Address
    account: Address
    market_oracles: MarketOracles | None = None
    market_snapshots: MarketSnapshots | None = None


class ModifyPositionIntent(_MarketIntent):
    """Open, resize or close a position and/or move collateral."""

    side: PositionSide = PositionSide.NONE
    position_abs: NonNegativeInt | None = Field(default=None, description="Desired absolute size")
    collateral_delta: int = 0
    stop_loss_price: PositiveInt | None = None
    take_profit_price: PositiveInt | None = None
    cancel_orders: tuple[OrderRef, ...] = ()
    fees: FeeConfig = Field(default_factory=FeeConfig)
    stop_loss_fees: FeeConfig = Field(default_factory=FeeConfig)
    take_profit_fees: FeeConfig = Field(default_factory=FeeConfig)


class PlaceOrderIntent(_MarketIntent):
    """Place a limit, stop-loss or take-profit order, optionally with attached legs."""

    order_type: OrderType
    side: PositionSide
    delta: int = Field(default=0, description="Signed position delta for the order")
    position_abs: NonNegativeInt | None = Field(
        default=None,
        description="Expected resulting position size, used to price full-close legs",
    )
    limit_price: PositiveInt | None = None
    stop_loss_price: PositiveInt | None = None
    take_profit_price: PositiveInt | None = None
    trigger_comparison: TriggerComparison | None = None
    collateral_delta: int = 0
    max_fee: NonNegativeInt | None = None
    cancel_orders: tuple[OrderRef, ...] = ()
    limit_order_fees: FeeConfig = Field(default_factory=FeeConfig)
    stop_loss_fees: FeeConfig = Field(default_factory=FeeConfig)
    take_profit_fees: FeeConfig = Field(default_factory=FeeConfig)


class CancelOrderIntent(ContractBase):
    """Cancel one or more trigger orders."""

    account: Address
    orders: tuple[OrderRef, ...]


class ClaimFeeIntent(ContractBase):
    """Claim accrued fees for the transaction sender."""

    market: Address
    unwrap: bool = True


class SubmitPriceAttestationIntent(ContractBase):
    """Push the latest signed price for a market straight to the oracle factory."""

    market: Address
    market_oracles: MarketOracles | None = None
