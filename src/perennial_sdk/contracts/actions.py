"""Batch executor actions.

Each model is one atomic invocation accepted by the multi-invoker. Actions are
ordered; a CommitPriceAction, when present, goes first so the trade executes
against the freshly committed price.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import Field, NonNegativeInt, field_validator, model_validator

from perennial_sdk.contracts.base import (
    Address,
    ContractBase,
    FeedId,
    HexBytes,
    Int256,
    Uint256,
)
from perennial_sdk.contracts.types import PositionSide, TriggerComparison


class InterfaceFee(ContractBase):
    """Fee paid to an interface receiver alongside an action.

    unwrap=True pays out in the settlement currency (USDC), False in the
    wrapped collateral token (DSU).
    """

    unwrap: bool
    receiver: Address
    amount: NonNegativeInt


class ExplicitDelta(ContractBase):
    """Change a position by a signed 6-decimal amount."""

    kind: Literal["explicit"] = "explicit"
    amount: Int256


class FullCloseDelta(ContractBase):
    """Close the whole position regardless of its size at trigger time."""

    kind: Literal["full_close"] = "full_close"


PositionDelta = Annotated[Union[ExplicitDelta, FullCloseDelta], Field(discriminator="kind")]

FULL_CLOSE = FullCloseDelta()


class UpdateMarketAction(ContractBase):
    """Set an absolute position size on one side and move collateral."""

    kind: Literal["update_market"] = "update_market"
    market: Address
    maker: NonNegativeInt | None = None
    long: NonNegativeInt | None = None
    short: NonNegativeInt | None = None
    collateral: Int256 = Field(default=0, description="Signed collateral delta")
    wrap: bool = True
    interface_fee: InterfaceFee | None = None
    interface_fee2: InterfaceFee | None = None

    @model_validator(mode="after")
    def _single_side(self) -> UpdateMarketAction:
        sides = [s for s in (self.maker, self.long, self.short) if s is not None]
        if len(sides) > 1:
            raise ValueError("Only one of maker/long/short may be set per update")
        return self


class PlaceTriggerOrderAction(ContractBase):
    """Conditional order that executes when price crosses `price`."""

    kind: Literal["place_trigger_order"] = "place_trigger_order"
    market: Address
    side: PositionSide
    comparison: TriggerComparison
    price: Int256
    delta: PositionDelta
    max_fee: NonNegativeInt
    interface_fee: InterfaceFee | None = None
    interface_fee2: InterfaceFee | None = None

    @field_validator("side")
    @classmethod
    def _taker_side(cls, v: PositionSide) -> PositionSide:
        if not v.is_taker:
            raise ValueError(f"Trigger orders require a long or short side, got {v.value}")
        return v


class CancelOrderAction(ContractBase):
    """Cancel a previously placed trigger order."""

    kind: Literal["cancel_order"] = "cancel_order"
    market: Address
    nonce: Uint256


class CommitPriceAction(ContractBase):
    """Commit a signed price update to the market's keeper factory."""

    kind: Literal["commit_price"] = "commit_price"
    keeper_factory: Address
    value: NonNegativeInt = Field(description="Native value forwarded to pay the update fee")
    ids: tuple[FeedId, ...]
    version: NonNegativeInt
    update_data: HexBytes
    revert_on_failure: bool = False


class ClaimFeeAction(ContractBase):
    """Claim accrued interface/referral fees from a market."""

    kind: Literal["claim_fee"] = "claim_fee"
    market: Address
    unwrap: bool = True


Action = Annotated[
    Union[
        UpdateMarketAction,
        PlaceTriggerOrderAction,
        CancelOrderAction,
        CommitPriceAction,
        ClaimFeeAction,
    ],
    Field(discriminator="kind"),
]
