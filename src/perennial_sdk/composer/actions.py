"""
Action builders.

Pure functions turning one narrow intent into one executor action. They do
no I/O and no fee math; fee records are resolved by the caller.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from perennial_sdk.contracts.actions import (
    CancelOrderAction,
    ClaimFeeAction,
    CommitPriceAction,
    PlaceTriggerOrderAction,
    UpdateMarketAction,
)
from perennial_sdk.contracts.types import PositionSide, TriggerComparison
from perennial_sdk.errors import InvalidInputError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from perennial_sdk.contracts.actions import InterfaceFee, PositionDelta
    from perennial_sdk.contracts.intents import OrderRef
    from perennial_sdk.contracts.tx import PriceAttestation


def _non_zero(fee: InterfaceFee | None) -> InterfaceFee | None:
    if fee is None or fee.amount == 0:
        return None
    return fee


def build_update_market(
    market: str,
    side: PositionSide | None,
    position_abs: int | None,
    collateral_delta: int = 0,
    *,
    wrap: bool = True,
    interface_fee: InterfaceFee | None = None,
    interface_fee2: InterfaceFee | None = None,
) -> UpdateMarketAction:
    """
    Build a market update.

    Args:
        market: Market address.
        side: Side being modified; the other sides are left unchanged.
        position_abs: Absolute target size for `side` (None leaves it unchanged).
        collateral_delta: Signed collateral change.
        wrap: Wrap settlement currency into collateral on deposit.
        interface_fee: Referrer fee record.
        interface_fee2: Ecosystem fee record.

    Returns:
        UpdateMarketAction.
    """
    return UpdateMarketAction(
        market=market,
        maker=position_abs if side is PositionSide.MAKER else None,
        long=position_abs if side is PositionSide.LONG else None,
        short=position_abs if side is PositionSide.SHORT else None,
        collateral=collateral_delta,
        wrap=wrap,
        interface_fee=_non_zero(interface_fee),
        interface_fee2=_non_zero(interface_fee2),
    )


def build_place_trigger_order(
    market: str,
    side: PositionSide,
    price: int,
    comparison: TriggerComparison,
    delta: PositionDelta,
    max_fee: int,
    *,
    interface_fee: InterfaceFee | None = None,
    interface_fee2: InterfaceFee | None = None,
) -> PlaceTriggerOrderAction:
    """
    Build a trigger order (limit, stop-loss or take-profit).

    Raises:
        InvalidInputError: If side is not long or short.
    """
    if not side.is_taker:
        raise InvalidInputError(f"Trigger orders are not valid for the {side.value} side")

    return PlaceTriggerOrderAction(
        market=market,
        side=side,
        comparison=comparison,
        price=price,
        delta=delta,
        max_fee=max_fee,
        interface_fee=_non_zero(interface_fee),
        interface_fee2=_non_zero(interface_fee2),
    )


def build_cancel_order(market: str, nonce: int | str) -> CancelOrderAction:
    """Build a cancel action; nonce is coerced to uint256."""
    return CancelOrderAction(market=market, nonce=nonce)


def build_cancel_orders(orders: Iterable[OrderRef]) -> list[CancelOrderAction]:
    """One cancel action per order, in the order supplied."""
    return [build_cancel_order(order.market, order.nonce) for order in orders]


def build_commit_price(
    keeper_factory: str,
    attestation: PriceAttestation,
    *,
    revert_on_failure: bool = False,
) -> CommitPriceAction:
    """
    Wrap a signed price update into a commit action.

    Args:
        keeper_factory: Factory accepting commits for the market's feed.
        attestation: Previously fetched price update.
        revert_on_failure: Revert the whole batch if this commit fails.
            Off by default.
    """
    return CommitPriceAction(
        keeper_factory=keeper_factory,
        value=attestation.value,
        ids=attestation.ids,
        version=attestation.version,
        update_data=attestation.update_data,
        revert_on_failure=revert_on_failure,
    )


def build_claim_fee(market: str, *, unwrap: bool = True) -> ClaimFeeAction:
    return ClaimFeeAction(market=market, unwrap=unwrap)


def stop_loss_comparison(side: PositionSide) -> TriggerComparison:
    """Stop-loss fires when price moves against the position."""
    return TriggerComparison.GTE if side is PositionSide.SHORT else TriggerComparison.LTE


def take_profit_comparison(side: PositionSide) -> TriggerComparison:
    """Take-profit fires when price moves in favour of the position."""
    return TriggerComparison.LTE if side is PositionSide.SHORT else TriggerComparison.GTE


def default_limit_comparison(side: PositionSide) -> TriggerComparison:
    """Longs buy at or below the limit, shorts sell at or above it."""
    return TriggerComparison.LTE if side is PositionSide.LONG else TriggerComparison.GTE
