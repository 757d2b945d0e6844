"""
Interface fee calculation.

Implements:
- nominal = |notional| * rate(side)
- total = nominal - nominal * referrer_discount
- referrer_fee = total * referrer_share
- ecosystem_fee = total - referrer_fee

All arithmetic is 6-decimal fixed point truncating toward zero.

Supplied fees (computed by the caller) are checked against the configured
rate. A fee above rate * 1.05 is waived entirely: the trade goes through
without interface fee records rather than being clamped or rejected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from perennial_sdk.constants import INTERFACE_FEE_TOLERANCE
from perennial_sdk.contracts.actions import InterfaceFee
from perennial_sdk.fixed_point import Big6Math

if TYPE_CHECKING:
    from perennial_sdk.contracts.fees import (
        FeeConfig,
        InterfaceFeeRates,
        ReferrerFeeInfo,
        SuppliedInterfaceFee,
    )
    from perennial_sdk.contracts.types import PositionSide
    from perennial_sdk.metrics import ComposerMetrics

logger = logging.getLogger(__name__)

_TOLERANCE = Big6Math.from_decimal(INTERFACE_FEE_TOLERANCE)


@dataclass(frozen=True)
class InterfaceFeeBreakdown:
    """Computed interface fee split.

    Attributes:
        rate: Rate applied for the side (6-decimal fraction).
        total: Fee after the referrer discount.
        referrer_fee: Referrer's cut of the total.
        ecosystem_fee: Remainder owed to the ecosystem recipient.
    """

    rate: int
    total: int
    referrer_fee: int
    ecosystem_fee: int


@dataclass(frozen=True)
class FeeRecords:
    """Up to two fee records for one action: referrer slot, then ecosystem slot."""

    referrer: InterfaceFee | None = None
    ecosystem: InterfaceFee | None = None


NO_FEES = FeeRecords()


def order_notional(delta: int, price: int) -> int:
    """Absolute notional of a position delta at a price."""
    return Big6Math.abs(Big6Math.mul(delta, price))


def compute_interface_fee(
    notional: int,
    side: PositionSide | None,
    rates: InterfaceFeeRates,
    referrer_discount: int = 0,
    referrer_share: int = 0,
) -> InterfaceFeeBreakdown:
    """
    Compute the interface fee owed on a trade.

    Args:
        notional: Trade notional (sign ignored).
        side: Position side, selects the rate.
        rates: Configured rate table.
        referrer_discount: Fraction of the fee waived for a referred trader.
        referrer_share: Fraction of the discounted fee paid to the referrer.

    Returns:
        InterfaceFeeBreakdown. Zero notional yields all zeros.
    """
    rate = rates.fee_for(side)
    nominal = Big6Math.mul(Big6Math.abs(notional), rate)
    total = nominal - Big6Math.mul(nominal, referrer_discount)
    referrer_fee = Big6Math.mul(total, referrer_share)
    return InterfaceFeeBreakdown(
        rate=rate,
        total=total,
        referrer_fee=referrer_fee,
        ecosystem_fee=total - referrer_fee,
    )


def fee_exceeds_tolerance(fee: int, notional: int, rate: int) -> bool:
    """True if `fee / notional` is above `rate` by more than the tolerance."""
    if fee <= 0 or notional <= 0:
        return False
    trade_rate = Big6Math.div(fee, notional)
    return trade_rate > Big6Math.mul(rate, _TOLERANCE)


def build_fee_records(
    referrer_fee: int,
    ecosystem_fee: int,
    rates: InterfaceFeeRates | None,
    referral: ReferrerFeeInfo | None,
) -> FeeRecords:
    """Turn fee amounts into records, dropping zero amounts and missing receivers."""
    referrer = None
    if referral is not None and referrer_fee > 0:
        # Referrers are paid in the settlement currency
        referrer = InterfaceFee(unwrap=True, receiver=referral.referral_target, amount=referrer_fee)

    ecosystem = None
    if rates is not None and ecosystem_fee > 0:
        # Default recipient holds the wrapped collateral token
        ecosystem = InterfaceFee(unwrap=False, receiver=rates.fee_recipient, amount=ecosystem_fee)

    return FeeRecords(referrer=referrer, ecosystem=ecosystem)


def _supplied_fee_records(
    supplied: SuppliedInterfaceFee,
    notional: int,
    side: PositionSide | None,
    fee_config: FeeConfig,
    account: str,
    metrics: ComposerMetrics | None,
) -> FeeRecords:
    if fee_config.rates is None:
        # No rate to check against; a fee is never attached without one
        return NO_FEES

    rate = fee_config.rates.fee_for(side)
    if fee_exceeds_tolerance(supplied.interface_fee, notional, rate):
        logger.error(
            "Fee exceeds rate - waiving.",
            extra={"account": account, "interface_fee": supplied.interface_fee, "rate": rate},
        )
        if metrics is not None:
            metrics.record_fee_waived()
        return NO_FEES

    return build_fee_records(
        supplied.referrer_fee,
        supplied.ecosystem_fee,
        fee_config.rates,
        fee_config.referral,
    )


def resolve_leg_fees(
    fee_config: FeeConfig,
    side: PositionSide | None,
    notional: int,
    *,
    account: str,
    metrics: ComposerMetrics | None = None,
) -> FeeRecords:
    """
    Resolve the fee records for one trade leg.

    Supplied amounts are validated against the configured rate and waived
    above tolerance. Otherwise the fee is computed from the rate table.

    Args:
        fee_config: Fee inputs for the leg.
        side: Side of the leg.
        notional: Absolute notional of the leg.
        account: Trading account, for logging.
        metrics: Optional metrics sink for waivers.

    Returns:
        FeeRecords, empty when no rate table is configured.
    """
    if fee_config.supplied is not None:
        return _supplied_fee_records(fee_config.supplied, notional, side, fee_config, account, metrics)

    if fee_config.rates is None or notional == 0:
        return NO_FEES

    referral = fee_config.referral
    breakdown = compute_interface_fee(
        notional,
        side,
        fee_config.rates,
        referrer_discount=referral.discount if referral else 0,
        referrer_share=referral.share if referral else 0,
    )
    return build_fee_records(breakdown.referrer_fee, breakdown.ecosystem_fee, fee_config.rates, referral)
