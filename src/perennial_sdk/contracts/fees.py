"""Interface fee configuration contracts.

Rates and shares are 6-decimal fractions (10_000 == 1%).
"""

from __future__ import annotations

from pydantic import Field, NonNegativeInt

from perennial_sdk.contracts.base import Address, ContractBase
from perennial_sdk.contracts.types import PositionSide


class InterfaceFeeRates(ContractBase):
    """Per-side interface fee rate table and the ecosystem fee recipient."""

    fee_recipient: Address
    maker: NonNegativeInt = 0
    long: NonNegativeInt = 0
    short: NonNegativeInt = 0

    def fee_for(self, side: PositionSide | None) -> int:
        if side is PositionSide.MAKER:
            return self.maker
        if side is PositionSide.LONG:
            return self.long
        if side is PositionSide.SHORT:
            return self.short
        return 0


class ReferrerFeeInfo(ContractBase):
    """Referral terms attached to the trading account."""

    referral_target: Address
    discount: NonNegativeInt = Field(default=0, description="Fraction of the fee waived for the trader")
    share: NonNegativeInt = Field(default=0, description="Fraction of the discounted fee paid to the referrer")


class SuppliedInterfaceFee(ContractBase):
    """Fee amounts computed by the caller (e.g. shown in a UI before signing)."""

    interface_fee: NonNegativeInt
    referrer_fee: NonNegativeInt = 0
    ecosystem_fee: NonNegativeInt = 0


class FeeConfig(ContractBase):
    """Fee inputs for a single trade leg.

    With `supplied`, the amounts are checked against `rates` and waived when
    they exceed the tolerance. Without it, fees are computed from `rates`.
    `notional` is only needed for legs whose size the composer cannot derive
    (the main position update).
    """

    rates: InterfaceFeeRates | None = None
    referral: ReferrerFeeInfo | None = None
    supplied: SuppliedInterfaceFee | None = None
    notional: NonNegativeInt | None = Field(
        default=None,
        description="Absolute notional of the position change (6-decimal)",
    )
