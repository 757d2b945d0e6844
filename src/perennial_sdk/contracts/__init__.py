"""SDK data contracts.

Pydantic models for market data, trading intents, batch executor actions and
transaction payloads.

All contracts follow these invariants:
- Frozen (immutable once built)
- No extra fields allowed (extra='forbid')
- Addresses are checksummed on validation
- Monetary values are 6-decimal fixed-point ints
"""

from perennial_sdk.contracts.actions import (
    FULL_CLOSE,
    Action,
    CancelOrderAction,
    ClaimFeeAction,
    CommitPriceAction,
    ExplicitDelta,
    FullCloseDelta,
    InterfaceFee,
    PlaceTriggerOrderAction,
    PositionDelta,
    UpdateMarketAction,
)
from perennial_sdk.contracts.base import checksum_address, is_zero_address
from perennial_sdk.contracts.fees import (
    FeeConfig,
    InterfaceFeeRates,
    ReferrerFeeInfo,
    SuppliedInterfaceFee,
)
from perennial_sdk.contracts.intents import (
    CancelOrderIntent,
    ClaimFeeIntent,
    ModifyPositionIntent,
    OrderRef,
    PlaceOrderIntent,
    SubmitPriceAttestationIntent,
)
from perennial_sdk.contracts.market import (
    GlobalPosition,
    MarketOracleInfo,
    MarketOracles,
    MarketSnapshot,
    MarketSnapshots,
    RiskParameters,
)
from perennial_sdk.contracts.tx import OracleVersion, PriceAttestation, TransactionPayload
from perennial_sdk.contracts.types import (
    InvokerAction,
    OrderType,
    PositionSide,
    TriggerComparison,
)

__all__ = [
    "FULL_CLOSE",
    "Action",
    "CancelOrderAction",
    "CancelOrderIntent",
    "ClaimFeeAction",
    "ClaimFeeIntent",
    "CommitPriceAction",
    "ExplicitDelta",
    "FeeConfig",
    "FullCloseDelta",
    "GlobalPosition",
    "InterfaceFee",
    "InterfaceFeeRates",
    "InvokerAction",
    "MarketOracleInfo",
    "MarketOracles",
    "MarketSnapshot",
    "MarketSnapshots",
    "ModifyPositionIntent",
    "OracleVersion",
    "OrderRef",
    "OrderType",
    "PlaceOrderIntent",
    "PlaceTriggerOrderAction",
    "PositionDelta",
    "PositionSide",
    "PriceAttestation",
    "ReferrerFeeInfo",
    "RiskParameters",
    "SubmitPriceAttestationIntent",
    "SuppliedInterfaceFee",
    "TransactionPayload",
    "TriggerComparison",
    "UpdateMarketAction",
    "checksum_address",
    "is_zero_address",
]
