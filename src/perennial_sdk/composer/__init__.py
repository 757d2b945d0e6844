"""Transaction composition.

Staleness evaluation, interface fee calculation, action builders, the
multi-invoker ABI boundary and the TransactionComposer that ties them together.
"""

from perennial_sdk.composer.actions import (
    build_cancel_order,
    build_cancel_orders,
    build_claim_fee,
    build_commit_price,
    build_place_trigger_order,
    build_update_market,
)
from perennial_sdk.composer.commitment import (
    CallbackCommitmentErrors,
    CommitmentErrorHandler,
    LogCommitmentErrors,
    RaiseCommitmentErrors,
)
from perennial_sdk.composer.composer import (
    AttestationSource,
    ChainReader,
    MarketDataSource,
    TransactionComposer,
)
from perennial_sdk.composer.encoding import (
    decode_invoke,
    encode_invoke,
    encode_pyth_commit,
)
from perennial_sdk.composer.fees import (
    FeeRecords,
    InterfaceFeeBreakdown,
    compute_interface_fee,
    fee_exceeds_tolerance,
    order_notional,
    resolve_leg_fees,
)
from perennial_sdk.composer.merge import merge_payloads
from perennial_sdk.composer.staleness import is_stale

__all__ = [
    "AttestationSource",
    "CallbackCommitmentErrors",
    "ChainReader",
    "CommitmentErrorHandler",
    "FeeRecords",
    "InterfaceFeeBreakdown",
    "LogCommitmentErrors",
    "MarketDataSource",
    "RaiseCommitmentErrors",
    "TransactionComposer",
    "build_cancel_order",
    "build_cancel_orders",
    "build_claim_fee",
    "build_commit_price",
    "build_place_trigger_order",
    "build_update_market",
    "compute_interface_fee",
    "decode_invoke",
    "encode_invoke",
    "encode_pyth_commit",
    "fee_exceeds_tolerance",
    "is_stale",
    "merge_payloads",
    "order_notional",
    "resolve_leg_fees",
]
