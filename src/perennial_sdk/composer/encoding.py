"""
Multi-invoker ABI boundary.

Calls are `invoke(address account, (uint8 action, bytes args)[] invocations)`.
Each action's args are ABI-encoded separately; field order is significant to
the contract. The full-close delta and "unchanged" position sentinels only
exist at this boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from eth_abi import decode, encode
from web3 import Web3

from perennial_sdk.constants import (
    POSITION_UNCHANGED,
    TRIGGER_ORDER_FULL_CLOSE_MAGIC_VALUE,
    ZERO_ADDRESS,
)
from perennial_sdk.contracts.actions import (
    FULL_CLOSE,
    CancelOrderAction,
    ClaimFeeAction,
    CommitPriceAction,
    ExplicitDelta,
    InterfaceFee,
    PlaceTriggerOrderAction,
    UpdateMarketAction,
)
from perennial_sdk.contracts.types import (
    TRIGGER_SIDE_ENCODING,
    InvokerAction,
    PositionSide,
    TriggerComparison,
)
from perennial_sdk.errors import InvalidInputError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from perennial_sdk.contracts.actions import Action, PositionDelta

Invocation = tuple[int, bytes]

_INTERFACE_FEE = "(uint256,address,bool)"
_TRIGGER_ORDER = f"(uint8,int8,uint256,int256,int256,{_INTERFACE_FEE},{_INTERFACE_FEE})"

_UPDATE_POSITION_TYPES = [
    "address", "uint256", "uint256", "uint256", "int256", "bool", _INTERFACE_FEE, _INTERFACE_FEE,
]
_PLACE_ORDER_TYPES = ["address", _TRIGGER_ORDER]
_CANCEL_ORDER_TYPES = ["address", "uint256"]
_COMMIT_PRICE_TYPES = ["address", "uint256", "bytes32[]", "uint256", "bytes", "bool"]
_CLAIM_FEE_TYPES = ["address", "bool"]
_INVOKE_TYPES = ["address", "(uint8,bytes)[]"]
_PYTH_COMMIT_TYPES = ["bytes32[]", "uint256", "bytes"]

INVOKE_SELECTOR = bytes(Web3.keccak(text="invoke(address,(uint8,bytes)[])")[:4])
PYTH_COMMIT_SELECTOR = bytes(Web3.keccak(text="commit(bytes32[],uint256,bytes)")[:4])

_SIDE_BY_CODE = {code: side for side, code in TRIGGER_SIDE_ENCODING.items()}


def _fee_tuple(fee: InterfaceFee | None) -> tuple[int, str, bool]:
    if fee is None:
        return (0, ZERO_ADDRESS, False)
    return (fee.amount, fee.receiver, fee.unwrap)


def _fee_from_tuple(raw: Sequence) -> InterfaceFee | None:
    amount, receiver, unwrap = raw
    if amount == 0 and receiver.lower() == ZERO_ADDRESS:
        return None
    return InterfaceFee(amount=amount, receiver=receiver, unwrap=unwrap)


def encode_delta(delta: PositionDelta) -> int:
    if isinstance(delta, ExplicitDelta):
        return delta.amount
    return TRIGGER_ORDER_FULL_CLOSE_MAGIC_VALUE


def decode_delta(value: int) -> PositionDelta:
    if value == TRIGGER_ORDER_FULL_CLOSE_MAGIC_VALUE:
        return FULL_CLOSE
    return ExplicitDelta(amount=value)


def _position_field(value: int | None) -> int:
    return POSITION_UNCHANGED if value is None else value


def _position_from_field(value: int) -> int | None:
    return None if value == POSITION_UNCHANGED else value


def encode_action(action: Action) -> Invocation:
    """Encode one action into its (action id, args) invocation."""
    if isinstance(action, UpdateMarketAction):
        args = encode(
            _UPDATE_POSITION_TYPES,
            [
                action.market,
                _position_field(action.maker),
                _position_field(action.long),
                _position_field(action.short),
                action.collateral,
                action.wrap,
                _fee_tuple(action.interface_fee),
                _fee_tuple(action.interface_fee2),
            ],
        )
        return (InvokerAction.UPDATE_POSITION, args)

    if isinstance(action, PlaceTriggerOrderAction):
        order = (
            TRIGGER_SIDE_ENCODING[action.side],
            action.comparison.encoded,
            action.max_fee,
            action.price,
            encode_delta(action.delta),
            _fee_tuple(action.interface_fee),
            _fee_tuple(action.interface_fee2),
        )
        return (InvokerAction.PLACE_ORDER, encode(_PLACE_ORDER_TYPES, [action.market, order]))

    if isinstance(action, CancelOrderAction):
        return (InvokerAction.CANCEL_ORDER, encode(_CANCEL_ORDER_TYPES, [action.market, action.nonce]))

    if isinstance(action, CommitPriceAction):
        args = encode(
            _COMMIT_PRICE_TYPES,
            [
                action.keeper_factory,
                action.value,
                [bytes.fromhex(feed_id[2:]) for feed_id in action.ids],
                action.version,
                action.update_data,
                action.revert_on_failure,
            ],
        )
        return (InvokerAction.COMMIT_PRICE, args)

    if isinstance(action, ClaimFeeAction):
        return (InvokerAction.CLAIM_FEE, encode(_CLAIM_FEE_TYPES, [action.market, action.unwrap]))

    raise InvalidInputError(f"Cannot encode action of type {type(action).__name__}")


def decode_action(invocation: Invocation) -> Action:
    """Decode an (action id, args) invocation back into an action model."""
    action_id, args = invocation

    if action_id == InvokerAction.UPDATE_POSITION:
        market, maker, long, short, collateral, wrap, fee1, fee2 = decode(_UPDATE_POSITION_TYPES, args)
        return UpdateMarketAction(
            market=market,
            maker=_position_from_field(maker),
            long=_position_from_field(long),
            short=_position_from_field(short),
            collateral=collateral,
            wrap=wrap,
            interface_fee=_fee_from_tuple(fee1),
            interface_fee2=_fee_from_tuple(fee2),
        )

    if action_id == InvokerAction.PLACE_ORDER:
        market, order = decode(_PLACE_ORDER_TYPES, args)
        side, comparison, max_fee, price, delta, fee1, fee2 = order
        return PlaceTriggerOrderAction(
            market=market,
            side=_SIDE_BY_CODE.get(side, PositionSide.NONE),
            comparison=TriggerComparison.from_encoded(comparison),
            price=price,
            delta=decode_delta(delta),
            max_fee=max_fee,
            interface_fee=_fee_from_tuple(fee1),
            interface_fee2=_fee_from_tuple(fee2),
        )

    if action_id == InvokerAction.CANCEL_ORDER:
        market, nonce = decode(_CANCEL_ORDER_TYPES, args)
        return CancelOrderAction(market=market, nonce=nonce)

    if action_id == InvokerAction.COMMIT_PRICE:
        keeper_factory, value, ids, version, update_data, revert_on_failure = decode(_COMMIT_PRICE_TYPES, args)
        return CommitPriceAction(
            keeper_factory=keeper_factory,
            value=value,
            ids=tuple(ids),
            version=version,
            update_data=update_data,
            revert_on_failure=revert_on_failure,
        )

    if action_id == InvokerAction.CLAIM_FEE:
        market, unwrap = decode(_CLAIM_FEE_TYPES, args)
        return ClaimFeeAction(market=market, unwrap=unwrap)

    raise InvalidInputError(f"Unsupported invoker action id: {action_id}")


def encode_invocations(account: str, invocations: Sequence[Invocation]) -> bytes:
    """Encode already-encoded invocations into `invoke` calldata."""
    return INVOKE_SELECTOR + encode(_INVOKE_TYPES, [account, [tuple(i) for i in invocations]])


def encode_invoke(account: str, actions: Sequence[Action]) -> bytes:
    """Encode `invoke(account, actions)` calldata."""
    return encode_invocations(account, [encode_action(action) for action in actions])


def decode_invocations(data: bytes) -> tuple[str, list[Invocation]]:
    """Split `invoke` calldata into its account and raw invocations."""
    if data[:4] != INVOKE_SELECTOR:
        raise InvalidInputError("Calldata is not a multi-invoker invoke() call")
    account, invocations = decode(_INVOKE_TYPES, data[4:])
    return Web3.to_checksum_address(account), [(int(a), bytes(b)) for a, b in invocations]


def decode_invoke(data: bytes) -> tuple[str, list[Action]]:
    """Decode `invoke` calldata into its account and typed actions."""
    account, invocations = decode_invocations(data)
    return account, [decode_action(invocation) for invocation in invocations]


def encode_pyth_commit(ids: Sequence[str], version: int, update_data: bytes) -> bytes:
    """Calldata for a direct `commit(ids, version, data)` on the Pyth factory."""
    return PYTH_COMMIT_SELECTOR + encode(
        _PYTH_COMMIT_TYPES,
        [[bytes.fromhex(feed_id[2:]) for feed_id in ids], version, update_data],
    )
