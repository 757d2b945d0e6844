"""Protocol enums.

String enums mirror the values used by the protocol's SDK and subgraph;
`InvokerAction` mirrors the executor contract's action enum.
"""

from enum import Enum, IntEnum


class PositionSide(str, Enum):
    """Position side."""

    MAKER = "maker"
    LONG = "long"
    SHORT = "short"
    NONE = "none"

    @property
    def is_taker(self) -> bool:
        return self in (PositionSide.LONG, PositionSide.SHORT)


class TriggerComparison(str, Enum):
    """Price comparison under which a trigger order fires."""

    LTE = "lte"  # fires when price <= trigger price
    GTE = "gte"  # fires when price >= trigger price

    @property
    def encoded(self) -> int:
        """int8 value used by the executor."""
        return -1 if self is TriggerComparison.LTE else 1

    @classmethod
    def from_encoded(cls, value: int) -> "TriggerComparison":
        if value == -1:
            return cls.LTE
        if value == 1:
            return cls.GTE
        raise ValueError(f"Unknown trigger comparison: {value}")


class OrderType(str, Enum):
    """Trigger order kind requested by the caller."""

    LIMIT = "limit"
    STOP_LOSS = "stopLoss"
    TAKE_PROFIT = "takeProfit"


class InvokerAction(IntEnum):
    """Action discriminator understood by the multi-invoker."""

    NO_OP = 0
    UPDATE_POSITION = 1
    UPDATE_VAULT = 2
    PLACE_ORDER = 3
    CANCEL_ORDER = 4
    EXEC_ORDER = 5
    COMMIT_PRICE = 6
    LIQUIDATE = 7
    APPROVE = 8
    CLAIM_FEE = 9


# Trigger order side as encoded on chain.
TRIGGER_SIDE_ENCODING: dict[PositionSide, int] = {
    PositionSide.MAKER: 0,
    PositionSide.LONG: 1,
    PositionSide.SHORT: 2,
}
