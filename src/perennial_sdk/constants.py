"""Protocol constants shared by the composer and the ABI boundary."""

from __future__ import annotations

from decimal import Decimal

# Monetary values and prices use 6-decimal fixed point on chain.
BIG6_DECIMALS = 6
BIG6_SCALE = 10**BIG6_DECIMALS

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

MAX_UINT256 = 2**256 - 1
MAX_INT256 = 2**255 - 1
MIN_INT256 = -(2**255)

# Position fields left at this value are untouched by the market update.
POSITION_UNCHANGED = MAX_UINT256

# Trigger order delta meaning "close the whole position" (type(int64).min).
TRIGGER_ORDER_FULL_CLOSE_MAGIC_VALUE = -(2**63)

# Keeper deposit reserved per trigger order, 6-decimal USD.
ORDER_EXECUTION_DEPOSIT = 20 * BIG6_SCALE

# Attached to every multi-invoker call that may commit a price.
COMMIT_VALUE_SENTINEL = 1

# Supplied interface fees may exceed the configured rate by this factor.
INTERFACE_FEE_TOLERANCE = Decimal("1.05")
