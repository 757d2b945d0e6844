"""Base configuration for SDK value objects.

All contracts inherit from ContractBase which enforces:
- Immutability (frozen models)
- Extra fields are forbidden
- Addresses are validated and checksummed on the way in
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict
from web3 import Web3

from perennial_sdk.constants import MAX_INT256, MAX_UINT256, MIN_INT256, ZERO_ADDRESS


class ContractBase(BaseModel):
    """Base class for all SDK value objects."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
        validate_default=True,
    )


def checksum_address(value: str) -> str:
    """Validate an EVM address and return its checksummed form."""
    if not isinstance(value, str) or not Web3.is_address(value):
        raise ValueError(f"Invalid address: {value!r}")
    return Web3.to_checksum_address(value)


def is_zero_address(value: str | None) -> bool:
    return value is None or value.lower() == ZERO_ADDRESS


def parse_hex_bytes(value: Any) -> bytes:
    """Parse 0x-prefixed hex (or raw bytes) into bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        text = value[2:] if value.startswith(("0x", "0X")) else value
        return bytes.fromhex(text)
    raise ValueError(f"Cannot convert {type(value).__name__} to bytes")


def parse_feed_id(value: Any) -> str:
    """Normalize a 32-byte price feed id to lowercase 0x-hex."""
    raw = parse_hex_bytes(value)
    if len(raw) != 32:
        raise ValueError(f"Price feed id must be 32 bytes, got {len(raw)}")
    return "0x" + raw.hex()


def parse_uint256(value: Any) -> int:
    """Coerce ints and numeric strings to the executor's uint256 width."""
    if isinstance(value, bool):
        raise ValueError("bool is not a valid integer")
    number = int(value, 0) if isinstance(value, str) else int(value)
    if not 0 <= number <= MAX_UINT256:
        raise ValueError(f"{number} does not fit in uint256")
    return number


def _check_int256(value: int) -> int:
    if not MIN_INT256 <= value <= MAX_INT256:
        raise ValueError(f"{value} does not fit in int256")
    return value


Address = Annotated[str, AfterValidator(checksum_address)]
HexBytes = Annotated[bytes, BeforeValidator(parse_hex_bytes)]
FeedId = Annotated[str, BeforeValidator(parse_feed_id)]
Uint256 = Annotated[int, BeforeValidator(parse_uint256)]
Int256 = Annotated[int, AfterValidator(_check_int256)]
