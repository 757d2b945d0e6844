"""Outbound transaction payload and signed price updates."""

from __future__ import annotations

from typing import Any

import orjson
from pydantic import Field, NonNegativeInt

from perennial_sdk.contracts.base import Address, ContractBase, FeedId, HexBytes


class TransactionPayload(ContractBase):
    """Ready-to-sign call: destination, calldata and attached native value."""

    to: Address
    data: HexBytes
    value: NonNegativeInt = 0

    def to_tx_params(self) -> dict[str, Any]:
        """Transaction fields in the shape signers expect (hex calldata)."""
        return {"to": self.to, "data": "0x" + self.data.hex(), "value": self.value}

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_tx_params())


class PriceAttestation(ContractBase):
    """Signed price update fetched from the oracle attestation source."""

    ids: tuple[FeedId, ...]
    version: NonNegativeInt = Field(description="Oracle version (publish timestamp) the update targets")
    update_data: HexBytes
    value: NonNegativeInt = Field(default=1, description="Native update fee to forward")


class OracleVersion(ContractBase):
    """Latest version reported by a market oracle."""

    timestamp: NonNegativeInt
    price: int
    valid: bool = True
