"""
SDK configuration.

Per-chain contract addresses are passed into the composer at construction
time so that several chains can be served from one process. Both configs can
be loaded from PERENNIAL_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from perennial_sdk.contracts.base import checksum_address, is_zero_address
from perennial_sdk.contracts.fees import InterfaceFeeRates

_CHAIN_ADDRESS_FIELDS = (
    "multi_invoker",
    "market_factory",
    "oracle_factory",
    "pyth_factory",
    "dsu",
    "usdc",
)


def _env(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip()


@dataclass(frozen=True)
class ChainConfig:
    """Contract addresses for one chain."""

    chain_id: int
    multi_invoker: str
    pyth_factory: str
    market_factory: str = ""
    oracle_factory: str = ""
    dsu: str = ""
    usdc: str = ""
    interface_fee_rates: InterfaceFeeRates | None = None

    def __post_init__(self) -> None:
        if self.chain_id <= 0:
            raise ValueError(f"chain_id must be > 0, got {self.chain_id}")
        for name in _CHAIN_ADDRESS_FIELDS:
            value = getattr(self, name)
            if not value:
                continue
            # frozen dataclass: normalize through object.__setattr__
            object.__setattr__(self, name, checksum_address(value))
        if not self.multi_invoker or is_zero_address(self.multi_invoker):
            raise ValueError("multi_invoker address is required")
        if not self.pyth_factory or is_zero_address(self.pyth_factory):
            raise ValueError("pyth_factory address is required")

    @classmethod
    def from_env(cls, prefix: str = "PERENNIAL_") -> ChainConfig:
        """Build from env vars, e.g. PERENNIAL_CHAIN_ID, PERENNIAL_MULTI_INVOKER."""
        chain_id = _env(f"{prefix}CHAIN_ID")
        if not chain_id:
            raise ValueError(f"{prefix}CHAIN_ID is required")
        addresses = {name: _env(f"{prefix}{name.upper()}") for name in _CHAIN_ADDRESS_FIELDS}
        return cls(chain_id=int(chain_id), **addresses)


@dataclass
class SDKConfig:
    """Network endpoints and client behaviour."""

    rpc_url: str = ""  # From PERENNIAL_RPC_URL env var
    pyth_url: str = "https://hermes.pyth.network"
    chain_id: int = 0
    operating_for: str | None = None  # Send invocations on behalf of this account
    request_timeout_s: float = 30.0
    max_retries: int = 3
    update_fee_wei: int = 1  # Native fee forwarded per committed price update
    extra_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.rpc_url:
            self.rpc_url = _env("PERENNIAL_RPC_URL")
        if not self.rpc_url:
            raise ValueError("PERENNIAL_RPC_URL required")
        if self.request_timeout_s <= 0:
            raise ValueError(f"request_timeout_s must be > 0, got {self.request_timeout_s}")
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")
        if self.update_fee_wei < 0:
            raise ValueError(f"update_fee_wei must be >= 0, got {self.update_fee_wei}")
        if self.operating_for is not None:
            self.operating_for = checksum_address(self.operating_for)

    @classmethod
    def from_env(cls) -> SDKConfig:
        operating_for = _env("PERENNIAL_OPERATING_FOR") or None
        return cls(
            rpc_url=_env("PERENNIAL_RPC_URL"),
            pyth_url=_env("PERENNIAL_PYTH_URL", "https://hermes.pyth.network"),
            chain_id=int(_env("PERENNIAL_CHAIN_ID", "0")),
            operating_for=operating_for,
        )
