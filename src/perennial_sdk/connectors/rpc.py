"""
JSON-RPC chain reader.

Reads the latest oracle version of a market's oracle through `eth_call`.
Requests are retried with exponential backoff on throttling, server errors
and network errors; JSON-RPC errors other than throttling are not retried.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any

import aiohttp
import orjson
from eth_abi import decode
from web3 import Web3

from perennial_sdk.connectors.backoff import (
    BackoffConfig,
    BackoffState,
    RateLimitError,
    compute_backoff_delay,
    handle_error_response,
    parse_retry_after,
)
from perennial_sdk.contracts.base import checksum_address
from perennial_sdk.contracts.tx import OracleVersion
from perennial_sdk.errors import RpcError

if TYPE_CHECKING:
    from perennial_sdk.config import SDKConfig

logger = logging.getLogger(__name__)

LATEST_SELECTOR = bytes(Web3.keccak(text="latest()")[:4])
_ORACLE_VERSION_TYPES = ["uint256", "int256", "bool"]


class JsonRpcChainReader:
    """
    Async JSON-RPC client for oracle reads.

    Usage:
        reader = JsonRpcChainReader.from_config(config)
        version = await reader.latest_oracle_version(oracle_address)
        await reader.close()
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        request_timeout_s: float = 30.0,
        backoff_config: BackoffConfig | None = None,
        headers: dict[str, str] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the reader.

        Args:
            rpc_url: Node endpoint. May embed a provider key, never log it whole.
            request_timeout_s: Total timeout per request.
            backoff_config: Retry policy.
            headers: Extra HTTP headers sent with every request.
            rng: Optional seeded RNG for deterministic backoff jitter.
        """
        self._rpc_url = rpc_url
        self._timeout = aiohttp.ClientTimeout(total=request_timeout_s)
        self._backoff_config = backoff_config or BackoffConfig()
        self._headers = {"Content-Type": "application/json", **(headers or {})}
        self._rng = rng
        self._session: aiohttp.ClientSession | None = None
        self._request_id = 0

    @classmethod
    def from_config(cls, config: SDKConfig) -> JsonRpcChainReader:
        return cls(
            config.rpc_url,
            request_timeout_s=config.request_timeout_s,
            backoff_config=BackoffConfig(max_retries=config.max_retries),
            headers=config.extra_headers,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def call(self, method: str, params: list[Any]) -> Any:
        """
        Send a JSON-RPC request, retrying transient failures.

        Returns:
            The `result` member of the response.

        Raises:
            RpcError: If the node returned a non-throttling error or a
                non-retryable HTTP status.
            RateLimitError: If still throttled after all retries.
            aiohttp.ClientError: If network errors persist after all retries.
        """
        self._request_id += 1
        body = {"jsonrpc": "2.0", "id": self._request_id, "method": method, "params": params}
        state = BackoffState()

        while True:
            try:
                return await self._post(body)
            except (RateLimitError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                state.record_error()
                if state.exhausted(self._backoff_config):
                    logger.error(
                        "RPC request failed, retries exhausted",
                        extra={"method": method, "attempt": state.attempt, "error": str(e)},
                    )
                    raise
                retry_after_ms = e.retry_after_ms if isinstance(e, RateLimitError) else None
                delay_ms = compute_backoff_delay(
                    self._backoff_config, state, retry_after_ms, rng=self._rng
                )
                logger.warning(
                    "RPC request failed, retrying",
                    extra={"method": method, "attempt": state.attempt, "delay_ms": delay_ms, "error": str(e)},
                )
                if delay_ms > 0:
                    await asyncio.sleep(delay_ms / 1000)

    async def _post(self, body: dict[str, Any]) -> Any:
        session = await self._get_session()
        async with session.request(
            "POST", self._rpc_url, data=orjson.dumps(body), headers=self._headers
        ) as response:
            retry_after_ms = parse_retry_after(response.headers.get("Retry-After"))

            if response.status == 429:
                raise handle_error_response(response.status, retry_after_ms=retry_after_ms)

            if response.status >= 500:
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message="RPC server error",
                )

            if response.status >= 400:
                raise RpcError(f"RPC HTTP error {response.status}")

            payload = orjson.loads(await response.read())

        error = payload.get("error")
        if error:
            code = error.get("code")
            rate_limit_error = handle_error_response(response.status, error_code=code, retry_after_ms=retry_after_ms)
            if rate_limit_error:
                raise rate_limit_error
            raise RpcError(error.get("message", "RPC error"), code=code)

        return payload.get("result")

    async def eth_call(self, to: str, data: bytes, block: str = "latest") -> bytes:
        """Execute a read-only call and return the raw return data."""
        result = await self.call("eth_call", [{"to": to, "data": "0x" + data.hex()}, block])
        if not isinstance(result, str):
            raise RpcError(f"Unexpected eth_call result: {result!r}")
        return bytes.fromhex(result[2:] if result.startswith("0x") else result)

    async def latest_oracle_version(self, oracle_address: str) -> OracleVersion:
        """Read `latest()` from a market oracle."""
        raw = await self.eth_call(checksum_address(oracle_address), LATEST_SELECTOR)
        if not raw:
            raise RpcError(f"Empty latest() response from {oracle_address}")
        timestamp, price, valid = decode(_ORACLE_VERSION_TYPES, raw)
        return OracleVersion(timestamp=timestamp, price=price, valid=valid)
