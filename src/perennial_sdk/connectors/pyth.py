"""
Pyth Hermes price update source.

Fetches the latest signed price update for a set of feeds from
`GET /v2/updates/price/latest`. Every failure surfaces as
PriceCommitmentError so composers can route it through their
commitment-error strategy.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, Any

import aiohttp
import orjson

from perennial_sdk.connectors.backoff import (
    BackoffConfig,
    BackoffState,
    RateLimitError,
    compute_backoff_delay,
    handle_error_response,
    parse_retry_after,
)
from perennial_sdk.contracts.base import parse_feed_id
from perennial_sdk.contracts.tx import PriceAttestation
from perennial_sdk.errors import PriceCommitmentError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from perennial_sdk.config import SDKConfig

logger = logging.getLogger(__name__)

LATEST_UPDATES_PATH = "/v2/updates/price/latest"


class PythAttestationSource:
    """
    Async Hermes client producing PriceAttestation objects.

    The attestation's version is the oldest publish time among the requested
    feeds, so a single commit is valid for all of them.
    """

    def __init__(
        self,
        base_url: str = "https://hermes.pyth.network",
        *,
        update_fee_wei: int = 1,
        request_timeout_s: float = 30.0,
        backoff_config: BackoffConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        """
        Initialize the source.

        Args:
            base_url: Hermes endpoint.
            update_fee_wei: Native fee forwarded per feed in the update.
            request_timeout_s: Total timeout per request.
            backoff_config: Retry policy.
            rng: Optional seeded RNG for deterministic backoff jitter.
        """
        self._base_url = base_url.rstrip("/")
        self._update_fee_wei = update_fee_wei
        self._timeout = aiohttp.ClientTimeout(total=request_timeout_s)
        self._backoff_config = backoff_config or BackoffConfig()
        self._rng = rng
        self._session: aiohttp.ClientSession | None = None

    @classmethod
    def from_config(cls, config: SDKConfig) -> PythAttestationSource:
        return cls(
            config.pyth_url,
            update_fee_wei=config.update_fee_wei,
            request_timeout_s=config.request_timeout_s,
            backoff_config=BackoffConfig(max_retries=config.max_retries),
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

    async def fetch_price_update(self, feed_ids: Sequence[str]) -> PriceAttestation:
        """
        Fetch the latest signed update for `feed_ids`.

        Raises:
            PriceCommitmentError: On HTTP, network or response format errors.
        """
        ids = tuple(parse_feed_id(feed_id) for feed_id in feed_ids)
        if not ids:
            raise PriceCommitmentError("No price feeds requested")

        params = [("ids[]", feed_id) for feed_id in ids]
        params += [("encoding", "hex"), ("parsed", "true")]

        try:
            payload = await self._get_with_retry(params)
        except (RateLimitError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise PriceCommitmentError(f"Price update request failed: {e}", feed_ids=ids) from e

        return self._parse_update(payload, ids)

    async def _get_with_retry(self, params: list[tuple[str, str]]) -> Any:
        state = BackoffState()
        while True:
            try:
                return await self._get(params)
            except (RateLimitError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                state.record_error()
                if state.exhausted(self._backoff_config):
                    raise
                if isinstance(e, aiohttp.ClientResponseError) and e.status < 500:
                    raise
                retry_after_ms = e.retry_after_ms if isinstance(e, RateLimitError) else None
                delay_ms = compute_backoff_delay(
                    self._backoff_config, state, retry_after_ms, rng=self._rng
                )
                logger.warning(
                    "Price update request failed, retrying",
                    extra={"attempt": state.attempt, "delay_ms": delay_ms, "error": str(e)},
                )
                if delay_ms > 0:
                    await asyncio.sleep(delay_ms / 1000)

    async def _get(self, params: list[tuple[str, str]]) -> Any:
        session = await self._get_session()
        url = f"{self._base_url}{LATEST_UPDATES_PATH}"
        async with session.request("GET", url, params=params) as response:
            if response.status == 429:
                retry_after_ms = parse_retry_after(response.headers.get("Retry-After"))
                raise handle_error_response(response.status, retry_after_ms=retry_after_ms)

            if response.status >= 400:
                text = await response.text()
                logger.error(
                    "Price service HTTP error",
                    extra={"status": response.status, "body": text[:500]},
                )
                raise aiohttp.ClientResponseError(
                    response.request_info,
                    response.history,
                    status=response.status,
                    message=text[:200],
                )

            return orjson.loads(await response.read())

    def _parse_update(self, payload: Any, ids: tuple[str, ...]) -> PriceAttestation:
        try:
            update_hex = payload["binary"]["data"][0]
            publish_times = [int(entry["price"]["publish_time"]) for entry in payload["parsed"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise PriceCommitmentError(f"Malformed price update response: {e!r}", feed_ids=ids) from e

        if not publish_times:
            raise PriceCommitmentError("Price update response has no parsed prices", feed_ids=ids)

        try:
            update_data = bytes.fromhex(update_hex.removeprefix("0x"))
        except (AttributeError, ValueError) as e:
            raise PriceCommitmentError("Price update data is not hex", feed_ids=ids) from e

        attestation = PriceAttestation(
            ids=ids,
            version=min(publish_times),
            update_data=update_data,
            value=self._update_fee_wei * len(ids),
        )
        logger.debug(
            "Fetched price update",
            extra={"feed_ids": list(ids), "version": attestation.version, "update_data": update_data},
        )
        return attestation
