"""Tests for the Pyth Hermes price update source."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import orjson
import pytest

from perennial_sdk.config import SDKConfig
from perennial_sdk.connectors.backoff import BackoffConfig
from perennial_sdk.connectors.pyth import PythAttestationSource
from perennial_sdk.errors import PriceCommitmentError

HERMES_URL = "https://hermes.example.com/"
ETH_FEED = "0x" + "ab" * 32
BTC_FEED = "0x" + "cd" * 32

NO_WAIT = BackoffConfig(base_delay_ms=0, jitter_factor=0.0, max_retries=2)


def _response(status: int = 200, body: Any = None) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.headers = {}
    response.read = AsyncMock(return_value=orjson.dumps(body if body is not None else {}))
    response.text = AsyncMock(return_value="upstream error")
    response.__aenter__ = AsyncMock(return_value=response)
    response.__aexit__ = AsyncMock(return_value=None)
    return response


def _update(publish_times: list[int], data: str = "0x0102ff") -> dict[str, Any]:
    return {
        "binary": {"encoding": "hex", "data": [data]},
        "parsed": [
            {"id": "ab" * 32, "price": {"price": "300000000000", "expo": -8, "publish_time": t}}
            for t in publish_times
        ],
    }


@pytest.fixture
def source() -> PythAttestationSource:
    return PythAttestationSource(HERMES_URL, update_fee_wei=2, backoff_config=NO_WAIT)


class TestFetchPriceUpdate:
    """Successful fetches and request shape."""

    @pytest.mark.asyncio
    async def test_single_feed(self, source: PythAttestationSource) -> None:
        with patch.object(
            aiohttp.ClientSession,
            "request",
            return_value=_response(body=_update([1_700_000_000])),
        ) as request:
            attestation = await source.fetch_price_update([ETH_FEED])

        assert attestation.ids == (ETH_FEED,)
        assert attestation.version == 1_700_000_000
        assert attestation.update_data == b"\x01\x02\xff"
        assert attestation.value == 2

        method, url = request.call_args.args
        assert method == "GET"
        assert url == "https://hermes.example.com/v2/updates/price/latest"
        assert request.call_args.kwargs["params"] == [
            ("ids[]", ETH_FEED),
            ("encoding", "hex"),
            ("parsed", "true"),
        ]

    @pytest.mark.asyncio
    async def test_version_is_oldest_publish_time(self, source: PythAttestationSource) -> None:
        with patch.object(
            aiohttp.ClientSession,
            "request",
            return_value=_response(body=_update([1_700_000_010, 1_700_000_004])),
        ):
            attestation = await source.fetch_price_update([ETH_FEED, BTC_FEED])

        assert attestation.version == 1_700_000_004
        # Fee is forwarded per feed
        assert attestation.value == 4

    @pytest.mark.asyncio
    async def test_feed_ids_normalized(self, source: PythAttestationSource) -> None:
        with patch.object(aiohttp.ClientSession, "request", return_value=_response(body=_update([1]))):
            attestation = await source.fetch_price_update(["AB" * 32])
        assert attestation.ids == (ETH_FEED,)

    @pytest.mark.asyncio
    async def test_retries_server_error(self, source: PythAttestationSource) -> None:
        responses = [_response(status=503), _response(body=_update([1]))]
        with patch.object(aiohttp.ClientSession, "request", side_effect=responses) as request:
            attestation = await source.fetch_price_update([ETH_FEED])

        assert attestation.version == 1
        assert request.call_count == 2

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self, source: PythAttestationSource) -> None:
        responses = [_response(status=429), _response(body=_update([1]))]
        with patch.object(aiohttp.ClientSession, "request", side_effect=responses):
            assert (await source.fetch_price_update([ETH_FEED])).version == 1


class TestFetchPriceUpdateErrors:
    """Every failure surfaces as PriceCommitmentError."""

    @pytest.mark.asyncio
    async def test_no_feeds(self, source: PythAttestationSource) -> None:
        with pytest.raises(PriceCommitmentError, match="No price feeds"):
            await source.fetch_price_update([])

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self, source: PythAttestationSource) -> None:
        with (
            patch.object(aiohttp.ClientSession, "request", return_value=_response(status=404)) as request,
            pytest.raises(PriceCommitmentError) as exc_info,
        ):
            await source.fetch_price_update([ETH_FEED])

        assert request.call_count == 1
        assert exc_info.value.feed_ids == (ETH_FEED,)
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientResponseError)

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, source: PythAttestationSource) -> None:
        with (
            patch.object(aiohttp.ClientSession, "request", return_value=_response(status=500)) as request,
            pytest.raises(PriceCommitmentError),
        ):
            await source.fetch_price_update([ETH_FEED])
        assert request.call_count == 3

    @pytest.mark.asyncio
    async def test_network_error(self, source: PythAttestationSource) -> None:
        with (
            patch.object(aiohttp.ClientSession, "request", side_effect=aiohttp.ClientConnectionError("refused")),
            pytest.raises(PriceCommitmentError, match="request failed"),
        ):
            await source.fetch_price_update([ETH_FEED])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"binary": {"data": []}, "parsed": []},
            {"binary": {"data": ["0x01"]}, "parsed": [{"price": {}}]},
        ],
    )
    async def test_malformed_response(self, source: PythAttestationSource, body: dict[str, Any]) -> None:
        with (
            patch.object(aiohttp.ClientSession, "request", return_value=_response(body=body)),
            pytest.raises(PriceCommitmentError, match="Malformed"),
        ):
            await source.fetch_price_update([ETH_FEED])

    @pytest.mark.asyncio
    async def test_no_parsed_prices(self, source: PythAttestationSource) -> None:
        body = {"binary": {"data": ["0x01"]}, "parsed": []}
        with (
            patch.object(aiohttp.ClientSession, "request", return_value=_response(body=body)),
            pytest.raises(PriceCommitmentError, match="no parsed prices"),
        ):
            await source.fetch_price_update([ETH_FEED])

    @pytest.mark.asyncio
    async def test_update_data_not_hex(self, source: PythAttestationSource) -> None:
        with (
            patch.object(aiohttp.ClientSession, "request", return_value=_response(body=_update([1], data="zz"))),
            pytest.raises(PriceCommitmentError, match="not hex"),
        ):
            await source.fetch_price_update([ETH_FEED])


class TestPythAttestationSourceConfig:
    def test_from_config(self) -> None:
        config = SDKConfig(rpc_url="https://rpc.example.com", pyth_url=HERMES_URL, update_fee_wei=7)
        source = PythAttestationSource.from_config(config)
        assert source._base_url == "https://hermes.example.com"
        assert source._update_fee_wei == 7
