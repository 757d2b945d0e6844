"""Tests for the PerennialSDK facade."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from perennial_sdk.composer.encoding import decode_invoke
from perennial_sdk.config import ChainConfig, SDKConfig
from perennial_sdk.contracts import (
    CancelOrderAction,
    ClaimFeeAction,
    MarketOracleInfo,
    MarketOracles,
    MarketSnapshot,
    MarketSnapshots,
    OracleVersion,
    OrderRef,
    PositionSide,
    RiskParameters,
    TransactionPayload,
)
from perennial_sdk.errors import UnsupportedConfigurationError
from perennial_sdk.sdk import PerennialSDK

INVOKER = "0x8888888888888888888888888888888888888888"
PYTH_FACTORY = "0x9999999999999999999999999999999999999999"
SIGNER = "0x1111111111111111111111111111111111111111"
OPERATOR = "0x6666666666666666666666666666666666666666"
MARKET = "0x4444444444444444444444444444444444444444"
ORACLE = "0x2222222222222222222222222222222222222222"
KEEPER = "0x3333333333333333333333333333333333333333"
FEED_ID = "0x" + "ab" * 32

CHAIN = ChainConfig(chain_id=42161, multi_invoker=INVOKER, pyth_factory=PYTH_FACTORY)


class FakeSigner:
    def __init__(self, address: str = SIGNER) -> None:
        self._address = address
        self.send_transaction = AsyncMock(return_value="0xfeed")

    @property
    def address(self) -> str:
        return self._address


def _config(**overrides) -> SDKConfig:  # type: ignore[no-untyped-def]
    fields = {"rpc_url": "https://rpc.example.com", "chain_id": 42161}
    fields.update(overrides)
    return SDKConfig(**fields)


def _oracles() -> MarketOracles:
    return MarketOracles(
        oracles={
            "eth": MarketOracleInfo(
                market=MARKET,
                asset="eth",
                oracle_address=ORACLE,
                provider_id=FEED_ID,
                keeper_factory=KEEPER,
            )
        }
    )


def _snapshots() -> MarketSnapshots:
    # Snapshot timestamp is ancient; only the on-chain version keeps the price fresh
    snapshot = MarketSnapshot(
        market=MARKET,
        asset="eth",
        latest_price=3_000_000_000,
        risk=RiskParameters(stale_after=60, max_pending_global=10, max_pending_local=5),
        latest_oracle_timestamp=1,
    )
    return MarketSnapshots(markets={MARKET: snapshot})


class TestPerennialSDKInit:
    """Construction and chain checks."""

    def test_chain_id_mismatch(self) -> None:
        with pytest.raises(UnsupportedConfigurationError, match="chain"):
            PerennialSDK(_config(chain_id=1), CHAIN)

    def test_unset_chain_id_accepted(self) -> None:
        sdk = PerennialSDK(_config(chain_id=0), CHAIN)
        assert sdk.composer.chain is CHAIN

    @pytest.mark.asyncio
    async def test_context_manager_closes(self) -> None:
        async with PerennialSDK(_config(), CHAIN) as sdk:
            sdk.chain_reader.close = AsyncMock()
            sdk.attestation_source.close = AsyncMock()

        sdk.chain_reader.close.assert_awaited_once()
        sdk.attestation_source.close.assert_awaited_once()


class TestMarketsBuild:
    """Payload building through the facade."""

    @pytest.mark.asyncio
    async def test_account_defaults_to_signer(self) -> None:
        sdk = PerennialSDK(_config(), CHAIN, signer=FakeSigner())

        payload = await sdk.markets.build.cancel_order(orders=(OrderRef(market=MARKET, nonce=1),))

        account, actions = decode_invoke(payload.data)
        assert account == SIGNER
        assert actions == [CancelOrderAction(market=MARKET, nonce=1)]

    @pytest.mark.asyncio
    async def test_account_defaults_to_operating_for(self) -> None:
        sdk = PerennialSDK(_config(operating_for=OPERATOR), CHAIN, signer=FakeSigner())

        payload = await sdk.markets.build.cancel_order(orders=(OrderRef(market=MARKET, nonce=1),))

        assert decode_invoke(payload.data)[0] == OPERATOR

    @pytest.mark.asyncio
    async def test_no_account_source(self) -> None:
        sdk = PerennialSDK(_config(), CHAIN)
        with pytest.raises(UnsupportedConfigurationError, match="No account"):
            await sdk.markets.build.cancel_order(orders=(OrderRef(market=MARKET, nonce=1),))

    @pytest.mark.asyncio
    async def test_modify_position_uses_chain_reader(self) -> None:
        """A fresh on-chain oracle version means no commit is needed."""
        sdk = PerennialSDK(_config(), CHAIN, signer=FakeSigner())
        sdk.chain_reader.latest_oracle_version = AsyncMock(
            return_value=OracleVersion(timestamp=2**40, price=3_000_000_000)
        )

        payload = await sdk.markets.build.modify_position(
            market=MARKET,
            market_oracles=_oracles(),
            market_snapshots=_snapshots(),
            side=PositionSide.LONG,
            position_abs=1_000_000,
        )

        assert payload is not None
        assert [a.kind for a in decode_invoke(payload.data)[1]] == ["update_market"]
        sdk.chain_reader.latest_oracle_version.assert_awaited_once_with(ORACLE)

    @pytest.mark.asyncio
    async def test_claim_fee_for_signer(self) -> None:
        sdk = PerennialSDK(_config(), CHAIN, signer=FakeSigner())

        payload = await sdk.markets.build.claim_fee(market=MARKET)

        account, actions = decode_invoke(payload.data)
        assert account == SIGNER
        assert actions == [ClaimFeeAction(market=MARKET, unwrap=True)]

    @pytest.mark.asyncio
    async def test_claim_fee_requires_signer(self) -> None:
        sdk = PerennialSDK(_config(), CHAIN)
        with pytest.raises(UnsupportedConfigurationError, match="signer"):
            await sdk.markets.build.claim_fee(market=MARKET)

    @pytest.mark.asyncio
    async def test_claim_fee_on_behalf_rejected(self) -> None:
        sdk = PerennialSDK(_config(operating_for=OPERATOR), CHAIN, signer=FakeSigner())
        with pytest.raises(UnsupportedConfigurationError, match="sender"):
            await sdk.markets.build.claim_fee(market=MARKET)


class TestMarketsWrite:
    """Sending through the signer."""

    @pytest.mark.asyncio
    async def test_sends_built_payload(self) -> None:
        signer = FakeSigner()
        sdk = PerennialSDK(_config(), CHAIN, signer=signer)

        tx_hash = await sdk.markets.write.cancel_order(orders=(OrderRef(market=MARKET, nonce=5),))

        assert tx_hash == "0xfeed"
        sent = signer.send_transaction.call_args.args[0]
        assert isinstance(sent, TransactionPayload)
        assert sent.to == INVOKER
        assert sent.value == 0

    @pytest.mark.asyncio
    async def test_requires_signer(self) -> None:
        sdk = PerennialSDK(_config(operating_for=OPERATOR), CHAIN)
        with pytest.raises(UnsupportedConfigurationError, match="requires a signer"):
            await sdk.markets.write.cancel_order(orders=(OrderRef(market=MARKET, nonce=5),))

    @pytest.mark.asyncio
    async def test_unknown_market_sends_nothing(self) -> None:
        signer = FakeSigner()
        sdk = PerennialSDK(_config(), CHAIN, signer=signer)

        tx_hash = await sdk.markets.write.submit_price_attestation(
            market="0x7777777777777777777777777777777777777777",
            market_oracles=_oracles(),
        )

        assert tx_hash is None
        signer.send_transaction.assert_not_awaited()
