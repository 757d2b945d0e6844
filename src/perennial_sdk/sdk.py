"""
SDK facade.

Wires the connectors and the TransactionComposer for one chain and exposes
market operations in two flavours:
- `sdk.markets.build.*` returns ready-to-sign payloads
- `sdk.markets.write.*` builds and sends through the configured Signer
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from perennial_sdk.composer.composer import TransactionComposer
from perennial_sdk.connectors.pyth import PythAttestationSource
from perennial_sdk.connectors.rpc import JsonRpcChainReader
from perennial_sdk.contracts.intents import (
    CancelOrderIntent,
    ClaimFeeIntent,
    ModifyPositionIntent,
    PlaceOrderIntent,
    SubmitPriceAttestationIntent,
)
from perennial_sdk.errors import UnsupportedConfigurationError

if TYPE_CHECKING:
    from types import TracebackType

    from perennial_sdk.composer.commitment import CommitmentErrorHandler
    from perennial_sdk.composer.composer import MarketDataSource
    from perennial_sdk.config import ChainConfig, SDKConfig
    from perennial_sdk.contracts.tx import TransactionPayload
    from perennial_sdk.metrics import ComposerMetrics

logger = logging.getLogger(__name__)

_IntentT = TypeVar("_IntentT")


class Signer(Protocol):
    """Signs and submits transactions. Key handling is out of scope for the SDK."""

    @property
    def address(self) -> str: ...

    async def send_transaction(self, payload: TransactionPayload) -> str: ...


class MarketsBuild:
    """Builds market transactions without sending them.

    Each method takes either a ready intent or the intent's fields as keyword
    arguments; `account` defaults to the operating-for address, then to the
    signer address.
    """

    def __init__(self, composer: TransactionComposer, signer: Signer | None, operating_for: str | None) -> None:
        self._composer = composer
        self._signer = signer
        self._operating_for = operating_for

    def default_account(self) -> str:
        if self._operating_for:
            return self._operating_for
        if self._signer is not None:
            return self._signer.address
        raise UnsupportedConfigurationError("No account given and no signer or operating_for address configured")

    def _intent(self, model: type[_IntentT], intent: _IntentT | None, fields: dict[str, Any]) -> _IntentT:
        if intent is not None:
            return intent
        fields.setdefault("account", self.default_account())
        return model(**fields)

    async def modify_position(self, intent: ModifyPositionIntent | None = None, **fields: Any) -> TransactionPayload | None:
        return await self._composer.modify_position(self._intent(ModifyPositionIntent, intent, fields))

    async def place_order(self, intent: PlaceOrderIntent | None = None, **fields: Any) -> TransactionPayload | None:
        return await self._composer.place_order(self._intent(PlaceOrderIntent, intent, fields))

    async def cancel_order(self, intent: CancelOrderIntent | None = None, **fields: Any) -> TransactionPayload:
        return await self._composer.cancel_order(self._intent(CancelOrderIntent, intent, fields))

    async def claim_fee(self, intent: ClaimFeeIntent | None = None, **fields: Any) -> TransactionPayload:
        """Claim fees for the signer. Claiming on behalf of another account is unsupported."""
        if self._signer is None:
            raise UnsupportedConfigurationError("Claiming fees requires a signer")
        sender = self._signer.address
        if self._operating_for and self._operating_for.lower() != sender.lower():
            raise UnsupportedConfigurationError("Fees can only be claimed for the transaction sender")
        claim = intent if intent is not None else ClaimFeeIntent(**fields)
        return await self._composer.claim_fee(claim, sender)

    async def submit_price_attestation(
        self,
        intent: SubmitPriceAttestationIntent | None = None,
        **fields: Any,
    ) -> TransactionPayload | None:
        submit = intent if intent is not None else SubmitPriceAttestationIntent(**fields)
        return await self._composer.submit_price_attestation(submit)


class MarketsWrite:
    """Builds market transactions and sends them through the signer."""

    def __init__(self, build: MarketsBuild, signer: Signer | None) -> None:
        self._build = build
        self._signer = signer

    def _require_signer(self) -> Signer:
        if self._signer is None:
            raise UnsupportedConfigurationError("Sending transactions requires a signer")
        return self._signer

    async def _send(self, kind: str, payload: TransactionPayload | None) -> str | None:
        if payload is None:
            return None
        tx_hash = await self._require_signer().send_transaction(payload)
        logger.info("Transaction sent", extra={"kind": kind, "tx_hash": tx_hash, "value": payload.value})
        return tx_hash

    async def modify_position(self, intent: ModifyPositionIntent | None = None, **fields: Any) -> str | None:
        self._require_signer()
        return await self._send("modify_position", await self._build.modify_position(intent, **fields))

    async def place_order(self, intent: PlaceOrderIntent | None = None, **fields: Any) -> str | None:
        self._require_signer()
        return await self._send("place_order", await self._build.place_order(intent, **fields))

    async def cancel_order(self, intent: CancelOrderIntent | None = None, **fields: Any) -> str | None:
        self._require_signer()
        return await self._send("cancel_order", await self._build.cancel_order(intent, **fields))

    async def claim_fee(self, intent: ClaimFeeIntent | None = None, **fields: Any) -> str | None:
        self._require_signer()
        return await self._send("claim_fee", await self._build.claim_fee(intent, **fields))

    async def submit_price_attestation(
        self,
        intent: SubmitPriceAttestationIntent | None = None,
        **fields: Any,
    ) -> str | None:
        self._require_signer()
        return await self._send(
            "submit_price_attestation",
            await self._build.submit_price_attestation(intent, **fields),
        )


class MarketsModule:
    """Market operations: `build` for payloads, `write` to send them."""

    def __init__(self, composer: TransactionComposer, signer: Signer | None, operating_for: str | None) -> None:
        self.build = MarketsBuild(composer, signer, operating_for)
        self.write = MarketsWrite(self.build, signer)


class PerennialSDK:
    """
    Entry point for one chain.

    Usage:
        async with PerennialSDK(SDKConfig.from_env(), ChainConfig.from_env(), signer=signer) as sdk:
            payload = await sdk.markets.build.modify_position(market=..., side=PositionSide.LONG, ...)
    """

    def __init__(
        self,
        config: SDKConfig,
        chain: ChainConfig,
        signer: Signer | None = None,
        market_data: MarketDataSource | None = None,
        *,
        commitment_errors: CommitmentErrorHandler | None = None,
        metrics: ComposerMetrics | None = None,
    ) -> None:
        if config.chain_id and config.chain_id != chain.chain_id:
            raise UnsupportedConfigurationError(
                f"SDK configured for chain {config.chain_id} but contracts are for chain {chain.chain_id}"
            )

        self.config = config
        self.chain = chain
        self.signer = signer
        self.chain_reader = JsonRpcChainReader.from_config(config)
        self.attestation_source = PythAttestationSource.from_config(config)
        self.composer = TransactionComposer(
            chain,
            chain_reader=self.chain_reader,
            attestation_source=self.attestation_source,
            market_data=market_data,
            commitment_errors=commitment_errors,
            metrics=metrics,
        )
        self.markets = MarketsModule(self.composer, signer, config.operating_for)

        logger.info(
            "SDK initialized",
            extra={
                "chain_id": chain.chain_id,
                "rpc_url": config.rpc_url,
                "operating_for": config.operating_for,
                "has_signer": signer is not None,
            },
        )

    async def close(self) -> None:
        """Close HTTP sessions."""
        await self.chain_reader.close()
        await self.attestation_source.close()

    async def __aenter__(self) -> PerennialSDK:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
