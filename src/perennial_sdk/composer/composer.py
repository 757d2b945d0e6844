"""
Transaction composer.

Turns trading intents into multi-invoker payloads:
1. Resolve the market's oracle wiring and snapshot (fetched lazily)
2. Build the actions for the intent with their interface fee records
3. If the price is stale, prepend a commit of a freshly fetched price update
4. Encode `invoke(account, actions)` for the multi-invoker

Composition is stateless per call; collaborators are injected so the same
composer can be driven by live connectors or by fakes.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Protocol

from perennial_sdk.composer.actions import (
    build_cancel_orders,
    build_claim_fee,
    build_commit_price,
    build_place_trigger_order,
    build_update_market,
    default_limit_comparison,
    stop_loss_comparison,
    take_profit_comparison,
)
from perennial_sdk.composer.commitment import LogCommitmentErrors
from perennial_sdk.composer.encoding import encode_invoke, encode_pyth_commit
from perennial_sdk.composer.fees import order_notional, resolve_leg_fees
from perennial_sdk.composer.staleness import is_stale, now_seconds
from perennial_sdk.constants import COMMIT_VALUE_SENTINEL, ORDER_EXECUTION_DEPOSIT
from perennial_sdk.contracts.actions import FULL_CLOSE, ExplicitDelta
from perennial_sdk.contracts.base import is_zero_address
from perennial_sdk.contracts.tx import TransactionPayload
from perennial_sdk.contracts.types import OrderType, TriggerComparison
from perennial_sdk.errors import (
    InvalidInputError,
    PriceCommitmentError,
    UnsupportedConfigurationError,
)
from perennial_sdk.fixed_point import Big6Math

if TYPE_CHECKING:
    from perennial_sdk.composer.commitment import CommitmentErrorHandler
    from perennial_sdk.config import ChainConfig
    from perennial_sdk.contracts.actions import (
        Action,
        CommitPriceAction,
        PlaceTriggerOrderAction,
        PositionDelta,
    )
    from perennial_sdk.contracts.fees import FeeConfig
    from perennial_sdk.contracts.intents import (
        CancelOrderIntent,
        ClaimFeeIntent,
        ModifyPositionIntent,
        PlaceOrderIntent,
        SubmitPriceAttestationIntent,
    )
    from perennial_sdk.contracts.market import (
        MarketOracleInfo,
        MarketOracles,
        MarketSnapshot,
        MarketSnapshots,
    )
    from perennial_sdk.contracts.tx import OracleVersion, PriceAttestation
    from perennial_sdk.contracts.types import PositionSide
    from perennial_sdk.metrics import ComposerMetrics

logger = logging.getLogger(__name__)


class ChainReader(Protocol):
    """Reads oracle state from chain."""

    async def latest_oracle_version(self, oracle_address: str) -> OracleVersion: ...


class AttestationSource(Protocol):
    """Fetches signed price updates for a set of feeds."""

    async def fetch_price_update(self, feed_ids: Sequence[str]) -> PriceAttestation: ...


class MarketDataSource(Protocol):
    """Read path for market reference data and per-account snapshots."""

    async def fetch_market_oracles(self) -> MarketOracles: ...

    async def fetch_market_snapshots(self, account: str, markets: Sequence[str]) -> MarketSnapshots: ...


class TransactionComposer:
    """
    Composes multi-invoker transactions for one chain.

    Usage:
        composer = TransactionComposer(
            chain,
            chain_reader=JsonRpcChainReader(...),
            attestation_source=PythAttestationSource(...),
            market_data=my_market_data,
        )
        payload = await composer.modify_position(intent)
    """

    def __init__(
        self,
        chain: ChainConfig,
        *,
        chain_reader: ChainReader | None = None,
        attestation_source: AttestationSource | None = None,
        market_data: MarketDataSource | None = None,
        commitment_errors: CommitmentErrorHandler | None = None,
        clock: Callable[[], int] = now_seconds,
        metrics: ComposerMetrics | None = None,
    ) -> None:
        """
        Initialize composer.

        Args:
            chain: Contract addresses for the target chain.
            chain_reader: Source of the oracle's latest version. Without it the
                snapshot's `latest_oracle_timestamp` is used.
            attestation_source: Price update source, required to commit prices.
            market_data: Lazy source for oracles and snapshots not supplied
                on the intent.
            commitment_errors: Handler for failed price update fetches.
                Defaults to logging and continuing without the commit.
            clock: Returns current unix time in seconds.
            metrics: Optional Prometheus metrics.
        """
        self._chain = chain
        self._chain_reader = chain_reader
        self._attestation_source = attestation_source
        self._market_data = market_data
        self._metrics = metrics
        self._commitment_errors = commitment_errors or LogCommitmentErrors(metrics)
        self._clock = clock

    @property
    def chain(self) -> ChainConfig:
        return self._chain

    # =========================================================================
    # Intents
    # =========================================================================

    async def modify_position(self, intent: ModifyPositionIntent) -> TransactionPayload | None:
        """
        Compose a position/collateral update with optional TP/SL legs.

        Returns:
            Payload, or None if the market has no oracle wiring.

        Raises:
            InvalidInputError: If the account is the zero address.
            UnsupportedConfigurationError: If required market data or a price
                source is not configured.
        """
        _require_account(intent.account)

        oracle = await self._resolve_oracle(intent.market, intent.market_oracles)
        if oracle is None:
            return None
        snapshot = await self._resolve_snapshot(intent.market, intent.account, intent.market_snapshots)

        side = intent.side
        main_fees = resolve_leg_fees(
            self._with_default_rates(intent.fees),
            side,
            intent.fees.notional or 0,
            account=intent.account,
            metrics=self._metrics,
        )
        update = build_update_market(
            intent.market,
            side,
            intent.position_abs,
            intent.collateral_delta,
            interface_fee=main_fees.referrer,
            interface_fee2=main_fees.ecosystem,
        )

        actions: list[Action] = [update]

        if side.is_taker:
            if intent.take_profit_price is not None:
                actions.append(
                    self._trigger_leg(
                        intent.market,
                        side,
                        intent.take_profit_price,
                        take_profit_comparison(side),
                        FULL_CLOSE,
                        intent.position_abs or 0,
                        ORDER_EXECUTION_DEPOSIT * 2,
                        intent.take_profit_fees,
                        intent.account,
                    )
                )
            if intent.stop_loss_price is not None:
                actions.append(
                    self._trigger_leg(
                        intent.market,
                        side,
                        intent.stop_loss_price,
                        stop_loss_comparison(side),
                        FULL_CLOSE,
                        intent.position_abs or 0,
                        ORDER_EXECUTION_DEPOSIT * 2,
                        intent.stop_loss_fees,
                        intent.account,
                    )
                )
        elif intent.take_profit_price is not None or intent.stop_loss_price is not None:
            logger.warning(
                "Ignoring TP/SL for non-taker side",
                extra={"market": intent.market, "side": side.value},
            )

        actions.extend(build_cancel_orders(intent.cancel_orders))

        commit = await self._commit_if_stale(oracle, snapshot)
        if commit is not None:
            actions.insert(0, commit)

        return self._payload("modify_position", intent.account, actions, COMMIT_VALUE_SENTINEL)

    async def place_order(self, intent: PlaceOrderIntent) -> TransactionPayload | None:
        """
        Compose a limit, stop-loss or take-profit order.

        Limit orders may carry TP/SL legs that close the full position. A
        collateral change is applied first through a market update, and only
        then is price staleness checked.

        Returns:
            Payload, or None if the market has no oracle wiring.

        Raises:
            InvalidInputError: If the account is the zero address, the side is
                not long/short, a limit order has no limit price, or the
                intent yields no actions.
            UnsupportedConfigurationError: If required market data or a price
                source is not configured.
        """
        _require_account(intent.account)
        if not intent.side.is_taker:
            raise InvalidInputError(f"Orders require a long or short side, got {intent.side.value}")
        if intent.order_type is OrderType.LIMIT and intent.limit_price is None:
            raise InvalidInputError("Limit orders require a limit_price")

        oracle = await self._resolve_oracle(intent.market, intent.market_oracles)
        if oracle is None:
            return None

        has_collateral = intent.collateral_delta != 0
        needs_snapshot = has_collateral or intent.order_type is OrderType.LIMIT
        snapshot = None
        if needs_snapshot:
            snapshot = await self._resolve_snapshot(intent.market, intent.account, intent.market_snapshots)

        side = intent.side
        max_fee = intent.max_fee if intent.max_fee is not None else ORDER_EXECUTION_DEPOSIT
        is_limit = intent.order_type is OrderType.LIMIT
        leg_delta: PositionDelta = FULL_CLOSE if is_limit else ExplicitDelta(amount=intent.delta)
        leg_size = intent.position_abs if intent.position_abs is not None else Big6Math.abs(intent.delta)

        actions: list[Action] = []

        if has_collateral:
            actions.append(build_update_market(intent.market, None, None, intent.collateral_delta))

        if is_limit and intent.limit_price is not None:
            comparison = intent.trigger_comparison or default_limit_comparison(side)
            fee_price = _limit_fee_price(intent.limit_price, comparison, snapshot)
            actions.append(
                self._trigger_leg(
                    intent.market,
                    side,
                    intent.limit_price,
                    comparison,
                    ExplicitDelta(amount=intent.delta),
                    Big6Math.abs(intent.delta),
                    max_fee,
                    intent.limit_order_fees,
                    intent.account,
                    fee_price=fee_price,
                )
            )

        if intent.take_profit_price is not None and intent.order_type is not OrderType.STOP_LOSS:
            actions.append(
                self._trigger_leg(
                    intent.market,
                    side,
                    intent.take_profit_price,
                    take_profit_comparison(side),
                    leg_delta,
                    leg_size,
                    max_fee,
                    intent.take_profit_fees,
                    intent.account,
                )
            )

        if intent.stop_loss_price is not None and intent.order_type is not OrderType.TAKE_PROFIT:
            actions.append(
                self._trigger_leg(
                    intent.market,
                    side,
                    intent.stop_loss_price,
                    stop_loss_comparison(side),
                    leg_delta,
                    leg_size,
                    max_fee,
                    intent.stop_loss_fees,
                    intent.account,
                )
            )

        actions.extend(build_cancel_orders(intent.cancel_orders))

        if not actions:
            raise InvalidInputError(f"{intent.order_type.value} order intent produces no actions")

        commit = None
        if has_collateral:
            commit = await self._commit_if_stale(oracle, snapshot)
            if commit is not None:
                actions.insert(0, commit)

        return self._payload("place_order", intent.account, actions, COMMIT_VALUE_SENTINEL)

    async def cancel_order(self, intent: CancelOrderIntent) -> TransactionPayload:
        """Compose cancels for the given orders, in order."""
        _require_account(intent.account)
        if not intent.orders:
            raise InvalidInputError("No orders to cancel")
        return self._payload("cancel_order", intent.account, build_cancel_orders(intent.orders), 0)

    async def claim_fee(self, intent: ClaimFeeIntent, sender: str) -> TransactionPayload:
        """Compose a fee claim for `sender`, who must also send the transaction."""
        _require_account(sender)
        actions = [build_claim_fee(intent.market, unwrap=intent.unwrap)]
        return self._payload("claim_fee", sender, actions, 0)

    async def submit_price_attestation(self, intent: SubmitPriceAttestationIntent) -> TransactionPayload | None:
        """
        Compose a direct price commit to the Pyth factory for the market's feed.

        Returns:
            Payload, or None if the market has no oracle wiring.

        Raises:
            PriceCommitmentError: If the price update cannot be fetched.
        """
        oracle = await self._resolve_oracle(intent.market, intent.market_oracles)
        if oracle is None:
            return None

        attestation = await self._require_attestation_source().fetch_price_update([oracle.provider_id])
        payload = TransactionPayload(
            to=self._chain.pyth_factory,
            data=encode_pyth_commit(attestation.ids, attestation.version, attestation.update_data),
            value=attestation.value,
        )
        if self._metrics is not None:
            self._metrics.record_transaction("submit_price_attestation")
        logger.debug(
            "Composed price attestation",
            extra={"market": intent.market, "version": attestation.version},
        )
        return payload

    # =========================================================================
    # Market data
    # =========================================================================

    async def _resolve_oracle(self, market: str, supplied: MarketOracles | None) -> MarketOracleInfo | None:
        oracles = supplied
        if oracles is None:
            oracles = await self._require_market_data().fetch_market_oracles()

        oracle = oracles.find_by_market(market)
        if oracle is None:
            logger.warning("Market not found in oracle mapping", extra={"market": market})
        return oracle

    async def _resolve_snapshot(
        self,
        market: str,
        account: str,
        supplied: MarketSnapshots | None,
    ) -> MarketSnapshot | None:
        snapshots = supplied
        if snapshots is None:
            snapshots = await self._require_market_data().fetch_market_snapshots(account, [market])
        return snapshots.get(market)

    def _require_market_data(self) -> MarketDataSource:
        if self._market_data is None:
            raise UnsupportedConfigurationError("Market data not supplied and no MarketDataSource configured")
        return self._market_data

    def _require_attestation_source(self) -> AttestationSource:
        if self._attestation_source is None:
            raise UnsupportedConfigurationError("No price attestation source configured")
        return self._attestation_source

    # =========================================================================
    # Price commitment
    # =========================================================================

    async def _last_observed_timestamp(self, oracle: MarketOracleInfo, snapshot: MarketSnapshot | None) -> int | None:
        if self._chain_reader is not None:
            version = await self._chain_reader.latest_oracle_version(oracle.oracle_address)
            return version.timestamp
        if snapshot is not None:
            return snapshot.latest_oracle_timestamp
        return None

    async def _commit_if_stale(
        self,
        oracle: MarketOracleInfo,
        snapshot: MarketSnapshot | None,
    ) -> CommitPriceAction | None:
        """Fetch and wrap a price update if the market's price is stale."""
        last_observed = await self._last_observed_timestamp(oracle, snapshot)
        if not is_stale(snapshot, last_observed, self._clock()):
            return None

        source = self._require_attestation_source()
        try:
            attestation = await source.fetch_price_update([oracle.provider_id])
        except PriceCommitmentError as e:
            self._commitment_errors(e, oracle.market)
            return None

        logger.info(
            "Price stale, committing update",
            extra={"market": oracle.market, "last_observed": last_observed, "version": attestation.version},
        )
        if self._metrics is not None:
            self._metrics.record_price_commit()
        return build_commit_price(oracle.keeper_factory, attestation)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _with_default_rates(self, fee_config: FeeConfig) -> FeeConfig:
        if fee_config.rates is None and self._chain.interface_fee_rates is not None:
            return fee_config.model_copy(update={"rates": self._chain.interface_fee_rates})
        return fee_config

    def _trigger_leg(
        self,
        market: str,
        side: PositionSide,
        price: int,
        comparison: TriggerComparison,
        delta: PositionDelta,
        size: int,
        max_fee: int,
        fee_config: FeeConfig,
        account: str,
        *,
        fee_price: int | None = None,
    ) -> PlaceTriggerOrderAction:
        notional = order_notional(size, price if fee_price is None else fee_price)
        fees = resolve_leg_fees(
            self._with_default_rates(fee_config),
            side,
            notional,
            account=account,
            metrics=self._metrics,
        )
        return build_place_trigger_order(
            market,
            side,
            price,
            comparison,
            delta,
            max_fee,
            interface_fee=fees.referrer,
            interface_fee2=fees.ecosystem,
        )

    def _payload(self, kind: str, account: str, actions: list[Action], value: int) -> TransactionPayload:
        payload = TransactionPayload(
            to=self._chain.multi_invoker,
            data=encode_invoke(account, actions),
            value=value,
        )
        if self._metrics is not None:
            self._metrics.record_transaction(kind)
        logger.debug(
            "Composed transaction",
            extra={
                "kind": kind,
                "account": account,
                "actions": [action.kind for action in actions],
                "value": value,
            },
        )
        return payload


def _require_account(account: str | None) -> None:
    if is_zero_address(account):
        raise InvalidInputError("Acting address must not be the zero address")


def _limit_fee_price(limit_price: int, comparison: TriggerComparison, snapshot: MarketSnapshot | None) -> int:
    """Price a limit order's fee at the better of the limit and latest price."""
    if snapshot is None:
        return limit_price
    if comparison is TriggerComparison.LTE:
        return Big6Math.min(limit_price, snapshot.latest_price)
    return Big6Math.max(limit_price, snapshot.latest_price)
