"""
Prometheus metrics for transaction composition.

Only low-cardinality labels: no market, account or feed id labels.
"""

from __future__ import annotations

from prometheus_client import Counter
from prometheus_client.registry import CollectorRegistry


class ComposerMetrics:
    """
    Counters for composed transactions and their non-fatal outcomes.

    Usage:
        registry = CollectorRegistry()
        metrics = ComposerMetrics(registry=registry)
        composer = TransactionComposer(chain, metrics=metrics)
        # generate_latest(registry) -> bytes for /metrics endpoint
    """

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Initialize counters.

        Args:
            registry: Prometheus CollectorRegistry. A private registry is
                created if None, so several SDK instances can coexist.
        """
        self.registry = registry or CollectorRegistry()

        self._transactions_built = Counter(
            "perennial_sdk_transactions_built",
            "Transaction payloads produced by the composer",
            ["kind"],
            registry=self.registry,
        )
        self._price_commits_injected = Counter(
            "perennial_sdk_price_commits_injected",
            "Commit-price actions prepended because the price was stale",
            registry=self.registry,
        )
        self._interface_fees_waived = Counter(
            "perennial_sdk_interface_fees_waived",
            "Supplied interface fees dropped for exceeding the configured rate",
            registry=self.registry,
        )
        self._commitment_errors = Counter(
            "perennial_sdk_commitment_errors",
            "Price update fetches that failed during composition",
            registry=self.registry,
        )

    def record_transaction(self, kind: str) -> None:
        self._transactions_built.labels(kind=kind).inc()

    def record_price_commit(self) -> None:
        self._price_commits_injected.inc()

    def record_fee_waived(self) -> None:
        self._interface_fees_waived.inc()

    def record_commitment_error(self) -> None:
        self._commitment_errors.inc()
