"""Combine several multi-invoker payloads into one transaction."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from perennial_sdk.composer.encoding import decode_invocations, encode_invocations
from perennial_sdk.contracts.tx import TransactionPayload
from perennial_sdk.errors import InvalidInputError

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)


def merge_payloads(payloads: Iterable[TransactionPayload | None]) -> TransactionPayload | None:
    """
    Merge payloads targeting the same executor into one `invoke` call.

    Invocations are concatenated in input order without reordering or
    de-duplication. The account of the first payload is kept and values are
    summed.

    Args:
        payloads: Composed payloads; None entries and empty calldata are
            skipped.

    Returns:
        Merged payload, or None if nothing remains to merge.

    Raises:
        InvalidInputError: If payloads target different contracts or are not
            `invoke` calls.
    """
    present = [p for p in payloads if p is not None and p.data]
    if not present:
        return None

    destination = present[0].to
    account: str | None = None
    invocations: list[tuple[int, bytes]] = []
    value = 0

    for payload in present:
        if payload.to.lower() != destination.lower():
            raise InvalidInputError(
                f"Cannot merge payloads for different contracts: {destination} and {payload.to}"
            )
        payload_account, payload_invocations = decode_invocations(payload.data)
        if account is None:
            account = payload_account
        elif payload_account.lower() != account.lower():
            logger.warning(
                "Merging payloads for different accounts, keeping the first",
                extra={"account": account, "dropped_account": payload_account},
            )
        invocations.extend(payload_invocations)
        value += payload.value

    return TransactionPayload(
        to=destination,
        data=encode_invocations(account, invocations),
        value=value,
    )
