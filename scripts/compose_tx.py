#!/usr/bin/env python3
"""
Compose a cancel-order transaction offline and print it as JSON.

No network access: cancelling needs no market data or price update, so the
payload can be built from the contract addresses alone.

Usage:
    python scripts/compose_tx.py \\
        --chain-id 42161 \\
        --multi-invoker 0x... --pyth-factory 0x... \\
        --account 0x... \\
        --order 0xMARKET:12 --order 0xMARKET:13
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import orjson

from perennial_sdk.composer.composer import TransactionComposer
from perennial_sdk.config import ChainConfig
from perennial_sdk.contracts.intents import CancelOrderIntent, OrderRef
from perennial_sdk.errors import PerennialSDKError
from perennial_sdk.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


def parse_order(value: str) -> OrderRef:
    """Parse MARKET:NONCE into an OrderRef."""
    market, sep, nonce = value.rpartition(":")
    if not sep or not market or not nonce:
        raise argparse.ArgumentTypeError(f"Expected MARKET:NONCE, got {value!r}")
    try:
        return OrderRef(market=market, nonce=nonce)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


async def compose(args: argparse.Namespace) -> bytes:
    chain = ChainConfig(
        chain_id=args.chain_id,
        multi_invoker=args.multi_invoker,
        pyth_factory=args.pyth_factory,
    )
    composer = TransactionComposer(chain)
    payload = await composer.cancel_order(CancelOrderIntent(account=args.account, orders=tuple(args.order)))
    return payload.to_json()


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Compose a multi-invoker cancel-order transaction.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--chain-id", type=int, required=True, help="Chain id")
    parser.add_argument("--multi-invoker", required=True, help="Multi-invoker address")
    parser.add_argument("--pyth-factory", required=True, help="Pyth factory address")
    parser.add_argument("--account", required=True, help="Account owning the orders")
    parser.add_argument(
        "--order",
        type=parse_order,
        action="append",
        required=True,
        help="Order to cancel as MARKET:NONCE (repeatable)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    setup_logging(level=logging.DEBUG if args.verbose else logging.WARNING, json_format=False)

    try:
        output = asyncio.run(compose(args))
    except (PerennialSDKError, ValueError) as e:
        logger.error("Failed to compose transaction", extra={"error": str(e)})
        return 1

    sys.stdout.write(orjson.dumps(orjson.loads(output), option=orjson.OPT_INDENT_2).decode() + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
