#!/usr/bin/env python3
"""
Reconcile the bridge transactions of an address.
"""
import asyncio
import logging
import os
import sys

from bridgetx_sdk import BridgeTxError, ChainRegistry, MessageStatus, ReconcilerSettings, TransactionReconciler


async def main(address: str) -> None:
    """
    Demonstrate basic usage of the TransactionReconciler.

    Required environment:
        BRIDGETX_RELAYER_URL: Relayer base URL
        BRIDGETX_CHAIN_REGISTRY: Path to the chain registry JSON file

    Optional environment:
        BRIDGETX_RPC_URL_<CHAIN_ID>: RPC URL override per chain
        BRIDGETX_MAX_CONCURRENCY: Maximum records enriched at once
    """
    settings = ReconcilerSettings.from_env()
    registry = ChainRegistry.load()
    with TransactionReconciler.from_settings(settings, registry) as reconciler:
        block_info = await reconciler.get_block_info()
        for chain_id, info in block_info.items():
            print(f"Chain {chain_id}: relayer at block {info.latest_processed_block} of {info.latest_block}")

        transactions = await reconciler.reconcile(address)

    print(f"{len(transactions)} bridge transactions for {address}")
    for tx in transactions:
        status = tx.status.name if isinstance(tx.status, MessageStatus) else f"{tx.status} (unconfirmed)"
        amount = f"{tx.amount} {tx.symbol}" if tx.symbol else f"{tx.message.deposit_value} wei"
        print(f"  {tx.tx_hash} {tx.from_chain_id} -> {tx.to_chain_id}: {amount} [{status}]")


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "WARNING"))
    if len(sys.argv) != 2:
        print("Usage: reconcile_example.py <address>")
        sys.exit(1)
    try:
        asyncio.run(main(sys.argv[1]))
    except BridgeTxError as e:
        print(f"Error reconciling transactions: {e}")
        sys.exit(1)
