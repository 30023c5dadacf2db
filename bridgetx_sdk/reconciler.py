"""
TransactionReconciler - reconstructs the status of cross-chain bridge transactions.
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ._rate_limited_log import rate_limited_log
from .chain.reader import ChainReader, Web3ChainReader
from .config import ChainRegistry, ReconcilerSettings
from .exceptions import InvalidArgumentError, UnknownChainError
from .matcher import EventMatcher
from .models import BridgeTransaction, MessageStatus, RelayerBlockInfo
from .relayer import RelayerAPIClient
from .status import StatusResolver
from .tokens import TokenResolver


def order_transactions(transactions: Iterable[BridgeTransaction]) -> List[BridgeTransaction]:
    """
    Order reconciled transactions for display.

    The list is reversed (most recently fetched first), then stably
    partitioned so that NEW messages precede every other status.
    """
    newest_first = list(reversed(list(transactions)))
    return sorted(newest_first, key=lambda tx: 0 if tx.status == MessageStatus.NEW else 1)


def deduplicate_transactions(transactions: Iterable[BridgeTransaction]) -> List[BridgeTransaction]:
    """
    Keep the first record of every (owner, message hash) pair.

    Records without a message hash cannot be correlated and are all kept.
    """
    seen = set()
    unique = []
    for tx in transactions:
        key = tx.dedup_key
        if key is not None:
            if key in seen:
                continue
            seen.add(key)
        unique.append(tx)
    return unique


class TransactionReconciler:
    """
    Cross-validates relayer-reported bridge records against chain state.

    For each record of the requested address this client:
    1. Looks up the source transaction receipt
    2. Finds the MessageSent event of that record in the receipt's block
    3. Reads the destination bridge status of the message
    4. Resolves the token transfer for messages carrying a payload

    Records are enriched concurrently. A record that cannot be enriched
    (no receipt yet, no unambiguous event, unconfigured chain) is returned in
    its provisional form; a record whose token transfer cannot be found is
    dropped.
    """

    def __init__(
        self,
        relayer: RelayerAPIClient,
        registry: ChainRegistry,
        readers: Mapping[int, ChainReader],
        max_concurrency: int = 0,
        event_matcher: Optional[EventMatcher] = None,
        token_resolver: Optional[TokenResolver] = None,
        status_resolver: Optional[StatusResolver] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the reconciler

        Args:
            relayer: Client for the relayer indexing service
            registry: Bridge deployments per chain
            readers: Chain reader per chain id
            max_concurrency: Maximum records enriched at once (0 = unbounded)
            event_matcher: Optional EventMatcher override
            token_resolver: Optional TokenResolver override
            status_resolver: Optional StatusResolver override
            logger: Optional logger instance to use for debug/info logging

        Raises:
            InvalidArgumentError: If max_concurrency is negative
        """
        if max_concurrency < 0:
            raise InvalidArgumentError(f"max_concurrency must be 0 (unbounded) or positive, got {max_concurrency}")

        self.relayer = relayer
        self.registry = registry
        self.readers = dict(readers)
        self.max_concurrency = max_concurrency
        self.event_matcher = event_matcher or EventMatcher()
        self.token_resolver = token_resolver or TokenResolver()
        self.status_resolver = status_resolver or StatusResolver()
        self.logger = logger or logging.getLogger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: ReconcilerSettings,
        registry: ChainRegistry,
        logger: Optional[logging.Logger] = None
    ) -> "TransactionReconciler":
        """
        Build a reconciler with a Web3ChainReader for every registry chain that has an RPC URL.

        Args:
            settings: Relayer URL, timeout and concurrency settings
            registry: Chain registry
            logger: Optional logger instance

        Returns:
            Configured TransactionReconciler
        """
        readers: Dict[int, ChainReader] = {}
        for entry in registry:
            rpc_url = registry.get_rpc_url(entry.chain_id)
            if not rpc_url:
                (logger or logging.getLogger(__name__)).warning(
                    f"No RPC URL configured for chain {entry.chain_id}; its records will stay provisional"
                )
                continue
            readers[entry.chain_id] = Web3ChainReader(entry.chain_id, rpc_url, timeout=settings.timeout)

        relayer = RelayerAPIClient(settings.relayer_url, timeout=settings.timeout, logger=logger)
        return cls(relayer, registry, readers, max_concurrency=settings.max_concurrency, logger=logger)

    def close(self) -> None:
        """Close the relayer session."""
        self.relayer.close()

    def __enter__(self) -> "TransactionReconciler":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _reader(self, chain_id: int) -> ChainReader:
        reader = self.readers.get(int(chain_id))
        if reader is None:
            raise UnknownChainError(int(chain_id), f"No chain reader configured for chain {chain_id}")
        return reader

    async def reconcile(self, address: str, chain_id: Optional[int] = None) -> List[BridgeTransaction]:
        """
        Reconstruct the bridge transactions of an address.

        Args:
            address: Account address whose messages to reconcile
            chain_id: Optional chain id filter passed to the relayer

        Returns:
            One record per bridge message, NEW messages first, most recent first

        Raises:
            InvalidArgumentError: If address is empty
            RelayerAPIError: If the relayer request fails
            ProtocolMismatchError: If a destination bridge returns an unknown status
            Web3Exception: If a chain read fails
            ChainReadError: If a chain read fails outside web3
        """
        address = (address or "").strip()
        if not address:
            raise InvalidArgumentError("Address needs to be passed to fetch transactions")

        page = await asyncio.to_thread(self.relayer.get_events, address, chain_id)
        if not page.items:
            return []

        provisional = [BridgeTransaction.from_relayer_event(event) for event in page.items]

        owned = []
        for tx in provisional:
            if tx.message.owner.lower() != address.lower():
                self.logger.debug(f"Dropping {tx.tx_hash}: owner {tx.message.owner} is not {address}")
                continue
            owned.append(tx)

        unique = deduplicate_transactions(owned)
        enriched = await self._enrich_all(unique)
        return order_transactions(tx for tx in enriched if tx is not None)

    def reconcile_sync(self, address: str, chain_id: Optional[int] = None) -> List[BridgeTransaction]:
        """Blocking variant of :meth:`reconcile` for callers without an event loop."""
        return asyncio.run(self.reconcile(address, chain_id))

    async def get_block_info(self) -> Dict[int, RelayerBlockInfo]:
        """Last block processed by the relayer, per chain."""
        return await asyncio.to_thread(self.relayer.get_block_info)

    async def _enrich_all(self, transactions: List[BridgeTransaction]) -> List[Optional[BridgeTransaction]]:
        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None

        async def _run(tx: BridgeTransaction) -> Optional[BridgeTransaction]:
            if semaphore is None:
                return await self._enrich_safely(tx)
            async with semaphore:
                return await self._enrich_safely(tx)

        # Every record runs to completion before a failure is surfaced
        results = await asyncio.gather(*(_run(tx) for tx in transactions), return_exceptions=True)

        for tx, result in zip(transactions, results):
            if isinstance(result, BaseException):
                self.logger.error(f"Enrichment of {tx.tx_hash} failed: {result}")
                raise result
        return list(results)

    async def _enrich_safely(self, tx: BridgeTransaction) -> Optional[BridgeTransaction]:
        try:
            return await self._enrich(tx)
        except UnknownChainError as e:
            rate_limited_log(
                f"unknown-chain:{e.chain_id}",
                f"{e}; returning provisional records for it",
                logger_instance=self.logger,
            )
            return tx

    async def _enrich(self, tx: BridgeTransaction) -> Optional[BridgeTransaction]:
        src_reader = self._reader(tx.from_chain_id)

        receipt = await src_reader.get_transaction_receipt(tx.tx_hash)
        if receipt is None:
            return tx

        src_entry = self.registry.get(tx.from_chain_id)
        dest_entry = self.registry.get(tx.to_chain_id)
        dest_reader = self._reader(tx.to_chain_id)

        event = await self.event_matcher.match(
            src_reader,
            src_entry.bridge_address,
            receipt,
            tx.message.owner,
            tx.message.deposit_value,
            tx.msg_hash,
        )
        if event is None:
            return tx

        status = await self.status_resolver.resolve_status(dest_reader, dest_entry.bridge_address, event.msg_hash)

        amount = None
        symbol = None
        if event.message.has_payload:
            transfer = await self.token_resolver.resolve_transfer(
                src_reader,
                src_entry.token_vault_address,
                event.msg_hash,
                receipt.block_number,
            )
            if transfer is None:
                self.logger.info(f"Dropping {tx.tx_hash}: no token transfer found for message {event.msg_hash}")
                return None
            amount = transfer.amount
            symbol = transfer.symbol

        return BridgeTransaction(
            status=status,
            message=event.message,
            msg_hash=event.msg_hash,
            receipt=receipt,
            amount=amount,
            symbol=symbol,
            from_chain_id=tx.from_chain_id,
            to_chain_id=tx.to_chain_id,
            tx_hash=tx.tx_hash,
            from_address=tx.from_address,
        )
