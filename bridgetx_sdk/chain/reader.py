"""
Read-only chain access used by the reconciler.

The reconciler only needs three capabilities from a chain: receipt lookup,
log queries over a block range and read-only contract calls. ``ChainReader``
describes them so matching and resolution logic can run against any
implementation, including in-memory fakes in tests.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from web3 import AsyncWeb3, Web3
from web3.exceptions import TransactionNotFound, Web3Exception

from ..exceptions import ChainReadError
from ..models import TxReceipt
from .events import normalize_log

logger = logging.getLogger(__name__)


class ChainReader(ABC):
    """
    Abstract base class for per-chain read access.

    Implementations must be safe for concurrent use from one event loop.
    """

    chain_id: int

    @abstractmethod
    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TxReceipt]:
        """
        Look up a transaction receipt.

        Args:
            tx_hash: Transaction hash (0x-prefixed hex)

        Returns:
            The receipt, or None if the transaction is not mined or unknown
        """
        pass

    @abstractmethod
    async def get_logs(
        self,
        address: str,
        topics: Sequence[Optional[str]],
        from_block: int,
        to_block: int
    ) -> List[Dict[str, Any]]:
        """
        Query logs emitted by ``address`` within ``[from_block, to_block]``.

        Args:
            address: Emitting contract address
            topics: Topic filter; ``topics[0]`` is the event signature, None matches anything
            from_block: First block (inclusive)
            to_block: Last block (inclusive)

        Returns:
            Logs normalized by :func:`bridgetx_sdk.chain.events.normalize_log`
        """
        pass

    @abstractmethod
    async def call(self, address: str, abi: List[Dict[str, Any]], method: str, *args: Any) -> Any:
        """
        Invoke a read-only contract method.

        Args:
            address: Contract address
            abi: ABI describing ``method``
            method: Method name
            *args: Method arguments

        Returns:
            The decoded return value
        """
        pass


class Web3ChainReader(ChainReader):
    """ChainReader backed by a web3.py ``AsyncWeb3`` JSON-RPC connection"""

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        chain_id: int,
        rpc_url: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
        w3: Optional[AsyncWeb3] = None
    ):
        """
        Initialize the reader

        Args:
            chain_id: Chain this reader serves
            rpc_url: JSON-RPC endpoint (ignored when ``w3`` is given)
            timeout: Per-request timeout in seconds
            w3: Pre-built AsyncWeb3 instance

        Raises:
            ValueError: If neither rpc_url nor w3 is provided
        """
        if w3 is None and not rpc_url:
            raise ValueError("Either rpc_url or w3 must be provided")

        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.w3 = w3 or AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": timeout})
        )

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[TxReceipt]:
        try:
            receipt = await self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            logger.debug(f"Receipt for {tx_hash} not found on chain {self.chain_id}")
            return None
        except Web3Exception:
            raise
        except Exception as e:
            raise ChainReadError(f"Receipt lookup for {tx_hash} on chain {self.chain_id} failed: {e}") from e

        if receipt is None:
            return None
        return TxReceipt.from_web3(receipt)

    async def get_logs(
        self,
        address: str,
        topics: Sequence[Optional[str]],
        from_block: int,
        to_block: int
    ) -> List[Dict[str, Any]]:
        filter_params = {
            "address": Web3.to_checksum_address(address),
            "fromBlock": from_block,
            "toBlock": to_block,
            "topics": list(topics),
        }
        try:
            logs = await self.w3.eth.get_logs(filter_params)
        except Web3Exception:
            raise
        except Exception as e:
            raise ChainReadError(
                f"Log query on chain {self.chain_id} for {address} "
                f"[{from_block}, {to_block}] failed: {e}"
            ) from e

        logger.debug(f"Chain {self.chain_id}: {len(logs)} logs from {address} in [{from_block}, {to_block}]")
        return [normalize_log(log) for log in logs]

    async def call(self, address: str, abi: List[Dict[str, Any]], method: str, *args: Any) -> Any:
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)
        try:
            return await getattr(contract.functions, method)(*args).call()
        except Web3Exception:
            raise
        except Exception as e:
            raise ChainReadError(f"Call {method} on {address} (chain {self.chain_id}) failed: {e}") from e
