"""
bridgetx-sdk - reconciles cross-chain bridge transactions reported by a relayer
indexer against source and destination chain state.
"""
from .chain import ChainReader, Web3ChainReader
from .config import ChainRegistry, ReconcilerSettings
from .exceptions import (
    BridgeTxError,
    ChainReadError,
    InvalidArgumentError,
    ProtocolMismatchError,
    RelayerAPIError,
    UnknownChainError,
)
from .matcher import EventMatcher, find_match, select_unique
from .models import (
    BridgeMessage,
    BridgeTransaction,
    ChainRegistryEntry,
    ERC20SentEvent,
    MessageSentEvent,
    MessageStatus,
    RelayerBlockInfo,
    RelayerEvent,
    TokenTransfer,
    TxReceipt,
)
from .reconciler import TransactionReconciler, order_transactions
from .relayer import RelayerAPIClient
from .status import StatusResolver
from .tokens import TokenResolver
from .version import __version__

__all__ = [
    "BridgeMessage",
    "BridgeTransaction",
    "BridgeTxError",
    "ChainReadError",
    "ChainReader",
    "ChainRegistry",
    "ChainRegistryEntry",
    "ERC20SentEvent",
    "EventMatcher",
    "InvalidArgumentError",
    "MessageSentEvent",
    "MessageStatus",
    "ProtocolMismatchError",
    "ReconcilerSettings",
    "RelayerAPIClient",
    "RelayerAPIError",
    "RelayerBlockInfo",
    "RelayerEvent",
    "StatusResolver",
    "TokenResolver",
    "TokenTransfer",
    "TransactionReconciler",
    "TxReceipt",
    "UnknownChainError",
    "Web3ChainReader",
    "__version__",
    "find_match",
    "order_transactions",
    "select_unique",
]
