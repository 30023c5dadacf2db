"""
Pytest fixtures for the bridgetx SDK tests.

Chain state is served by ``FakeChainReader``, an in-memory ChainReader whose
logs are ABI-encoded exactly like the real bridge and token vault emit them.
"""
import asyncio
from typing import Any, Dict, List, Optional

import pytest
from eth_abi import encode as abi_encode
from web3 import Web3

from bridgetx_sdk._rate_limited_log import reset_rate_limited_log
from bridgetx_sdk.chain.abi import (
    ERC20_SENT_DATA_TYPES,
    ERC20_SENT_TOPIC,
    MESSAGE_FIELDS,
    MESSAGE_SENT_TOPIC,
    MESSAGE_TUPLE_TYPE,
)
from bridgetx_sdk.chain.reader import ChainReader
from bridgetx_sdk.config import ChainRegistry
from bridgetx_sdk.models import ChainRegistryEntry, TxReceipt
from bridgetx_sdk.reconciler import TransactionReconciler
from bridgetx_sdk.relayer import RelayerAPIClient

# Constants for testing
RELAYER_URL = "https://relayer.example.com"
SRC_CHAIN_ID = 31336
DEST_CHAIN_ID = 167001
OWNER_A = "0x" + "aa" * 20
OWNER_B = "0x" + "bb" * 20
RECIPIENT = "0x" + "cc" * 20
TOKEN = "0x" + "dd" * 20
SRC_BRIDGE = "0x" + "10" * 20
SRC_VAULT = "0x" + "11" * 20
DEST_BRIDGE = "0x" + "20" * 20
DEST_VAULT = "0x" + "21" * 20
H1 = "0x" + "01" * 32
H2 = "0x" + "02" * 32
H3 = "0x" + "03" * 32


def tx_hash(n: int) -> str:
    return "0x" + format(n, "064x")


def make_message(
    owner: str = OWNER_A,
    deposit_value: int = 100,
    data: bytes = b"",
    msg_id: int = 1,
    src_chain_id: int = SRC_CHAIN_ID,
    dest_chain_id: int = DEST_CHAIN_ID,
    **overrides: Any
) -> Dict[str, Any]:
    """Message struct with the on-chain camelCase field names"""
    message = {
        "id": msg_id,
        "sender": owner,
        "srcChainId": src_chain_id,
        "destChainId": dest_chain_id,
        "owner": owner,
        "to": RECIPIENT,
        "refundAddress": owner,
        "depositValue": deposit_value,
        "callValue": 0,
        "processingFee": 10,
        "gasLimit": 140000,
        "data": data,
        "memo": "",
    }
    message.update(overrides)
    return message


def message_sent_log(
    msg_hash: str,
    message: Dict[str, Any],
    block_number: int,
    transaction_hash: str,
    bridge: str = SRC_BRIDGE,
    log_index: int = 0
) -> Dict[str, Any]:
    data = abi_encode([MESSAGE_TUPLE_TYPE], [tuple(message[field] for field in MESSAGE_FIELDS)])
    return {
        "address": Web3.to_checksum_address(bridge),
        "topics": [MESSAGE_SENT_TOPIC, msg_hash],
        "data": Web3.to_hex(data),
        "blockNumber": block_number,
        "transactionHash": transaction_hash,
        "logIndex": log_index,
    }


def erc20_sent_log(
    msg_hash: str,
    amount: int,
    block_number: int,
    token: str = TOKEN,
    vault: str = SRC_VAULT,
    sender: str = OWNER_A,
    to: str = RECIPIENT,
    dest_chain_id: int = DEST_CHAIN_ID
) -> Dict[str, Any]:
    data = abi_encode(ERC20_SENT_DATA_TYPES, [dest_chain_id, token, amount])
    return {
        "address": Web3.to_checksum_address(vault),
        "topics": [
            ERC20_SENT_TOPIC,
            msg_hash,
            "0x" + "00" * 12 + sender[2:].lower(),
            "0x" + "00" * 12 + to[2:].lower(),
        ],
        "data": Web3.to_hex(data),
        "blockNumber": block_number,
        "transactionHash": tx_hash(block_number),
        "logIndex": 1,
    }


def relayer_item(
    message: Dict[str, Any],
    msg_hash: Optional[str],
    transaction_hash: str,
    status: int = 0,
    amount: Optional[str] = None,
    symbol: Optional[str] = None
) -> Dict[str, Any]:
    """Event record in the relayer's JSON format (PascalCase message keys)"""
    return {
        "id": message["id"],
        "name": "MessageSent",
        "status": status,
        "eventType": 1 if amount else 0,
        "chainID": message["srcChainId"],
        "msgHash": msg_hash,
        "messageOwner": message["owner"],
        "amount": amount,
        "canonicalTokenSymbol": symbol,
        "data": {
            "Message": {
                "Id": message["id"],
                "Sender": message["sender"],
                "SrcChainId": message["srcChainId"],
                "DestChainId": message["destChainId"],
                "Owner": message["owner"],
                "To": message["to"],
                "RefundAddress": message["refundAddress"],
                "DepositValue": str(message["depositValue"]),
                "CallValue": message["callValue"],
                "ProcessingFee": str(message["processingFee"]),
                "GasLimit": message["gasLimit"],
                "Data": Web3.to_hex(message["data"]) if message["data"] else "0x",
                "Memo": message["memo"],
            },
            "Raw": {
                "address": SRC_BRIDGE,
                "blockNumber": "0xa",
                "transactionHash": transaction_hash,
            },
        },
    }


class FakeChainReader(ChainReader):
    """In-memory ChainReader"""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        self.receipts: Dict[str, TxReceipt] = {}
        self.logs: List[Dict[str, Any]] = []
        self.call_results: Dict[tuple, Any] = {}
        self.calls: List[tuple] = []
        self.log_queries: List[tuple] = []

    def add_receipt(self, transaction_hash: str, block_number: int, from_address: str = OWNER_A) -> TxReceipt:
        receipt = TxReceipt.model_validate({
            "transactionHash": transaction_hash,
            "blockNumber": block_number,
            "blockHash": "0x" + "ab" * 32,
            "status": 1,
            "gasUsed": 21000,
            "from": from_address,
            "to": SRC_BRIDGE,
            "logs": [],
        })
        self.receipts[transaction_hash.lower()] = receipt
        return receipt

    def set_status(self, bridge: str, msg_hash: str, code: int) -> None:
        statuses = self.call_results.setdefault((bridge.lower(), "getMessageStatus"), {})
        statuses[msg_hash.lower()] = code

    def set_symbol(self, token: str, symbol: str) -> None:
        self.call_results[(token.lower(), "symbol")] = symbol

    async def get_transaction_receipt(self, transaction_hash: str) -> Optional[TxReceipt]:
        await asyncio.sleep(0)
        return self.receipts.get(transaction_hash.lower())

    async def get_logs(self, address, topics, from_block, to_block):
        await asyncio.sleep(0)
        self.log_queries.append((address.lower(), tuple(topics), from_block, to_block))
        matched = []
        for log in self.logs:
            if log["address"].lower() != address.lower():
                continue
            if not from_block <= log["blockNumber"] <= to_block:
                continue
            log_topics = [t.lower() for t in log["topics"]]
            if any(
                topic is not None and (i >= len(log_topics) or log_topics[i] != topic.lower())
                for i, topic in enumerate(topics)
            ):
                continue
            matched.append(log)
        return matched

    async def call(self, address, abi, method, *args):
        await asyncio.sleep(0)
        self.calls.append((address.lower(), method, args))
        result = self.call_results[(address.lower(), method)]
        if method == "getMessageStatus":
            return result[Web3.to_hex(args[0]).lower()]
        return result


@pytest.fixture(autouse=True)
def _reset_log_rate_limit():
    reset_rate_limited_log()
    yield
    reset_rate_limited_log()


@pytest.fixture
def registry():
    return ChainRegistry([
        ChainRegistryEntry(chain_id=SRC_CHAIN_ID, bridge_address=SRC_BRIDGE, token_vault_address=SRC_VAULT),
        ChainRegistryEntry(chain_id=DEST_CHAIN_ID, bridge_address=DEST_BRIDGE, token_vault_address=DEST_VAULT),
    ])


@pytest.fixture
def src_reader():
    return FakeChainReader(SRC_CHAIN_ID)


@pytest.fixture
def dest_reader():
    return FakeChainReader(DEST_CHAIN_ID)


@pytest.fixture
def relayer():
    client = RelayerAPIClient(RELAYER_URL, timeout=5)
    yield client
    client.close()


@pytest.fixture
def reconciler(relayer, registry, src_reader, dest_reader):
    return TransactionReconciler(
        relayer,
        registry,
        {SRC_CHAIN_ID: src_reader, DEST_CHAIN_ID: dest_reader},
    )
