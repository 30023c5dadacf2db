"""
Decoding of raw bridge and token vault logs.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, TypeVar

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError
from pydantic import ValidationError
from web3 import Web3

from ..models import BridgeMessage, ERC20SentEvent, MessageSentEvent
from .abi import (
    ERC20_SENT_DATA_TYPES,
    ERC20_SENT_TOPIC,
    MESSAGE_ADDRESS_FIELDS,
    MESSAGE_FIELDS,
    MESSAGE_SENT_TOPIC,
    MESSAGE_TUPLE_TYPE,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors a malformed or foreign log can raise while being decoded
DECODE_ERRORS = (DecodingError, ValidationError, ValueError, IndexError, KeyError, TypeError)


def _to_hex(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return Web3.to_hex(bytes(value))
    return value


def _to_int(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("0x"):
        return int(value, 16)
    return value


def normalize_log(log: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert a web3 log entry into a plain dict of hex strings and ints.

    Args:
        log: Log entry as returned by ``eth_getLogs`` (AttributeDict or dict)

    Returns:
        Dict with ``address``, ``topics``, ``data``, ``blockNumber``,
        ``transactionHash`` and ``logIndex`` keys
    """
    return {
        "address": log.get("address"),
        "topics": [_to_hex(topic).lower() for topic in log.get("topics") or []],
        "data": _to_hex(log.get("data")) or "0x",
        "blockNumber": _to_int(log.get("blockNumber")),
        "transactionHash": _to_hex(log.get("transactionHash")),
        "logIndex": _to_int(log.get("logIndex")),
    }


def _data_bytes(data: Any) -> bytes:
    if isinstance(data, (bytes, bytearray)):
        return bytes(data)
    return Web3.to_bytes(hexstr=data or "0x")


def _topic_address(topic: str) -> str:
    return Web3.to_checksum_address("0x" + topic[-40:])


def decode_message_sent(log: Mapping[str, Any]) -> MessageSentEvent:
    """
    Decode a ``MessageSent(bytes32 indexed msgHash, Message message)`` log.

    Raises:
        ValueError: If the log is not a MessageSent log
        DecodingError: If the log data cannot be ABI-decoded
    """
    entry = normalize_log(log)
    topics = entry["topics"]
    if not topics or topics[0] != MESSAGE_SENT_TOPIC:
        raise ValueError("Log is not a MessageSent event")

    (message_tuple,) = abi_decode([MESSAGE_TUPLE_TYPE], _data_bytes(entry["data"]))
    fields = dict(zip(MESSAGE_FIELDS, message_tuple))
    for key in MESSAGE_ADDRESS_FIELDS:
        fields[key] = Web3.to_checksum_address(fields[key])
    message = BridgeMessage.model_validate(fields)

    return MessageSentEvent(
        msg_hash=topics[1],
        message=message,
        block_number=entry["blockNumber"],
        transaction_hash=entry["transactionHash"],
        log_index=entry["logIndex"],
    )


def decode_erc20_sent(log: Mapping[str, Any]) -> ERC20SentEvent:
    """
    Decode an ``ERC20Sent`` token vault log.

    Raises:
        ValueError: If the log is not an ERC20Sent log
        DecodingError: If the log data cannot be ABI-decoded
    """
    entry = normalize_log(log)
    topics = entry["topics"]
    if len(topics) < 4 or topics[0] != ERC20_SENT_TOPIC:
        raise ValueError("Log is not an ERC20Sent event")

    dest_chain_id, token, amount = abi_decode(ERC20_SENT_DATA_TYPES, _data_bytes(entry["data"]))

    return ERC20SentEvent(
        msg_hash=topics[1],
        from_address=_topic_address(topics[2]),
        to_address=_topic_address(topics[3]),
        dest_chain_id=dest_chain_id,
        token=Web3.to_checksum_address(token),
        amount=amount,
        block_number=entry["blockNumber"],
    )


def decode_logs(logs: Iterable[Mapping[str, Any]], decoder: Callable[[Mapping[str, Any]], T]) -> List[T]:
    """Decode every log with ``decoder``, skipping logs that do not decode."""
    decoded = []
    for log in logs:
        try:
            decoded.append(decoder(log))
        except DECODE_ERRORS as e:
            logger.debug(f"Skipping undecodable log {log.get('transactionHash')}: {e}")
    return decoded
