"""
Chain access for the bridge transaction SDK.
"""
from .reader import ChainReader, Web3ChainReader
from .events import decode_erc20_sent, decode_logs, decode_message_sent, normalize_log

__all__ = [
    "ChainReader",
    "Web3ChainReader",
    "decode_erc20_sent",
    "decode_logs",
    "decode_message_sent",
    "normalize_log",
]
