"""
Destination-chain status lookup for bridge messages.
"""
import logging

from web3 import Web3

from .chain.abi import BRIDGE_ABI
from .chain.reader import ChainReader
from .models import MessageStatus

logger = logging.getLogger(__name__)


class StatusResolver:
    """Reads the authoritative processing status from the destination bridge"""

    async def resolve_status(self, reader: ChainReader, bridge_address: str, msg_hash: str) -> MessageStatus:
        """
        Query ``getMessageStatus(msgHash)`` on the destination bridge.

        The result is never cached; every call reflects current chain state.

        Args:
            reader: Reader for the destination chain
            bridge_address: Destination bridge contract address
            msg_hash: Message hash

        Returns:
            The message status

        Raises:
            ProtocolMismatchError: If the contract returns an unknown status code
        """
        code = await reader.call(bridge_address, BRIDGE_ABI, "getMessageStatus", Web3.to_bytes(hexstr=msg_hash))
        status = MessageStatus.from_code(code)
        logger.debug(f"Message {msg_hash} on chain {reader.chain_id}: {status.name}")
        return status
