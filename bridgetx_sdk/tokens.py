"""
Resolution of the token transfer carried by a bridge message.
"""
import logging
from typing import Optional

from .chain.abi import ERC20_ABI, ERC20_SENT_TOPIC
from .chain.events import decode_erc20_sent, decode_logs
from .chain.reader import ChainReader
from .matcher import select_unique
from .models import TokenTransfer

logger = logging.getLogger(__name__)


class TokenResolver:
    """Finds the vault's ERC20Sent log for a message and reads the token symbol"""

    async def resolve_transfer(
        self,
        reader: ChainReader,
        vault_address: str,
        msg_hash: str,
        block_number: int
    ) -> Optional[TokenTransfer]:
        """
        Resolve the token and raw amount sent with a message.

        Args:
            reader: Reader for the source chain
            vault_address: Source token vault address
            msg_hash: Message hash of the bridge message
            block_number: Block of the source transaction

        Returns:
            TokenTransfer with the raw on-chain amount, or None if the vault
            emitted no unique matching ERC20Sent log in that block
        """
        logs = await reader.get_logs(vault_address, [ERC20_SENT_TOPIC, msg_hash.lower()], block_number, block_number)
        events = decode_logs(logs, decode_erc20_sent)

        target = msg_hash.lower()
        event = select_unique(events, lambda e: e.msg_hash.lower() == target)
        if event is None:
            logger.debug(f"No ERC20Sent log for {msg_hash} in block {block_number} on chain {reader.chain_id}")
            return None

        symbol = await reader.call(event.token, ERC20_ABI, "symbol")
        return TokenTransfer(symbol=symbol, amount=event.amount, token_address=event.token)
