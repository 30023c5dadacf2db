"""
Correlation of indexer records with on-chain ``MessageSent`` events.

A single block can contain several ``MessageSent`` emissions from unrelated
senders and transactions, so a receipt alone does not identify the event.
Matching is a filter over the block's candidates followed by a singleton
check: zero or several matches both mean "no definitive match".
"""
import logging
from typing import Callable, Iterable, Optional, TypeVar

from .chain.abi import MESSAGE_SENT_TOPIC
from .chain.events import decode_logs, decode_message_sent
from .chain.reader import ChainReader
from .models import MessageSentEvent, TxReceipt

logger = logging.getLogger(__name__)

T = TypeVar("T")


def select_unique(candidates: Iterable[T], predicate: Callable[[T], bool]) -> Optional[T]:
    """
    Return the only candidate satisfying ``predicate``.

    Args:
        candidates: Candidate items
        predicate: Composite match condition

    Returns:
        The matching item, or None when no item or more than one item matches
    """
    matches = [candidate for candidate in candidates if predicate(candidate)]
    if len(matches) != 1:
        if matches:
            logger.debug(f"Ambiguous match: {len(matches)} candidates satisfy the predicate")
        return None
    return matches[0]


def find_match(
    events: Iterable[MessageSentEvent],
    owner: str,
    deposit_value: int,
    msg_hash: Optional[str]
) -> Optional[MessageSentEvent]:
    """
    Pick the MessageSent event that belongs to an indexer record.

    Args:
        events: Decoded MessageSent events of one block
        owner: Message owner (compared case-insensitively)
        deposit_value: Expected deposit value (compared numerically)
        msg_hash: Expected message hash (compared exactly)

    Returns:
        The unique matching event, or None
    """
    if not msg_hash:
        return None

    owner_lower = owner.lower()
    expected_value = int(deposit_value)

    def _is_match(event: MessageSentEvent) -> bool:
        return (
            event.message.owner.lower() == owner_lower
            and event.message.deposit_value == expected_value
            and event.msg_hash == msg_hash
        )

    return select_unique(events, _is_match)


class EventMatcher:
    """Finds the source-chain MessageSent event behind an indexer record"""

    async def match(
        self,
        reader: ChainReader,
        bridge_address: str,
        receipt: TxReceipt,
        owner: str,
        deposit_value: int,
        msg_hash: Optional[str]
    ) -> Optional[MessageSentEvent]:
        """
        Query the receipt's block and match the record against its events.

        Args:
            reader: Reader for the source chain
            bridge_address: Source bridge contract address
            receipt: Source transaction receipt
            owner: Message owner
            deposit_value: Expected deposit value
            msg_hash: Expected message hash

        Returns:
            The matching event, or None if no unambiguous match exists
        """
        block_number = receipt.block_number
        logs = await reader.get_logs(bridge_address, [MESSAGE_SENT_TOPIC], block_number, block_number)
        events = decode_logs(logs, decode_message_sent)

        event = find_match(events, owner, deposit_value, msg_hash)
        if event is None:
            logger.debug(
                f"No unambiguous MessageSent match for {msg_hash} in block {block_number} "
                f"on chain {reader.chain_id} ({len(events)} candidates)"
            )
        return event
