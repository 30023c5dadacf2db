"""
Data models for the bridge transaction SDK.

Numeric on-chain quantities (deposit value, gas limit, fees, token amounts)
are plain Python ints so values beyond 64 bits are kept exactly.
"""
from enum import IntEnum
from typing import Dict, Any, Optional, List, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .exceptions import ProtocolMismatchError

EMPTY_DATA = "0x"


def _hex(value: Any) -> Any:
    """Render bytes-like values as 0x-prefixed hex strings."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    return value


class MessageStatus(IntEnum):
    """Processing status of a bridge message as tracked by the destination bridge."""
    NEW = 0
    RETRIABLE = 1
    PROCESSED = 2
    FAILED = 3

    @classmethod
    def from_code(cls, code: Any) -> "MessageStatus":
        """
        Map a raw status code returned by the bridge contract.

        Args:
            code: Status code as returned by ``getMessageStatus``

        Returns:
            The matching MessageStatus

        Raises:
            ProtocolMismatchError: If the code is not a known status
        """
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            raise ProtocolMismatchError(f"Unknown message status code from bridge contract: {code!r}", code=code)


class ChainRegistryEntry(BaseModel):
    """Static bridge deployment details for one chain"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    chain_id: int = Field(..., alias="chainId")
    bridge_address: str = Field(..., alias="bridgeAddress")
    token_vault_address: str = Field(..., alias="tokenVaultAddress")
    rpc_url: Optional[str] = Field(None, alias="rpc")
    name: Optional[str] = None


class BridgeMessage(BaseModel):
    """
    Bridge message envelope.

    Accepts the indexer's PascalCase keys (``DepositValue``) as well as the
    camelCase struct fields emitted on-chain (``depositValue``).
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int = Field(..., validation_alias=AliasChoices("id", "Id"))
    sender: str = Field(..., validation_alias=AliasChoices("sender", "Sender"))
    src_chain_id: int = Field(..., validation_alias=AliasChoices("src_chain_id", "srcChainId", "SrcChainId"))
    dest_chain_id: int = Field(..., validation_alias=AliasChoices("dest_chain_id", "destChainId", "DestChainId"))
    owner: str = Field(..., validation_alias=AliasChoices("owner", "Owner"))
    to: str = Field(..., validation_alias=AliasChoices("to", "To"))
    refund_address: Optional[str] = Field(
        None, validation_alias=AliasChoices("refund_address", "refundAddress", "RefundAddress")
    )
    deposit_value: int = Field(0, validation_alias=AliasChoices("deposit_value", "depositValue", "DepositValue"))
    call_value: int = Field(0, validation_alias=AliasChoices("call_value", "callValue", "CallValue"))
    processing_fee: int = Field(0, validation_alias=AliasChoices("processing_fee", "processingFee", "ProcessingFee"))
    gas_limit: int = Field(0, validation_alias=AliasChoices("gas_limit", "gasLimit", "GasLimit"))
    data: str = Field(EMPTY_DATA, validation_alias=AliasChoices("data", "Data"))
    memo: str = Field("", validation_alias=AliasChoices("memo", "Memo"))

    @field_validator("data", mode="before")
    @classmethod
    def _normalize_data(cls, value: Any) -> Any:
        value = _hex(value)
        if value is None or value == "":
            return EMPTY_DATA
        return value

    @field_validator("memo", mode="before")
    @classmethod
    def _normalize_memo(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def has_payload(self) -> bool:
        """True when the message carries call data (e.g. a token transfer)."""
        return self.data.lower() not in ("", EMPTY_DATA)


class RelayerRawLog(BaseModel):
    """Subset of the source-chain log the indexer stores alongside each event"""
    model_config = ConfigDict(populate_by_name=True)

    transaction_hash: str = Field(..., alias="transactionHash")
    block_number: Optional[int] = Field(None, alias="blockNumber")
    address: Optional[str] = None

    @field_validator("block_number", mode="before")
    @classmethod
    def _parse_block_number(cls, value: Any) -> Any:
        if isinstance(value, str) and value.startswith("0x"):
            return int(value, 16)
        return value


class RelayerEventData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: BridgeMessage = Field(..., alias="Message")
    raw: RelayerRawLog = Field(..., alias="Raw")
    msg_hash: Optional[str] = Field(None, alias="MsgHash")

    @field_validator("msg_hash", mode="before")
    @classmethod
    def _only_hex_hash(cls, value: Any) -> Any:
        # The indexer serializes the raw bytes32 as a JSON array of ints
        if isinstance(value, list):
            if len(value) != 32:
                return None
            try:
                value = bytes(value)
            except (TypeError, ValueError):
                return None
        value = _hex(value)
        return value if isinstance(value, str) else None


class RelayerEvent(BaseModel):
    """One bridge event record as returned by the relayer's ``events`` endpoint"""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    name: Optional[str] = None
    status: int
    event_type: Optional[int] = Field(None, alias="eventType")
    chain_id: Optional[int] = Field(None, alias="chainID")
    msg_hash: Optional[str] = Field(None, alias="msgHash")
    message_owner: Optional[str] = Field(None, alias="messageOwner")
    amount: Optional[int] = None
    canonical_token_symbol: Optional[str] = Field(None, alias="canonicalTokenSymbol")
    data: RelayerEventData

    @field_validator("amount", "canonical_token_symbol", "msg_hash", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value == "":
            return None
        return value

    @property
    def message(self) -> BridgeMessage:
        return self.data.message

    @property
    def expected_msg_hash(self) -> Optional[str]:
        """Message hash reported by the indexer, if any"""
        return self.msg_hash or self.data.msg_hash

    @property
    def tx_hash(self) -> str:
        return self.data.raw.transaction_hash


class RelayerEventsPage(BaseModel):
    items: List[RelayerEvent] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _null_items(cls, value: Any) -> Any:
        return [] if value is None else value


class RelayerBlockInfo(BaseModel):
    """Last block the relayer processed for one chain"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    chain_id: int = Field(..., alias="chainID")
    latest_processed_block: int = Field(0, alias="latestProcessedBlock")
    latest_block: int = Field(0, alias="latestBlock")


class TxReceipt(BaseModel):
    """Transaction receipt from the source chain"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int = 1
    gas_used: int = Field(0, alias="gasUsed")
    from_address: Optional[str] = Field(None, alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_web3(cls, web3_receipt: Any) -> "TxReceipt":
        """
        Convert a web3 receipt (AttributeDict of HexBytes) to a TxReceipt

        Args:
            web3_receipt: The receipt returned by ``eth.get_transaction_receipt``

        Returns:
            Our TxReceipt model
        """
        receipt_dict = dict(web3_receipt)
        for key, value in list(receipt_dict.items()):
            receipt_dict[key] = _hex(value)
        receipt_dict["logs"] = [
            {k: _hex(v) for k, v in dict(log).items()} for log in receipt_dict.get("logs") or []
        ]
        return cls.model_validate(receipt_dict)


class MessageSentEvent(BaseModel):
    """Decoded ``MessageSent`` log of the source bridge"""
    model_config = ConfigDict(frozen=True)

    msg_hash: str
    message: BridgeMessage
    block_number: int
    transaction_hash: Optional[str] = None
    log_index: Optional[int] = None


class ERC20SentEvent(BaseModel):
    """Decoded ``ERC20Sent`` log of the source token vault"""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    msg_hash: str
    from_address: str = Field(..., alias="from")
    to_address: str = Field(..., alias="to")
    dest_chain_id: int
    token: str
    amount: int
    block_number: int


class TokenTransfer(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    amount: int
    token_address: str


class BridgeTransaction(BaseModel):
    """
    Canonical view of one cross-chain bridge message.

    Provisional records carry the indexer-reported status, amount and symbol;
    enriched records carry the destination bridge status and the token
    transfer resolved from the source vault.
    """
    model_config = ConfigDict(frozen=True)

    status: Union[MessageStatus, int]
    message: BridgeMessage
    msg_hash: Optional[str] = None
    receipt: Optional[TxReceipt] = None
    amount: Optional[int] = None
    symbol: Optional[str] = None
    from_chain_id: int
    to_chain_id: int
    tx_hash: str
    from_address: str

    @classmethod
    def from_relayer_event(cls, event: RelayerEvent) -> "BridgeTransaction":
        """Build the provisional record for an indexer event"""
        message = event.message
        return cls(
            status=event.status,
            message=message,
            msg_hash=event.expected_msg_hash,
            amount=event.amount,
            symbol=event.canonical_token_symbol,
            from_chain_id=message.src_chain_id,
            to_chain_id=message.dest_chain_id,
            tx_hash=event.tx_hash,
            from_address=message.owner,
        )

    @property
    def has_receipt(self) -> bool:
        return self.receipt is not None

    @property
    def is_enriched(self) -> bool:
        """True when status and message were confirmed against chain state"""
        return self.receipt is not None and isinstance(self.status, MessageStatus)

    @property
    def dedup_key(self) -> Optional[tuple]:
        if not self.msg_hash:
            return None
        return (self.message.owner.lower(), self.msg_hash.lower())
