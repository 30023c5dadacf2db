"""
Exceptions for the bridge transaction SDK.
"""
from typing import Optional


class BridgeTxError(Exception):
    """Base exception for all bridgetx-sdk errors."""
    pass


class InvalidArgumentError(BridgeTxError, ValueError):
    """Raised when a required input is missing or malformed."""
    pass


class UnknownChainError(BridgeTxError):
    """Raised when a chain id has no entry in the chain registry."""

    def __init__(self, chain_id: int, message: Optional[str] = None):
        self.chain_id = chain_id
        super().__init__(message or f"Chain {chain_id} is not configured in the chain registry")


class ProtocolMismatchError(BridgeTxError):
    """Raised when a contract returns a value outside the known protocol enumeration."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class RelayerAPIError(BridgeTxError):
    """Raised when the relayer indexing service fails or returns malformed data."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ChainReadError(BridgeTxError):
    """Raised when a chain reader fails for a reason other than a web3 error."""
    pass
