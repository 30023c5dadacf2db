"""
ABI fragments for the bridge, token vault and ERC20 contracts.
"""
from web3 import Web3

# Field order of the on-chain Message struct
MESSAGE_FIELDS = (
    "id",
    "sender",
    "srcChainId",
    "destChainId",
    "owner",
    "to",
    "refundAddress",
    "depositValue",
    "callValue",
    "processingFee",
    "gasLimit",
    "data",
    "memo",
)

MESSAGE_ADDRESS_FIELDS = ("sender", "owner", "to", "refundAddress")

MESSAGE_TUPLE_TYPE = (
    "(uint256,address,uint256,uint256,address,address,address,"
    "uint256,uint256,uint256,uint256,bytes,string)"
)

MESSAGE_COMPONENTS = [
    {"internalType": "uint256", "name": "id", "type": "uint256"},
    {"internalType": "address", "name": "sender", "type": "address"},
    {"internalType": "uint256", "name": "srcChainId", "type": "uint256"},
    {"internalType": "uint256", "name": "destChainId", "type": "uint256"},
    {"internalType": "address", "name": "owner", "type": "address"},
    {"internalType": "address", "name": "to", "type": "address"},
    {"internalType": "address", "name": "refundAddress", "type": "address"},
    {"internalType": "uint256", "name": "depositValue", "type": "uint256"},
    {"internalType": "uint256", "name": "callValue", "type": "uint256"},
    {"internalType": "uint256", "name": "processingFee", "type": "uint256"},
    {"internalType": "uint256", "name": "gasLimit", "type": "uint256"},
    {"internalType": "bytes", "name": "data", "type": "bytes"},
    {"internalType": "string", "name": "memo", "type": "string"},
]

BRIDGE_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "bytes32", "name": "msgHash", "type": "bytes32"},
            {
                "components": MESSAGE_COMPONENTS,
                "indexed": False,
                "internalType": "struct IBridge.Message",
                "name": "message",
                "type": "tuple",
            },
        ],
        "name": "MessageSent",
        "type": "event",
    },
    {
        "inputs": [{"internalType": "bytes32", "name": "msgHash", "type": "bytes32"}],
        "name": "getMessageStatus",
        "outputs": [{"internalType": "enum LibBridgeStatus.MessageStatus", "name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
]

TOKEN_VAULT_ABI = [
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "internalType": "bytes32", "name": "msgHash", "type": "bytes32"},
            {"indexed": True, "internalType": "address", "name": "from", "type": "address"},
            {"indexed": True, "internalType": "address", "name": "to", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "destChainId", "type": "uint256"},
            {"indexed": False, "internalType": "address", "name": "token", "type": "address"},
            {"indexed": False, "internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "ERC20Sent",
        "type": "event",
    },
]

ERC20_ABI = [
    {
        "inputs": [],
        "name": "symbol",
        "outputs": [{"internalType": "string", "name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
]

ERC20_SENT_DATA_TYPES = ["uint256", "address", "uint256"]

MESSAGE_SENT_TOPIC = Web3.to_hex(Web3.keccak(text=f"MessageSent(bytes32,{MESSAGE_TUPLE_TYPE})"))
ERC20_SENT_TOPIC = Web3.to_hex(Web3.keccak(text="ERC20Sent(bytes32,address,address,uint256,address,uint256)"))
