"""Ledger infrastructure: keys, transaction wire format and the RPC client."""

from .keys import InvalidKeyError, Keypair, decode_address, encode_address, verify_signature
from .rpc import (
    AccountInfo,
    LatestBlockhash,
    LedgerRpcError,
    LedgerTransportError,
    SignatureStatus,
    SolanaRpcClient,
)

__all__ = [
    "AccountInfo",
    "InvalidKeyError",
    "Keypair",
    "LatestBlockhash",
    "LedgerRpcError",
    "LedgerTransportError",
    "SignatureStatus",
    "SolanaRpcClient",
    "decode_address",
    "encode_address",
    "verify_signature",
]
