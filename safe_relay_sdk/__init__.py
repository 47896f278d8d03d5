"""
Safe relay SDK: build, hash, sign and propose Safe multisig transactions.
"""
from .client import SafeRelayClient, close_http_clients, get_http_client, request_json
from .config import NetworkConfig
from .exceptions import (
    DuplicateSignerError,
    EncodingError,
    InvalidSignatureError,
    RejectedByServiceError,
    SafeRelayError,
    TransportError,
    ValidationError,
)
from .hashing import domain_separator, safe_tx_hash, safe_tx_struct_hash
from .models import Confirmation, Page, ProposalRequest, SafeInfo, SafeTransaction
from .nonce import NonceAllocator, seed_nonce
from .signatures import SignatureRecord, combine, recover_signer
from .signer import LocalSigner, Signer
from .transaction import (
    Operation,
    PendingTransaction,
    SafeIdentity,
    TransactionBuilder,
    TransactionIntent,
)
from .version import __version__
from .wire import Address, Hash32

__all__ = [
    "SafeRelayClient",
    "close_http_clients",
    "get_http_client",
    "request_json",
    "NetworkConfig",
    "SafeRelayError",
    "EncodingError",
    "ValidationError",
    "InvalidSignatureError",
    "DuplicateSignerError",
    "TransportError",
    "RejectedByServiceError",
    "domain_separator",
    "safe_tx_hash",
    "safe_tx_struct_hash",
    "Confirmation",
    "Page",
    "ProposalRequest",
    "SafeInfo",
    "SafeTransaction",
    "NonceAllocator",
    "seed_nonce",
    "SignatureRecord",
    "combine",
    "recover_signer",
    "LocalSigner",
    "Signer",
    "Operation",
    "PendingTransaction",
    "SafeIdentity",
    "TransactionBuilder",
    "TransactionIntent",
    "Address",
    "Hash32",
    "__version__",
]
