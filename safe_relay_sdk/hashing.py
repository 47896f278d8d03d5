"""
EIP-712 hashing of Safe transactions.

The digest is what every owner signs and what the relay uses as the
``contractTransactionHash``. It must be identical across processes, so the
encoding below is fixed: ABI words for every field, ``keccak256(data)`` for the
dynamic call data, and the standard ``0x19 0x01`` framing.
"""
from typing import TYPE_CHECKING

from eth_abi import encode
from web3 import Web3

from .exceptions import EncodingError, ValidationError
from .wire import Address, Hash32

if TYPE_CHECKING:
    from .transaction import SafeIdentity, TransactionIntent

DOMAIN_SEPARATOR_TYPEHASH = Web3.keccak(
    text="EIP712Domain(uint256 chainId,address verifyingContract)"
)

SAFE_TX_TYPEHASH = Web3.keccak(
    text=(
        "SafeTx(address to,uint256 value,bytes data,uint8 operation,uint256 safeTxGas,"
        "uint256 baseGas,uint256 gasPrice,address gasToken,address refundReceiver,uint256 nonce)"
    )
)


def domain_separator(safe: "SafeIdentity") -> Hash32:
    """Domain separator binding the digest to one Safe on one chain."""
    encoded = encode(
        ["bytes32", "uint256", "address"],
        [bytes(DOMAIN_SEPARATOR_TYPEHASH), safe.chain_id, safe.address.to_checksum()],
    )
    return Hash32(bytes(Web3.keccak(encoded)))


def _field_address(name: str, value) -> Address:
    try:
        return Address.parse(value)
    except EncodingError as e:
        raise EncodingError(f"Invalid {name}: {e}") from e


def safe_tx_struct_hash(intent: "TransactionIntent", nonce: int) -> Hash32:
    """
    hashStruct(SafeTx) for the intent at the given nonce.

    Raises:
        ValidationError: If the destination or operation is missing or
            invalid, or data is not bytes
        EncodingError: If an address field is malformed
    """
    missing = [name for name in ("to", "operation") if getattr(intent, name) is None]
    if missing:
        raise ValidationError(f"Transaction missing required fields: {', '.join(missing)}")
    if not isinstance(intent.data, (bytes, bytearray)):
        raise ValidationError(f"data must be bytes, got {type(intent.data).__name__}")
    if isinstance(intent.operation, bool) or intent.operation not in (0, 1):
        raise ValidationError(f"Invalid operation: {intent.operation!r}")
    to = _field_address("destination", intent.to)
    gas_token = _field_address("gas_token", intent.gas_token or Address.ZERO)
    refund_receiver = _field_address("refund_receiver", intent.refund_receiver or Address.ZERO)
    encoded = encode(
        [
            "bytes32", "address", "uint256", "bytes32", "uint8",
            "uint256", "uint256", "uint256", "address", "address", "uint256",
        ],
        [
            bytes(SAFE_TX_TYPEHASH),
            to.to_checksum(),
            intent.value,
            bytes(Web3.keccak(bytes(intent.data))),
            int(intent.operation),
            intent.safe_tx_gas,
            intent.base_gas,
            intent.gas_price,
            gas_token.to_checksum(),
            refund_receiver.to_checksum(),
            nonce,
        ],
    )
    return Hash32(bytes(Web3.keccak(encoded)))


def safe_tx_hash(safe: "SafeIdentity", intent: "TransactionIntent", nonce: int) -> Hash32:
    """
    Compute the EIP-712 SafeTx digest.

    Args:
        safe: Safe identity (chain id and verifying contract)
        intent: Transaction fields
        nonce: Safe nonce the transaction is bound to

    Returns:
        32-byte digest
    """
    preimage = (
        b"\x19\x01"
        + domain_separator(safe).raw
        + safe_tx_struct_hash(intent, nonce).raw
    )
    return Hash32(bytes(Web3.keccak(preimage)))
