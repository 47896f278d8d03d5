"""
Safe transaction data model and the transaction builder.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from .exceptions import EncodingError, ValidationError
from .hashing import safe_tx_hash
from .signatures import SignatureRecord
from .wire import UINT256_MAX, Address, Hash32

logger = logging.getLogger(__name__)

AddressLike = Union[str, bytes, Address]


class Operation(IntEnum):
    """Safe operation kind, sent on the wire as 0 or 1."""
    CALL = 0
    DELEGATE_CALL = 1


@dataclass(frozen=True)
class SafeIdentity:
    """The Safe a transaction belongs to: chain id plus contract address."""
    chain_id: int
    address: Address

    def __post_init__(self):
        if isinstance(self.chain_id, bool) or not isinstance(self.chain_id, int) or self.chain_id <= 0:
            raise ValidationError(f"chain_id must be a positive integer, got {self.chain_id!r}")
        if not isinstance(self.address, Address):
            object.__setattr__(self, "address", Address.parse(self.address))


@dataclass(frozen=True)
class TransactionIntent:
    """
    What the caller wants the Safe to do.

    Attributes:
        to: Destination address
        value: Native value in wei
        data: Raw call data (empty for plain transfers)
        operation: CALL or DELEGATE_CALL
        safe_tx_gas: Gas forwarded to the inner call (0 = all available)
        base_gas: Gas costs independent of the inner call, used for refunds
        gas_price: Refund gas price (0 = no refund)
        gas_token: Refund token (zero address = native currency)
        refund_receiver: Refund recipient (None = zero address, i.e. tx.origin)
    """
    to: Optional[Address] = None
    value: int = 0
    data: bytes = b""
    operation: Optional[Operation] = Operation.CALL
    safe_tx_gas: int = 0
    base_gas: int = 0
    gas_price: int = 0
    gas_token: Address = Address.ZERO
    refund_receiver: Optional[Address] = None


@dataclass(frozen=True)
class PendingTransaction:
    """
    A transaction intent bound to a Safe and a nonce.

    Never mutated once built; a different nonce means a different
    PendingTransaction.
    """
    safe: SafeIdentity
    intent: TransactionIntent
    nonce: int
    sender: Optional[Address] = None

    def digest(self) -> Hash32:
        """EIP-712 SafeTx hash that every owner signs."""
        return safe_tx_hash(self.safe, self.intent, self.nonce)

    def sign(self, signer) -> SignatureRecord:
        """
        Sign this transaction's digest.

        Args:
            signer: Any object implementing the Signer protocol

        Returns:
            SignatureRecord for the signer's address
        """
        signature = signer.sign_hash(self.digest().raw)
        return SignatureRecord(signer=Address.parse(signer.address), signature=bytes(signature))


def _uint256(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= UINT256_MAX:
        raise ValidationError(f"{name} out of uint256 range: {value}")
    return value


def _operation(value) -> Operation:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid operation: {value!r}")
    try:
        return Operation(value)
    except ValueError as e:
        raise ValidationError(f"Invalid operation: {value!r}") from e


def _address(name: str, value: AddressLike) -> Address:
    try:
        return Address.parse(value)
    except EncodingError as e:
        raise EncodingError(f"Invalid {name}: {e}") from e


class TransactionBuilder:
    """
    Assembles a PendingTransaction from an intent, a Safe and a nonce.

    Setters return the builder so calls can be chained::

        pending = (
            TransactionBuilder(intent, chain_id=1, safe_address=safe)
            .nonce(7)
            .sender(owner)
            .build()
        )

    The builder only validates; it performs no network I/O.
    """

    def __init__(self, intent: TransactionIntent, chain_id: int, safe_address: AddressLike):
        self._intent = intent
        self._safe = SafeIdentity(chain_id=chain_id, address=_address("safe address", safe_address))
        self._nonce: Optional[int] = None
        self._sender: Optional[Address] = None
        self._overrides = {}

    @property
    def safe(self) -> SafeIdentity:
        return self._safe

    def nonce(self, nonce: int) -> "TransactionBuilder":
        self._nonce = _uint256("nonce", nonce)
        return self

    def operation(self, operation: Operation) -> "TransactionBuilder":
        self._overrides["operation"] = _operation(operation)
        return self

    def safe_tx_gas(self, gas: int) -> "TransactionBuilder":
        self._overrides["safe_tx_gas"] = _uint256("safe_tx_gas", gas)
        return self

    def base_gas(self, gas: int) -> "TransactionBuilder":
        self._overrides["base_gas"] = _uint256("base_gas", gas)
        return self

    def gas_price(self, price: int) -> "TransactionBuilder":
        self._overrides["gas_price"] = _uint256("gas_price", price)
        return self

    def gas_token(self, token: AddressLike) -> "TransactionBuilder":
        self._overrides["gas_token"] = _address("gas_token", token)
        return self

    def refund_receiver(self, receiver: Optional[AddressLike]) -> "TransactionBuilder":
        self._overrides["refund_receiver"] = None if receiver is None else _address("refund_receiver", receiver)
        return self

    def sender(self, sender: AddressLike) -> "TransactionBuilder":
        self._sender = _address("sender", sender)
        return self

    def build(self) -> PendingTransaction:
        """
        Validate and freeze the transaction.

        Returns:
            PendingTransaction ready for hashing and signing

        Raises:
            ValidationError: If destination, operation or nonce is missing, or
                a numeric field is out of range
            EncodingError: If an address field is malformed
        """
        intent = self._intent
        values = {
            "to": intent.to,
            "value": intent.value,
            "data": intent.data,
            "operation": intent.operation,
            "safe_tx_gas": intent.safe_tx_gas,
            "base_gas": intent.base_gas,
            "gas_price": intent.gas_price,
            "gas_token": intent.gas_token,
            "refund_receiver": intent.refund_receiver,
        }
        values.update(self._overrides)

        missing = [name for name in ("to", "operation") if values[name] is None]
        if self._nonce is None:
            missing.append("nonce")
        if missing:
            raise ValidationError(f"Transaction missing required fields: {', '.join(missing)}")

        values["operation"] = _operation(values["operation"])

        for name in ("value", "safe_tx_gas", "base_gas", "gas_price"):
            _uint256(name, values[name])

        if values["data"] is None:
            values["data"] = b""
        if not isinstance(values["data"], (bytes, bytearray)):
            raise ValidationError(f"data must be bytes, got {type(values['data']).__name__}")
        values["data"] = bytes(values["data"])

        values["to"] = _address("destination", values["to"])
        values["gas_token"] = _address("gas_token", values["gas_token"] or Address.ZERO)
        if values["refund_receiver"] is not None:
            values["refund_receiver"] = _address("refund_receiver", values["refund_receiver"])

        pending = PendingTransaction(
            safe=self._safe,
            intent=TransactionIntent(**values),
            nonce=self._nonce,
            sender=self._sender,
        )
        logger.debug(f"Built Safe transaction for {self._safe.address} with nonce {self._nonce}")
        return pending
