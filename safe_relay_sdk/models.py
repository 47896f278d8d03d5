"""
Data models for the Safe Transaction Service API.
"""
from typing import Generic, Iterable, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .exceptions import ValidationError
from .signatures import SignatureRecord, combine
from .transaction import Operation, PendingTransaction
from .wire import Address, ChecksumAddress, DecimalInt, HexData, HexHash

T = TypeVar("T")


class RelayModel(BaseModel):
    """Base for relay payloads: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
        frozen=True,
    )


class SafeInfo(RelayModel):
    """Safe metadata tracked by the relay"""
    address: ChecksumAddress
    nonce: DecimalInt
    threshold: int
    owners: List[ChecksumAddress]
    master_copy: Optional[ChecksumAddress] = None
    modules: List[str] = Field(default_factory=list)
    fallback_handler: Optional[ChecksumAddress] = None
    guard: Optional[ChecksumAddress] = None
    version: Optional[str] = None


class Confirmation(RelayModel):
    """One owner's confirmation of a queued transaction"""
    owner: ChecksumAddress
    signature: Optional[HexData] = None
    signature_type: Optional[str] = None


class SafeTransaction(RelayModel):
    """A multisig transaction as reported by the relay"""
    safe: ChecksumAddress
    to: ChecksumAddress
    value: DecimalInt
    data: Optional[HexData] = None
    operation: Operation
    gas_token: Optional[ChecksumAddress] = None
    safe_tx_gas: DecimalInt = 0
    base_gas: DecimalInt = 0
    gas_price: DecimalInt = 0
    refund_receiver: Optional[ChecksumAddress] = None
    nonce: DecimalInt
    safe_tx_hash: HexHash
    proposer: Optional[ChecksumAddress] = None
    is_executed: bool = False
    confirmations_required: Optional[int] = None
    confirmations: List[Confirmation] = Field(default_factory=list)
    origin: Optional[str] = None

    def signature_records(self) -> List[SignatureRecord]:
        """Confirmations that carry a signature, as SignatureRecords"""
        return [
            SignatureRecord(signer=c.owner, signature=c.signature)
            for c in self.confirmations
            if c.signature is not None
        ]

    def is_signed_by(self, owner: Union[str, Address]) -> bool:
        owner = Address.parse(owner, strict=False)
        return any(c.owner == owner for c in self.confirmations)

    def combined_signature(self) -> bytes:
        """
        Verified, address-ordered signature blob of all confirmations.

        Raises:
            InvalidSignatureError: If a confirmation does not match its owner
            DuplicateSignerError: If an owner confirmed twice
        """
        return combine(self.safe_tx_hash, self.signature_records())


class Page(RelayModel, Generic[T]):
    """Paginated list response"""
    count: int = 0
    next: Optional[str] = None
    previous: Optional[str] = None
    results: List[T] = Field(default_factory=list)


class ProposalRequest(RelayModel):
    """
    Body of a multisig transaction proposal.

    Built once from a signed PendingTransaction and never mutated.
    """
    safe: ChecksumAddress
    to: ChecksumAddress
    value: DecimalInt
    data: HexData = b""
    operation: Operation
    safe_tx_gas: DecimalInt
    base_gas: DecimalInt
    gas_price: DecimalInt
    gas_token: ChecksumAddress
    refund_receiver: Optional[ChecksumAddress] = None
    nonce: DecimalInt
    contract_transaction_hash: HexHash
    sender: ChecksumAddress
    signature: Optional[HexData] = None
    origin: Optional[str] = None

    @classmethod
    def from_pending(
        cls,
        pending: PendingTransaction,
        records: Iterable[SignatureRecord],
        sender: Optional[Union[str, Address]] = None,
        origin: Optional[str] = None,
    ) -> "ProposalRequest":
        """
        Hash, verify and aggregate a signed transaction into a proposal.

        Args:
            pending: The built transaction
            records: Owner signatures over ``pending.digest()``
            sender: Proposing address; defaults to ``pending.sender``
            origin: Optional free-form origin tag stored by the relay

        Returns:
            ProposalRequest ready for submission

        Raises:
            ValidationError: If no sender is known, or a signature is invalid
                or duplicated
        """
        sender = sender if sender is not None else pending.sender
        if sender is None:
            raise ValidationError("Proposal requires a sender address")

        digest = pending.digest()
        blob = combine(digest, records)
        intent = pending.intent
        return cls(
            safe=pending.safe.address,
            to=intent.to,
            value=intent.value,
            data=intent.data,
            operation=intent.operation,
            safe_tx_gas=intent.safe_tx_gas,
            base_gas=intent.base_gas,
            gas_price=intent.gas_price,
            gas_token=intent.gas_token,
            refund_receiver=intent.refund_receiver or Address.ZERO,
            nonce=pending.nonce,
            contract_transaction_hash=digest,
            sender=Address.parse(sender),
            signature=blob or None,
            origin=origin,
        )

    def to_json(self) -> dict:
        """JSON body as the relay expects it"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
