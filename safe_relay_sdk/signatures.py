"""
Owner signatures over a Safe transaction digest.

The Safe contract verifies signatures in one pass and requires the owners to
appear in strictly ascending address order, which is also how it rejects a
duplicate owner. ``combine`` produces exactly that layout.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature
from eth_keys.exceptions import ValidationError as KeysValidationError

from .exceptions import DuplicateSignerError, InvalidSignatureError
from .wire import Address, Hash32, parse_hex_data

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 65


@dataclass(frozen=True)
class SignatureRecord:
    """An owner address and its 65-byte r||s||v signature."""
    signer: Address
    signature: bytes

    @classmethod
    def from_hex(cls, signer: Union[str, Address], signature: str) -> "SignatureRecord":
        """
        Build a record from relay-style hex values.

        Raises:
            EncodingError: If the address or signature hex is malformed
        """
        return cls(signer=Address.parse(signer), signature=parse_hex_data(signature))


def recover_signer(digest: Union[Hash32, bytes], signature: bytes) -> Address:
    """
    Recover the address that produced ``signature`` over ``digest``.

    Only plain ECDSA signatures over the raw digest (v = 27 or 28) are
    accepted.

    Raises:
        InvalidSignatureError: If the signature is malformed or unrecoverable
    """
    digest = Hash32.parse(digest)
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidSignatureError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )
    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]
    if v not in (27, 28):
        raise InvalidSignatureError(f"Unsupported signature v value: {v}")
    try:
        public_key = keys.Signature(vrs=(v - 27, r, s)).recover_public_key_from_msg_hash(digest.raw)
    except (BadSignature, KeysValidationError) as e:
        raise InvalidSignatureError(f"Could not recover signer from signature: {e}") from e
    return Address(public_key.to_canonical_address())


def combine(digest: Union[Hash32, bytes], records: Iterable[SignatureRecord]) -> bytes:
    """
    Verify and concatenate owner signatures in ascending signer order.

    Args:
        digest: The transaction digest every record must sign
        records: Signature records, in any order

    Returns:
        Concatenated signatures, 65 bytes per record

    Raises:
        InvalidSignatureError: If a record does not recover to its claimed signer
        DuplicateSignerError: If the same signer appears more than once
    """
    digest = Hash32.parse(digest)
    by_signer = {}
    for record in records:
        signer = Address.parse(record.signer)
        if signer in by_signer:
            raise DuplicateSignerError(f"Duplicate signature for signer {signer}", signer=str(signer))
        recovered = recover_signer(digest, bytes(record.signature))
        if recovered != signer:
            raise InvalidSignatureError(
                f"Signature for {signer} recovers to {recovered} over digest {digest}",
                signer=str(signer),
            )
        by_signer[signer] = bytes(record.signature)

    blob = b"".join(by_signer[signer] for signer in sorted(by_signer))
    logger.debug(f"Combined {len(by_signer)} signatures over {digest}")
    return blob

