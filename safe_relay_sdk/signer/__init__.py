"""
Signer interface for Safe owners.
"""
from typing import Protocol, runtime_checkable


@runtime_checkable
class Signer(Protocol):
    """Protocol for anything that can sign a 32-byte digest as a Safe owner"""
    address: str

    def sign_hash(self, digest: bytes) -> bytes:
        """Sign the raw digest and return the 65-byte r||s||v signature"""
        ...


from .local import LocalSigner  # noqa: E402

__all__ = ["Signer", "LocalSigner"]
