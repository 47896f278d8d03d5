"""
Signer backed by an in-memory private key.
"""
import logging

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


class LocalSigner:
    """
    Sign Safe transaction digests with a local secp256k1 key.

    The key is held by ``eth_account``; this class does not store or load it.
    """

    def __init__(self, priv_key: str):
        """
        Args:
            priv_key: Hex private key, with or without 0x prefix

        Raises:
            ValueError: If the key is malformed
        """
        self.account: LocalAccount = Account.from_key(priv_key)

    @property
    def address(self) -> str:
        return self.account.address

    def sign_hash(self, digest: bytes) -> bytes:
        """
        Sign a raw 32-byte digest (no EIP-191 prefix).

        Returns:
            65-byte signature with v = 27 or 28
        """
        if len(digest) != 32:
            raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")
        signed = self.account.unsafe_sign_hash(digest)
        logger.debug(f"Signed digest 0x{digest.hex()} as {self.address}")
        return bytes(signed.signature)
