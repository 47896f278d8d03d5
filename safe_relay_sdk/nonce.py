"""
Nonce allocation for Safe transaction proposals.
"""
import logging
import threading
from typing import Iterable

from .transaction import SafeIdentity

logger = logging.getLogger(__name__)


def seed_nonce(onchain_nonce: int, pending_nonces: Iterable[int]) -> int:
    """
    First nonce that is free for a new proposal.

    Pending proposals already occupy nonces the chain has not confirmed yet,
    so the result skips past the highest of them.

    Args:
        onchain_nonce: Safe nonce reported by the relay
        pending_nonces: Nonces of proposals still waiting for execution

    Returns:
        max(onchain_nonce, max(pending_nonces) + 1), or onchain_nonce when
        nothing is pending
    """
    pending = list(pending_nonces)
    if not pending:
        return onchain_nonce
    return max(onchain_nonce, max(pending) + 1)


class NonceAllocator:
    """
    Hands out unique, increasing nonces for one Safe.

    ``allocate`` is a fetch-and-add under a lock, so concurrent builders
    never observe the same value. A nonce is consumed as soon as it is
    allocated, even if its proposal is never submitted.
    """

    def __init__(self, safe: SafeIdentity, start: int):
        if isinstance(start, bool) or not isinstance(start, int) or start < 0:
            raise ValueError(f"Nonce seed must be a non-negative integer, got {start!r}")
        self.safe = safe
        self._next = start
        self._lock = threading.Lock()

    def allocate(self) -> int:
        """Return the next nonce and advance the counter."""
        with self._lock:
            nonce = self._next
            self._next += 1
        return nonce

    def peek(self) -> int:
        """Next nonce ``allocate`` would return, without consuming it."""
        with self._lock:
            return self._next

    def advance_to(self, nonce: int) -> int:
        """
        Move the counter forward to at least ``nonce``.

        The counter never goes backwards; a lower value is ignored.

        Returns:
            The next nonce after the update
        """
        with self._lock:
            if nonce > self._next:
                logger.debug(f"Advancing nonce for {self.safe.address} from {self._next} to {nonce}")
                self._next = nonce
            return self._next
