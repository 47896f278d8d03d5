"""
Shared helpers for the Safe relay SDK tests.
"""
from .client_creator import (
    CHAIN_ID,
    OWNER_ADDRESSES,
    OWNER_KEYS,
    SAFE_ADDRESS,
    SERVICE_URL,
    ZERO_ADDRESS,
    MockRelay,
    create_test_client,
    pending_tx_json,
    safe_info_json,
)

__all__ = [
    "CHAIN_ID",
    "OWNER_ADDRESSES",
    "OWNER_KEYS",
    "SAFE_ADDRESS",
    "SERVICE_URL",
    "ZERO_ADDRESS",
    "MockRelay",
    "create_test_client",
    "pending_tx_json",
    "safe_info_json",
]
