"""
Pytest fixtures for the Safe relay SDK tests.
"""
import pytest

from safe_relay_sdk.config import NetworkConfig
from safe_relay_sdk.signer.local import LocalSigner
from safe_relay_sdk.transaction import (
    Operation, SafeIdentity, TransactionBuilder, TransactionIntent
)
from safe_relay_sdk.wire import Address

from tests.test_helpers import CHAIN_ID, OWNER_KEYS, SAFE_ADDRESS, MockRelay

DESTINATION = "0x1111111111111111111111111111111111111111"


@pytest.fixture(autouse=True)
def _reset_network_cache():
    """Every test starts from the packaged network table"""
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def owners():
    """Three deterministic owner signers (keys 1, 2 and 3)"""
    return [LocalSigner(key) for key in OWNER_KEYS]


@pytest.fixture
def safe():
    return SafeIdentity(chain_id=CHAIN_ID, address=Address.parse(SAFE_ADDRESS))


@pytest.fixture
def intent():
    """A plain call to DESTINATION with no value and no data"""
    return TransactionIntent(
        to=Address.parse(DESTINATION),
        value=0,
        data=b"",
        operation=Operation.CALL,
    )


@pytest.fixture
def pending(intent):
    """The intent built at nonce 7 with owner 1 as sender"""
    return (
        TransactionBuilder(intent, CHAIN_ID, SAFE_ADDRESS)
        .nonce(7)
        .sender("0x7E5F4552091A69125d5DfCb7b8C2659029395Bdf")
        .build()
    )


@pytest.fixture
def relay():
    """Empty relay at on-chain nonce 0"""
    return MockRelay()
