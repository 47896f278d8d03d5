"""
Full proposal flow: connect, build, sign with two owners, propose.
"""
import httpx
import pytest

from safe_relay_sdk import LocalSigner, ProposalRequest, RejectedByServiceError, TransactionIntent, recover_signer
from safe_relay_sdk.wire import Address, Hash32, parse_hex_data

from tests.test_helpers import OWNER_KEYS, MockRelay, create_test_client, pending_tx_json


async def test_two_owner_proposal():
    relay = MockRelay(nonce=5, pending=[pending_tx_json(n) for n in (5, 6)])
    client = await create_test_client(relay)
    signers = [LocalSigner(OWNER_KEYS[0]), LocalSigner(OWNER_KEYS[1])]

    intent = TransactionIntent(to=Address.parse("0x1111111111111111111111111111111111111111"))
    pending = client.safe_tx_builder(intent).sender(signers[0].address).build()
    assert pending.nonce == 7

    records = [pending.sign(s) for s in signers]
    await client.propose(ProposalRequest.from_pending(pending, records))

    (body,) = relay.proposals
    assert body["nonce"] == "7"
    assert body["data"] == "0x"
    assert body["operation"] == 0
    assert Hash32.parse(body["contractTransactionHash"]) == pending.digest()
    assert body["contractTransactionHash"] == "0xb9b5fb28b61bf29fe164c70c6732ae2a841b89f3d7805be147a35931fcd2f735"

    blob = parse_hex_data(body["signature"])
    assert len(blob) == 130
    recovered = [recover_signer(pending.digest(), blob[i:i + 65]) for i in (0, 65)]
    assert recovered == sorted(Address.parse(s.address) for s in signers)


async def test_rejected_proposal_rebuilt_with_fresh_nonce():
    """After a nonce conflict the caller allocates again and re-signs"""
    relay = MockRelay(nonce=0)
    client = await create_test_client(relay)
    signer = LocalSigner(OWNER_KEYS[2])
    intent = TransactionIntent(to=Address.parse("0x1111111111111111111111111111111111111111"))

    relay.failures["propose"] = httpx.Response(422, json={"nonce": ["conflict"]})
    first = client.safe_tx_builder(intent).sender(signer.address).build()
    with pytest.raises(RejectedByServiceError):
        await client.propose(ProposalRequest.from_pending(first, [first.sign(signer)]))

    del relay.failures["propose"]
    second = client.safe_tx_builder(intent).sender(signer.address).build()
    await client.propose(ProposalRequest.from_pending(second, [second.sign(signer)]))

    assert second.nonce == first.nonce + 1
    assert relay.proposals[0]["contractTransactionHash"] == second.digest().hex()
