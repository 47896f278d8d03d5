#!/usr/bin/env python3
"""
Example of proposing a Safe transaction through the Safe Transaction Service.
"""
import asyncio
import logging
import os

from safe_relay_sdk import (
    LocalSigner,
    NetworkConfig,
    Operation,
    ProposalRequest,
    RejectedByServiceError,
    SafeRelayClient,
    TransactionIntent,
    close_http_clients,
)
from safe_relay_sdk.wire import Address

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


async def main():
    """
    Propose a zero-value call from a Safe, signed by one or more owners.

    This example shows how to:
    1. Connect a relay client to a Safe on a configured network
    2. Build a transaction with a collision-free nonce
    3. Sign it with every owner key available
    4. Propose it, rebuilding once if the nonce was taken meanwhile
    """
    SAFE_ADDRESS = os.environ.get("SAFE_ADDRESS")
    OWNER_KEYS = [k for k in os.environ.get("OWNER_KEYS", "").split(",") if k]
    NETWORK = os.environ.get("NETWORK", "sepolia")
    DESTINATION = os.environ.get("DESTINATION", "0x1111111111111111111111111111111111111111")

    if not SAFE_ADDRESS or not OWNER_KEYS:
        print("ERROR: SAFE_ADDRESS and OWNER_KEYS (comma separated) environment variables are required")
        return

    print("Available networks:")
    for network_name in NetworkConfig.load_networks():
        print(f"  - {network_name}")
    print()

    signers = [LocalSigner(key) for key in OWNER_KEYS]
    intent = TransactionIntent(to=Address.parse(DESTINATION), value=0, operation=Operation.CALL)

    try:
        client = await SafeRelayClient.connect(SAFE_ADDRESS, network=NETWORK)
        print(f"Safe {client.safe_address}: threshold {client.safe_info.threshold}, "
              f"next nonce {client.nonces.peek()}")

        for _ in range(2):
            pending = client.safe_tx_builder(intent).sender(signers[0].address).build()
            records = [pending.sign(signer) for signer in signers]
            request = ProposalRequest.from_pending(pending, records, origin="propose_example")
            try:
                await client.propose(request)
            except RejectedByServiceError as e:
                print(f"Proposal rejected ({e.status_code}): {e.response_body}")
                await client.refresh_nonce()
                continue
            print(f"Proposed {request.contract_transaction_hash} at nonce {pending.nonce}")
            break
    finally:
        await close_http_clients()


if __name__ == "__main__":
    asyncio.run(main())
