"""
SafeRelayClient - asynchronous client for the Safe Transaction Service.
"""
import asyncio
import json
import logging
import threading
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar, Union

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from .config import NetworkConfig, get_timeout, validate_service_url
from .exceptions import (
    EncodingError, RejectedByServiceError, SafeRelayError, TransportError, ValidationError
)
from .models import Page, ProposalRequest, SafeInfo, SafeTransaction
from .nonce import NonceAllocator, seed_nonce
from .transaction import SafeIdentity, TransactionBuilder, TransactionIntent
from .wire import Address

M = TypeVar("M", bound=BaseModel)

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {"cache-control": "no-cache"}

# One connection pool per (service URL, timeout, event loop), shared by every
# relay client. Pooled connections belong to the loop that opened them.
CacheKey = Tuple[str, float, Optional[asyncio.AbstractEventLoop]]
_http_client_cache: Dict[CacheKey, httpx.AsyncClient] = {}
_cache_lock = threading.RLock()


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def _drop_closed_loops() -> None:
    stale = [key for key in _http_client_cache if key[2] is not None and key[2].is_closed()]
    for key in stale:
        logger.debug(f"Dropping HTTP client for {key[0]} bound to a closed event loop")
        del _http_client_cache[key]


def get_http_client(service_url: str, timeout: Optional[float] = None) -> httpx.AsyncClient:
    """
    Get or create the shared HTTP client for a service URL.

    Clients are cached per service URL, timeout and running event loop, so a
    client is never reused from a loop other than the one it was created on.
    Entries whose loop has been closed are discarded.

    Args:
        service_url: Base URL of the Safe Transaction Service
        timeout: Request timeout in seconds (see config.get_timeout)

    Returns:
        httpx.AsyncClient instance
    """
    key = (service_url, get_timeout(timeout), _running_loop())
    with _cache_lock:
        _drop_closed_loops()
        if key not in _http_client_cache:
            _http_client_cache[key] = httpx.AsyncClient(
                headers=DEFAULT_HEADERS,
                timeout=key[1],
            )
        return _http_client_cache[key]


async def close_http_clients() -> None:
    """
    Close the shared HTTP clients of the running event loop.

    Clients created outside any loop are closed too. Clients of other,
    still running loops are left alone.
    """
    loop = asyncio.get_running_loop()
    with _cache_lock:
        _drop_closed_loops()
        keys = [key for key in _http_client_cache if key[2] in (loop, None)]
        clients = [_http_client_cache.pop(key) for key in keys]
    for http_client in clients:
        await http_client.aclose()


async def request_json(
    http_client: httpx.AsyncClient,
    method: str,
    url: str,
    response_model: Optional[Type[M]] = None,
    body: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
    log: Optional[logging.Logger] = None,
) -> Optional[M]:
    """
    Send one JSON request and classify the outcome.

    Args:
        http_client: Client used to send the request
        method: HTTP method
        url: Absolute URL
        response_model: Model to validate the response body into; when None
            the body is ignored
        body: JSON request body
        params: Query parameters
        log: Logger for diagnostics (defaults to module logger)

    Returns:
        Validated response model, or None when no model was requested

    Raises:
        TransportError: If the request could not be completed
        RejectedByServiceError: On a non-2xx status
        EncodingError: If the response body cannot be decoded
    """
    log = log or logger
    log.debug(f"Dispatching {method} {url} params={params}")
    if body is not None:
        log.debug(f"Request body: {json.dumps(body)}")

    try:
        response = await http_client.request(method, url, json=body, params=params)
    except httpx.HTTPError as e:
        log.error(f"{method} {url} failed: {e}")
        raise TransportError(f"{method} {url} failed: {e}") from e

    if not response.is_success:
        log.warning(
            f"Unexpected response from server: method={method} url={response.request.url} "
            f"status={response.status_code} body={json.dumps(body) if body is not None else None} "
            f"response={response.text}"
        )
        raise RejectedByServiceError(
            f"{method} {url} rejected with status {response.status_code}: {response.text}",
            status_code=response.status_code,
            response_body=response.text,
            request_body=body,
            method=method,
            url=str(response.request.url),
        )

    if response_model is None:
        return None

    try:
        payload = response.json()
    except ValueError as e:
        raise EncodingError(f"Invalid JSON from {method} {url}: {e}") from e

    try:
        return response_model.model_validate(payload)
    except (ModelValidationError, EncodingError) as e:
        raise EncodingError(f"Malformed response from {method} {url}: {e}") from e


class SafeRelayClient:
    """
    Client for proposing transactions to one Safe through the relay.

    This client handles:
    1. Fetching Safe metadata and the queue of pending transactions
    2. Allocating nonces that do not collide with queued proposals
    3. Submitting signed proposals

    Create it with ``await SafeRelayClient.connect(...)``, which runs the
    initialization requests before handing the client out::

        client = await SafeRelayClient.connect(safe_address, network="sepolia")
        pending = client.safe_tx_builder(intent).sender(owner.address).build()
        records = [pending.sign(owner)]
        await client.propose(ProposalRequest.from_pending(pending, records))

    Nothing is retried. When a proposal is rejected, allocate a fresh nonce,
    rebuild and sign again.
    """

    def __init__(
        self,
        safe_address: Union[str, Address],
        chain_id: Optional[int] = None,
        network: Optional[str] = None,
        service_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Configure the client without any network I/O.

        Args:
            safe_address: Address of the Safe
            chain_id: Chain id (defaults to the network's, or 1)
            network: Network name from NetworkConfig (e.g. "sepolia")
            service_url: Relay base URL, overrides the network table
            http_client: HTTP client to use instead of the shared one; it stays
                owned by the caller
            timeout: Request timeout in seconds for the shared client
            logger: Optional logger instance for debug/warning logging

        Raises:
            ValueError: If the network is unknown or the URL is insecure
            EncodingError: If the Safe address is malformed
        """
        if network is not None:
            network_chain_id = NetworkConfig.get_chain_id(network)
            if chain_id is not None and chain_id != network_chain_id:
                raise ValueError(
                    f"chain_id {chain_id} does not match network '{network}' ({network_chain_id})"
                )
            chain_id = network_chain_id
        elif chain_id is None:
            chain_id = 1

        if service_url is None:
            network = network or NetworkConfig.find_by_chain_id(chain_id)
            service_url = NetworkConfig.get_service_url(network)

        self.safe = SafeIdentity(chain_id=chain_id, address=Address.parse(safe_address))
        self.service_url = validate_service_url(service_url)
        self._http_client = http_client
        self._timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

        self.safe_info: Optional[SafeInfo] = None
        self._nonces: Optional[NonceAllocator] = None

    @classmethod
    async def connect(cls, safe_address: Union[str, Address], **kwargs) -> "SafeRelayClient":
        """
        Create a client and run its initialization requests.

        Accepts the same keyword arguments as the constructor.

        Raises:
            TransportError, RejectedByServiceError, EncodingError: If either
                initialization request fails; no client is returned then
        """
        client = cls(safe_address, **kwargs)
        await client.initialize()
        return client

    async def initialize(self) -> None:
        """
        Fetch Safe metadata, then the pending queue, and seed the nonce allocator.

        Both requests must succeed; on failure the client stays uninitialized.
        """
        info = await self.get_safe_info()
        pending = await self._fetch_pending(info.nonce)
        start = seed_nonce(info.nonce, [tx.nonce for tx in pending])
        self.logger.debug(
            f"Setting nonce for {self.safe.address} to {start} "
            f"(on-chain {info.nonce}, {len(pending)} pending)"
        )
        self._nonces = NonceAllocator(self.safe, start)

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The caller's HTTP client, or the shared one for the running loop"""
        if self._http_client is not None:
            return self._http_client
        return get_http_client(self.service_url, self._timeout)

    @property
    def chain_id(self) -> int:
        return self.safe.chain_id

    @property
    def safe_address(self) -> Address:
        return self.safe.address

    @property
    def is_ready(self) -> bool:
        return self._nonces is not None

    @property
    def nonces(self) -> NonceAllocator:
        """The nonce allocator, available once initialized"""
        if self._nonces is None:
            raise SafeRelayError("Relay client not initialized. Call connect() or initialize() first.")
        return self._nonces

    def safe_tx_builder(self, intent: TransactionIntent) -> TransactionBuilder:
        """
        Allocate a nonce and return a builder seeded with it.

        The nonce is consumed even if the builder is never used.
        """
        nonce = self.nonces.allocate()
        return TransactionBuilder(intent, self.chain_id, self.safe_address).nonce(nonce)

    def _url(self, path: str) -> str:
        return urllib.parse.urljoin(self.service_url, path)

    async def get_safe_info(self) -> SafeInfo:
        """
        Fetch Safe metadata (nonce, owners, threshold).

        Returns:
            SafeInfo model
        """
        info = await request_json(
            self.http_client,
            "GET",
            self._url(f"v1/safes/{self.safe_address}/"),
            response_model=SafeInfo,
            log=self.logger,
        )
        if info.address != self.safe_address:
            raise EncodingError(f"Relay returned info for {info.address}, expected {self.safe_address}")
        self.safe_info = info
        return info

    async def _fetch_pending(self, min_nonce: int) -> List[SafeTransaction]:
        url = self._url(f"v1/safes/{self.safe_address}/multisig-transactions/")
        params: Optional[Dict[str, Any]] = {"nonce__gte": min_nonce}
        results: List[SafeTransaction] = []

        while url:
            page = await request_json(
                self.http_client,
                "GET",
                url,
                response_model=Page[SafeTransaction],
                params=params,
                log=self.logger,
            )
            results.extend(page.results)
            # the "next" link already carries the query string
            url, params = page.next, None

        return [tx for tx in results if tx.nonce >= min_nonce]

    async def get_pending(self) -> List[SafeTransaction]:
        """
        Fetch transactions queued at or above the current on-chain nonce.

        Returns:
            Pending transactions across all result pages
        """
        info = await self.get_safe_info()
        self.logger.debug(f"Getting pending transactions for safe {self.safe_address}")
        return await self._fetch_pending(info.nonce)

    async def next_nonce(self) -> int:
        """First nonce the relay considers free, from fresh metadata and queue."""
        info = await self.get_safe_info()
        pending = await self._fetch_pending(info.nonce)
        return seed_nonce(info.nonce, [tx.nonce for tx in pending])

    async def refresh_nonce(self) -> int:
        """
        Reconcile the allocator with the relay.

        The allocator only moves forward, so nonces already handed out are
        never reissued.

        Returns:
            The next nonce the allocator will hand out
        """
        allocator = self.nonces
        return allocator.advance_to(await self.next_nonce())

    async def find_pending(self, data: bytes) -> Optional[SafeTransaction]:
        """
        First pending transaction whose call data equals ``data``.

        Useful to detect that an equivalent proposal is already queued.
        """
        for tx in await self.get_pending():
            if (tx.data or b"") == bytes(data):
                return tx
        return None

    async def propose(self, request: ProposalRequest) -> None:
        """
        Submit a signed proposal.

        Args:
            request: Proposal for this client's Safe

        Raises:
            ValidationError: If the proposal targets another Safe
            RejectedByServiceError: If the relay rejects it (e.g. nonce conflict)
            TransportError: If the request could not be completed
        """
        if request.safe != self.safe_address:
            raise ValidationError(f"Proposal is for Safe {request.safe}, client is for {self.safe_address}")

        self.logger.info(
            f"Proposing transaction {request.contract_transaction_hash} "
            f"with nonce {request.nonce} to {self.safe_address}"
        )
        await request_json(
            self.http_client,
            "POST",
            self._url(f"v1/safes/{self.safe_address}/multisig-transactions/"),
            body=request.to_json(),
            log=self.logger,
        )
