"""
Network configuration for the Safe relay SDK.
"""
import importlib.resources
import json
import logging
import os
import urllib.parse
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


class NetworkConfig:
    """Chain ids and Safe Transaction Service URLs per network"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the packaged network table.

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("safe_relay_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
            logger.debug(f"Loaded {len(cls._networks_cache)} networks")
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get configuration for a network by name.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def find_by_chain_id(cls, chain_id: int) -> str:
        """
        Name of the network with the given chain id.

        Raises:
            ValueError: If no configured network uses that chain id
        """
        for name, network in cls.load_networks().items():
            if network["chainId"] == chain_id:
                return name
        raise ValueError(f"No network configured for chain id {chain_id}")

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_service_url(cls, network: str, override: Optional[str] = None) -> str:
        """
        Safe Transaction Service base URL for a network.

        Resolution order: ``override``, the ``<NETWORK>_SAFE_SERVICE_URL``
        environment variable, then the packaged table.
        """
        if override:
            return override
        env_var = f"{network.upper().replace('-', '_')}_SAFE_SERVICE_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(network)["safeService"]


def get_timeout(timeout: Optional[float] = None) -> float:
    """Request timeout in seconds: explicit value, SAFE_RELAY_TIMEOUT, or 30"""
    if timeout is not None:
        return float(timeout)
    return float(os.environ.get("SAFE_RELAY_TIMEOUT", DEFAULT_TIMEOUT))


def validate_service_url(url: str) -> str:
    """
    Check that a relay URL is usable and secure.

    Plain http is only allowed for local hosts, or when SAFE_RELAY_INSECURE=1.

    Returns:
        The URL normalized to end with a slash

    Raises:
        ValueError: If the URL is malformed or insecure
    """
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"Invalid service URL '{url}'")
    is_local = parsed.hostname in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get("SAFE_RELAY_INSECURE") != "1":
            raise ValueError(
                f"Service URL must use https:// for security (got: {parsed.scheme}://). "
                "Set SAFE_RELAY_INSECURE=1 to allow HTTP for development."
            )
    return url if url.endswith("/") else url + "/"
