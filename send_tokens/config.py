"""
Named network configuration.
"""
import json
import os
import importlib.resources
from typing import Any, Dict, Optional

from .exceptions import InvalidOptions

DEFAULT_PROVIDER_URI = "http://localhost:8545"
PROVIDER_URI_ENV = "SEND_TOKENS_PROVIDER_URI"
INFURA_KEY_ENV = "INFURA_KEY"
INFURA_URL_TEMPLATE = "https://{subdomain}.infura.io/v3/{key}"


class NetworkConfig:
    """Lookup of the networks bundled in ``networks.json``."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        if cls._networks_cache is None:
            text = importlib.resources.files("send_tokens").joinpath("networks.json").read_text(
                encoding="utf-8"
            )
            cls._networks_cache = json.loads(text)
        return cls._networks_cache

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get a network by name.

        Raises:
            InvalidOptions: If the network is unknown
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise InvalidOptions(f"Unknown network '{name}'. Available networks: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str, infura_key: Optional[str] = None) -> str:
        """RPC URL for a network, preferring Infura when a key is available."""
        network = cls.get_network(name)
        infura_key = infura_key or os.environ.get(INFURA_KEY_ENV)
        if infura_key and network.get("infura"):
            return INFURA_URL_TEMPLATE.format(subdomain=network["infura"], key=infura_key)
        return network["rpc"]


def resolve_provider_uri(
    provider_uri: Optional[str] = None,
    network: Optional[str] = None,
    infura_key: Optional[str] = None,
) -> str:
    """
    Pick the provider URI: explicit URI, then named network, then the
    ``SEND_TOKENS_PROVIDER_URI`` environment variable, then localhost.
    """
    if provider_uri:
        return provider_uri
    if network:
        return NetworkConfig.get_rpc_url(network, infura_key)
    return os.environ.get(PROVIDER_URI_ENV) or DEFAULT_PROVIDER_URI
