"""
The solanaApi credential: a base58 private key and an RPC endpoint.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import requests

from .config import DEFAULT_RPC_URL
from .errors import NodeConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SolanaCredentials:
    private_key: str = field(repr=False)
    rpc_url: str = DEFAULT_RPC_URL

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "SolanaCredentials":
        """
        Build credentials from the host's credential record
        ({"privateKey": ..., "rpcUrl": ...}).
        """
        if not data:
            raise NodeConfigurationError("No credentials returned!")
        private_key = data.get("privateKey") or ""
        if not private_key:
            raise NodeConfigurationError("Credentials are missing the private key")
        return cls(private_key=private_key, rpc_url=data.get("rpcUrl") or DEFAULT_RPC_URL)


def check_rpc_endpoint(rpc_url: str, timeout: float = 5) -> bool:
    """
    Test that the RPC endpoint answers a getHealth request.
    Only the endpoint is exercised; the private key is not used.
    """
    payload = {"jsonrpc": "2.0", "id": 1, "method": "getHealth"}
    try:
        response = requests.post(rpc_url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        logger.warning(f"RPC endpoint {rpc_url} unreachable: {e}")
        return False
    if response.status_code != 200:
        logger.warning(f"RPC endpoint {rpc_url} returned HTTP {response.status_code}")
        return False
    try:
        data = response.json()
    except ValueError:
        logger.warning(f"RPC endpoint {rpc_url} returned a non-JSON body")
        return False
    if "error" in data:
        logger.warning(f"RPC endpoint {rpc_url} reported unhealthy: {data['error'].get('message')}")
        return False
    return data.get("result") == "ok"
