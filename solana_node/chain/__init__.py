from .base_client import ChainClient
from .solana_client import SolanaChainClient

__all__ = ["ChainClient", "SolanaChainClient"]
