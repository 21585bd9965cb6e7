"""
Chain client backed by solana-py's synchronous RPC client.
"""
import json
import logging
from typing import Any, Dict, Optional

from solana.rpc.api import Client as SolanaClient
from solana.rpc.commitment import Confirmed
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import VersionedTransaction

from ..config import DEFAULT_RPC_URL
from ..errors import ChainClientError
from .base_client import ChainClient

logger = logging.getLogger(__name__)


def _result(response: Any) -> Any:
    """JSON-RPC `result` of a solders response object, as plain Python data."""
    return json.loads(response.to_json()).get("result")


class SolanaChainClient(ChainClient):
    """
    Thin adapter over solana.rpc.api.Client.
    SDK exceptions are wrapped into ChainClientError with the RPC method name.
    """

    def __init__(self, rpc_url: str = DEFAULT_RPC_URL, commitment=Confirmed, timeout: float = 30):
        self.rpc_url = rpc_url
        self.commitment = commitment
        self.client = SolanaClient(rpc_url, commitment=commitment, timeout=timeout)
        logger.info(f"Solana chain client opened for {rpc_url}")

    def _call(self, method: str, func, *args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ChainClientError:
            raise
        except Exception as e:
            logger.error(f"RPC call {method} failed: {e}")
            raise ChainClientError(f"{method} failed: {e}", method=method, cause=e) from e

    def get_latest_blockhash(self) -> Hash:
        response = self._call("getLatestBlockhash", self.client.get_latest_blockhash)
        return response.value.blockhash

    def get_balance(self, address: Pubkey) -> int:
        response = self._call("getBalance", self.client.get_balance, address)
        return response.value

    def get_token_account_balance(self, token_account: Pubkey) -> Optional[float]:
        response = self._call("getTokenAccountBalance", self.client.get_token_account_balance, token_account)
        return response.value.ui_amount

    def get_account_info(self, address: Pubkey) -> Optional[Dict[str, Any]]:
        response = self._call("getAccountInfo", self.client.get_account_info, address)
        return _result(response)["value"]

    def get_parsed_account_info(self, address: Pubkey) -> Optional[Dict[str, Any]]:
        response = self._call("getAccountInfo", self.client.get_account_info_json_parsed, address)
        return _result(response)["value"]

    def get_transaction(self, signature: str, max_supported_transaction_version: int = 0) -> Optional[Dict[str, Any]]:
        try:
            sig = Signature.from_string(signature)
        except ValueError as e:
            raise ChainClientError(f"Invalid transaction signature: {signature}", method="getTransaction", cause=e) from e
        response = self._call(
            "getTransaction",
            self.client.get_transaction,
            sig,
            max_supported_transaction_version=max_supported_transaction_version,
        )
        return _result(response)

    def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        response = self._call(
            "getMinimumBalanceForRentExemption",
            self.client.get_minimum_balance_for_rent_exemption,
            size,
        )
        return response.value

    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        response = self._call("sendTransaction", self.client.send_raw_transaction, raw_transaction)
        tx_signature = str(response.value)
        logger.info(f"Submitted transaction {tx_signature}")
        return tx_signature

    def send_transaction(self, transaction: VersionedTransaction) -> str:
        response = self._call("sendTransaction", self.client.send_transaction, transaction)
        tx_signature = str(response.value)
        logger.info(f"Submitted versioned transaction {tx_signature}")
        return tx_signature

    def close(self) -> None:
        # The sync client holds a requests/httpx session through its provider
        provider = getattr(self.client, "_provider", None)
        session = getattr(provider, "session", None)
        if session is not None:
            session.close()
