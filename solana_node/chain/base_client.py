from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction
from spl.token.instructions import get_associated_token_address


class ChainClient(ABC):
    """
    Abstract base class for the Solana RPC capability used by the node.
    One instance is opened per run and shared by every item.
    """

    @abstractmethod
    def get_latest_blockhash(self) -> Hash:
        pass

    @abstractmethod
    def get_balance(self, address: Pubkey) -> int:
        """Native balance in lamports."""
        pass

    @abstractmethod
    def get_token_account_balance(self, token_account: Pubkey) -> Optional[float]:
        """UI-scaled balance (uiAmount) of a token account."""
        pass

    @abstractmethod
    def get_account_info(self, address: Pubkey) -> Optional[Dict[str, Any]]:
        """Raw account info, or None when the account does not exist."""
        pass

    @abstractmethod
    def get_parsed_account_info(self, address: Pubkey) -> Optional[Dict[str, Any]]:
        """jsonParsed account info, or None when the account does not exist."""
        pass

    @abstractmethod
    def get_transaction(self, signature: str, max_supported_transaction_version: int = 0) -> Optional[Dict[str, Any]]:
        """Transaction details, or None when the signature is unknown."""
        pass

    @abstractmethod
    def get_minimum_balance_for_rent_exemption(self, size: int) -> int:
        pass

    @abstractmethod
    def send_raw_transaction(self, raw_transaction: bytes) -> str:
        """
        Submit a signed, serialized transaction.
        Returns the transaction signature without waiting for confirmation.
        """
        pass

    @abstractmethod
    def send_transaction(self, transaction: VersionedTransaction) -> str:
        """
        Submit a signed versioned transaction.
        Returns the transaction signature without waiting for confirmation.
        """
        pass

    def derive_associated_token_address(self, mint: Pubkey, owner: Pubkey) -> Pubkey:
        """Associated token account of owner for mint (pure, no RPC)."""
        return get_associated_token_address(owner, mint)

    def close(self) -> None:
        pass
