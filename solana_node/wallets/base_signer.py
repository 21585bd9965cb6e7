from abc import ABC, abstractmethod

from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature


class BaseSigner(ABC):
    """
    Abstract base class for the key material used to sign on behalf of the node.
    """

    @abstractmethod
    def pubkey(self) -> Pubkey:
        """The signer's public key."""
        pass

    @abstractmethod
    def sign_message(self, message: bytes) -> Signature:
        """Produce a detached ed25519 signature over the message."""
        pass

    @abstractmethod
    def transaction_signer(self) -> Keypair:
        """
        The object handed to solders when signing transactions.
        """
        pass

    def get_address(self) -> str:
        """Get the signer's public address (base58)."""
        return str(self.pubkey())
