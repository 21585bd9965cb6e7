"""
Keypair-backed signer plus the wallet helpers used by createWallet and
verifySignature.
"""
import json
import logging
from typing import Tuple

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from ..errors import NodeConfigurationError
from .base_signer import BaseSigner

logger = logging.getLogger(__name__)


class KeypairSigner(BaseSigner):
    """
    Signs with an in-memory solders Keypair.
    The secret is held only for the lifetime of the run and never logged.
    """

    def __init__(self, keypair: Keypair):
        self._keypair = keypair

    @classmethod
    def from_secret(cls, private_key: str) -> "KeypairSigner":
        """
        Decode a private key into a signer.

        Args:
            private_key: base58 encoded 64-byte secret, or a JSON byte array
                as written by solana-keygen.
        """
        if not private_key:
            raise NodeConfigurationError("No private key configured")
        try:
            # Expect base58 or JSON array format
            if private_key.strip().startswith("["):
                key_bytes = bytes(json.loads(private_key))
            else:
                key_bytes = base58.b58decode(private_key.strip())
            keypair = Keypair.from_bytes(key_bytes)
        except Exception as e:
            # The secret itself must not end up in the message
            raise NodeConfigurationError(f"Failed to decode Solana private key: {type(e).__name__}") from e
        logger.info(f"Solana signer initialized. Address: {keypair.pubkey()}")
        return cls(keypair)

    def pubkey(self) -> Pubkey:
        return self._keypair.pubkey()

    def sign_message(self, message: bytes) -> Signature:
        return self._keypair.sign_message(message)

    def transaction_signer(self) -> Keypair:
        return self._keypair


def generate_wallet() -> Tuple[str, str]:
    """
    Generate a fresh keypair.

    Returns:
        (public key, base58 encoded 64-byte secret key)
    """
    keypair = Keypair()
    private_key = base58.b58encode(bytes(keypair)).decode("ascii")
    return str(keypair.pubkey()), private_key


def verify_detached(message: bytes, signature: str, public_key: str) -> bool:
    """
    Verify a base58 detached signature against a base58 public key.
    Malformed signature or key encodings raise ValueError.
    """
    signature_bytes = base58.b58decode(signature)
    public_key_bytes = base58.b58decode(public_key)
    sig = Signature.from_bytes(signature_bytes)
    pubkey = Pubkey.from_bytes(public_key_bytes)
    return sig.verify(pubkey, message)
