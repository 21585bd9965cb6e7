from .base_signer import BaseSigner
from .keypair_signer import KeypairSigner, generate_wallet, verify_detached

__all__ = [
    "BaseSigner",
    "KeypairSigner",
    "generate_wallet",
    "verify_detached",
]
