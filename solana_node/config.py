"""
Static configuration for the Solana node.
Values here are constants of the node itself; per-run values (private key,
RPC URL) come from the solanaApi credentials.
"""
from dataclasses import dataclass

LAMPORTS_PER_SOL = 1_000_000_000

DEFAULT_RPC_URL = "https://api.mainnet-beta.solana.com"

# Recipient of the optional 1% donation on sendSol
DONATION_ADDRESS = "9XSkMzfD6FapMwcCYzfyZSjQ1R3bjpUB4txLm2DPco8P"
DONATION_RATE = 0.01

# Size in bytes of a stake account (StakeStateV2)
STAKE_ACCOUNT_SPACE = 200

# Used when a mint's decimals cannot be read from its parsed account info
DEFAULT_TOKEN_DECIMALS = 9

CREDENTIALS_NAME = "solanaApi"


@dataclass(frozen=True)
class NodeSettings:
    donation_address: str = DONATION_ADDRESS
    donation_rate: float = DONATION_RATE
    stake_account_space: int = STAKE_ACCOUNT_SPACE
    default_token_decimals: int = DEFAULT_TOKEN_DECIMALS


def sol_to_lamports(amount: float) -> int:
    """Convert a whole-SOL amount to lamports, rounding to the nearest lamport."""
    return int(round(amount * LAMPORTS_PER_SOL))


def lamports_to_sol(lamports: int) -> float:
    return lamports / LAMPORTS_PER_SOL
