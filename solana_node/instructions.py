"""
Instruction builders for the node's write operations.

System and SPL token instructions come from solders / spl.token. The stake
program has no Python builder, so its instructions are bincode-encoded here:
a little-endian u32 variant tag followed by the variant's fields.
"""
import math
import struct
from typing import List

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import CreateAccountParams, TransferParams, create_account, transfer
from solders.sysvar import CLOCK, RENT, STAKE_HISTORY
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import TransferParams as TokenTransferParams
from spl.token.instructions import create_associated_token_account
from spl.token.instructions import transfer as token_transfer

STAKE_PROGRAM_ID = Pubkey.from_string("Stake11111111111111111111111111111111111111")
STAKE_CONFIG_ID = Pubkey.from_string("StakeConfig11111111111111111111111111111111")

# StakeInstruction variant tags
STAKE_INITIALIZE = 0
STAKE_DELEGATE = 2
STAKE_WITHDRAW = 4


def donation_lamports(lamports: int, rate: float) -> int:
    return math.floor(lamports * rate)


def build_sol_transfer_instructions(
    sender: Pubkey,
    recipient: Pubkey,
    lamports: int,
    donation_address: Pubkey = None,
    donation_rate: float = 0.0,
) -> List[Instruction]:
    """
    Build the transfers for sendSol.

    With a donation address, floor(lamports * rate) goes to the donation
    address and the remainder to the recipient, so the sender is debited
    exactly `lamports` (plus fees).
    """
    donation = 0
    if donation_address is not None:
        donation = donation_lamports(lamports, donation_rate)

    instructions = [
        transfer(TransferParams(from_pubkey=sender, to_pubkey=recipient, lamports=lamports - donation))
    ]
    if donation_address is not None:
        instructions.append(
            transfer(TransferParams(from_pubkey=sender, to_pubkey=donation_address, lamports=donation))
        )
    return instructions


def scale_token_amount(amount: float, decimals: int) -> int:
    """Whole-token amount to base units, floored."""
    return math.floor(amount * 10 ** decimals)


def build_token_transfer_instructions(
    sender: Pubkey,
    sender_ata: Pubkey,
    recipient: Pubkey,
    recipient_ata: Pubkey,
    mint: Pubkey,
    amount: int,
    create_recipient_ata: bool,
) -> List[Instruction]:
    instructions = []
    if create_recipient_ata:
        instructions.append(create_associated_token_account(sender, recipient, mint))
    instructions.append(
        token_transfer(
            TokenTransferParams(
                program_id=TOKEN_PROGRAM_ID,
                source=sender_ata,
                dest=recipient_ata,
                owner=sender,
                amount=amount,
            )
        )
    )
    return instructions


def _stake_initialize(stake_account: Pubkey, staker: Pubkey, withdrawer: Pubkey) -> Instruction:
    # Authorized { staker, withdrawer } followed by an empty Lockup
    # { unix_timestamp: i64, epoch: u64, custodian: Pubkey }
    data = struct.pack("<I", STAKE_INITIALIZE) + bytes(staker) + bytes(withdrawer)
    data += struct.pack("<qQ", 0, 0) + bytes(Pubkey.default())
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=RENT, is_signer=False, is_writable=False),
        ],
        data=data,
    )


def _stake_delegate(stake_account: Pubkey, authority: Pubkey, vote_account: Pubkey) -> Instruction:
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=vote_account, is_signer=False, is_writable=False),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_HISTORY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_CONFIG_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
        ],
        data=struct.pack("<I", STAKE_DELEGATE),
    )


def build_stake_instructions(
    sender: Pubkey,
    stake_account: Pubkey,
    vote_account: Pubkey,
    lamports: int,
    space: int,
) -> List[Instruction]:
    """
    Create a stake account funded with `lamports` (stake plus rent minimum),
    initialize it with sender as staker and withdrawer, and delegate it.
    """
    create_account_ix = create_account(
        CreateAccountParams(
            from_pubkey=sender,
            to_pubkey=stake_account,
            lamports=lamports,
            space=space,
            owner=STAKE_PROGRAM_ID,
        )
    )
    return [
        create_account_ix,
        _stake_initialize(stake_account, staker=sender, withdrawer=sender),
        _stake_delegate(stake_account, authority=sender, vote_account=vote_account),
    ]


def build_withdraw_stake_instruction(
    stake_account: Pubkey,
    authority: Pubkey,
    destination: Pubkey,
    lamports: int,
) -> Instruction:
    return Instruction(
        program_id=STAKE_PROGRAM_ID,
        accounts=[
            AccountMeta(pubkey=stake_account, is_signer=False, is_writable=True),
            AccountMeta(pubkey=destination, is_signer=False, is_writable=True),
            AccountMeta(pubkey=CLOCK, is_signer=False, is_writable=False),
            AccountMeta(pubkey=STAKE_HISTORY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=authority, is_signer=True, is_writable=False),
        ],
        data=struct.pack("<IQ", STAKE_WITHDRAW, lamports),
    )
