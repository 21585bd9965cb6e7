"""
Operation Dispatcher: turns one OperationRequest into chain-client calls and
shapes the result fields.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

import base58
from solders.keypair import Keypair
from solders.message import Message, MessageV0
from solders.pubkey import Pubkey
from solders.transaction import Transaction, VersionedTransaction

from .chain.base_client import ChainClient
from .config import NodeSettings, lamports_to_sol, sol_to_lamports
from .errors import ChainClientError
from .instructions import (
    build_sol_transfer_instructions,
    build_stake_instructions,
    build_token_transfer_instructions,
    build_withdraw_stake_instruction,
    scale_token_amount,
)
from .operations import (
    CreateWallet,
    GetAccountInfo,
    GetBalance,
    GetMultipleTokenBalances,
    GetTokenBalance,
    GetTxDetails,
    OperationRequest,
    SendSol,
    SendToken,
    SignMessage,
    StakeSol,
    VerifySignature,
    WithdrawStake,
)
from .wallets.base_signer import BaseSigner
from .wallets.keypair_signer import generate_wallet, verify_detached

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunContext:
    """Per-run state shared read-only by every item."""
    signer: BaseSigner
    client: ChainClient
    settings: NodeSettings = field(default_factory=NodeSettings)


def _pubkey(value: str, what: str) -> Pubkey:
    try:
        return Pubkey.from_string(value)
    except ValueError as e:
        raise ValueError(f"Invalid {what}: {value!r}") from e


class OperationDispatcher:
    """
    Executes OperationRequests against the run's chain client and signer.
    `dispatch` returns the operation-specific result fields.
    """

    def __init__(self, context: RunContext):
        self.context = context
        self._handlers: Dict[type, Callable[[Any], Dict[str, Any]]] = {
            CreateWallet: self._create_wallet,
            GetAccountInfo: self._get_account_info,
            GetBalance: self._get_balance,
            GetMultipleTokenBalances: self._get_multiple_token_balances,
            GetTokenBalance: self._get_token_balance,
            GetTxDetails: self._get_tx_details,
            SendSol: self._send_sol,
            SendToken: self._send_token,
            SignMessage: self._sign_message,
            StakeSol: self._stake_sol,
            VerifySignature: self._verify_signature,
            WithdrawStake: self._withdraw_stake,
        }

    @property
    def client(self) -> ChainClient:
        return self.context.client

    @property
    def signer(self) -> BaseSigner:
        return self.context.signer

    def handled_types(self) -> List[type]:
        return list(self._handlers)

    def dispatch(self, request: OperationRequest) -> Dict[str, Any]:
        handler = self._handlers.get(type(request))
        if handler is None:
            raise TypeError(f"No handler for request type {type(request).__name__}")
        return handler(request)

    def _submit_legacy(self, instructions, signers: List[Keypair]) -> str:
        """Sign a legacy transaction paid by the sender and submit it raw."""
        blockhash = self.client.get_latest_blockhash()
        msg = Message.new_with_blockhash(instructions, self.signer.pubkey(), blockhash)
        tx = Transaction.new_unsigned(msg)
        tx.sign(signers, blockhash)
        return self.client.send_raw_transaction(bytes(tx))

    # Read operations

    def _create_wallet(self, request: CreateWallet) -> Dict[str, Any]:
        public_key, private_key = generate_wallet()
        logger.info(f"Generated new wallet {public_key}")
        return {"publicKey": public_key, "privateKey": private_key}

    def _get_balance(self, request: GetBalance) -> Dict[str, Any]:
        lamports = self.client.get_balance(_pubkey(request.address, "address"))
        return {"balance": lamports_to_sol(lamports)}

    def _get_token_balance(self, request: GetTokenBalance) -> Dict[str, Any]:
        mint = _pubkey(request.token_mint, "token mint")
        owner = _pubkey(request.address, "address")
        ata = self.client.derive_associated_token_address(mint, owner)
        return {"balance": self.client.get_token_account_balance(ata)}

    def _get_multiple_token_balances(self, request: GetMultipleTokenBalances) -> Dict[str, Any]:
        owner = _pubkey(request.address, "address")
        balances: Dict[str, Any] = {}
        for mint in request.token_mints:
            try:
                ata = self.client.derive_associated_token_address(_pubkey(mint, "token mint"), owner)
                balances[mint] = self.client.get_token_account_balance(ata)
            except Exception as e:
                logger.warning(f"Token balance lookup failed for mint {mint}: {e}")
                balances[mint] = None
        return {"balances": balances}

    def _get_account_info(self, request: GetAccountInfo) -> Dict[str, Any]:
        account_info = self.client.get_account_info(_pubkey(request.account_address, "account address"))
        if not account_info:
            raise ChainClientError(
                f"No account info found for address: {request.account_address}", method="getAccountInfo"
            )
        return {"accountInfo": account_info}

    def _get_tx_details(self, request: GetTxDetails) -> Dict[str, Any]:
        tx_details = self.client.get_transaction(request.tx_signature, max_supported_transaction_version=0)
        if not tx_details:
            raise ChainClientError(
                f"No transaction details found for signature: {request.tx_signature}", method="getTransaction"
            )
        return {"txDetails": tx_details}

    # Message signing

    def _sign_message(self, request: SignMessage) -> Dict[str, Any]:
        signature = self.signer.sign_message(request.message.encode("utf-8"))
        return {"signature": base58.b58encode(bytes(signature)).decode("ascii")}

    def _verify_signature(self, request: VerifySignature) -> Dict[str, Any]:
        is_valid = verify_detached(request.message.encode("utf-8"), request.signature, request.pub_key)
        return {"isValid": is_valid}

    # Write operations

    def _send_sol(self, request: SendSol) -> Dict[str, Any]:
        settings = self.context.settings
        recipient = _pubkey(request.address, "recipient address")
        lamports = sol_to_lamports(request.amount)
        donation_address = None
        if request.include_donation:
            donation_address = Pubkey.from_string(settings.donation_address)

        instructions = build_sol_transfer_instructions(
            self.signer.pubkey(),
            recipient,
            lamports,
            donation_address=donation_address,
            donation_rate=settings.donation_rate,
        )
        tx_signature = self._submit_legacy(instructions, [self.signer.transaction_signer()])
        logger.info(f"Sent {request.amount} SOL to {request.address} (donation: {request.include_donation}). TxHash: {tx_signature}")
        return {"txSignature": tx_signature}

    def _send_token(self, request: SendToken) -> Dict[str, Any]:
        mint = _pubkey(request.token_mint, "token mint")
        recipient = _pubkey(request.address, "recipient address")
        sender = self.signer.pubkey()

        decimals = self._mint_decimals(mint)
        amount = scale_token_amount(request.amount, decimals)
        sender_ata = self.client.derive_associated_token_address(mint, sender)
        recipient_ata = self.client.derive_associated_token_address(mint, recipient)
        recipient_ata_info = self.client.get_account_info(recipient_ata)

        instructions = build_token_transfer_instructions(
            sender,
            sender_ata,
            recipient,
            recipient_ata,
            mint,
            amount,
            create_recipient_ata=not recipient_ata_info,
        )
        blockhash = self.client.get_latest_blockhash()
        msg = MessageV0.try_compile(
            payer=sender,
            instructions=instructions,
            address_lookup_table_accounts=[],
            recent_blockhash=blockhash,
        )
        tx = VersionedTransaction(msg, [self.signer.transaction_signer()])
        tx_signature = self.client.send_transaction(tx)
        logger.info(f"Sent {request.amount} of token {request.token_mint} to {request.address}. TxHash: {tx_signature}")
        return {"txSignature": tx_signature}

    def _mint_decimals(self, mint: Pubkey) -> int:
        mint_info = self.client.get_parsed_account_info(mint)
        try:
            decimals = mint_info["data"]["parsed"]["info"]["decimals"]
        except (TypeError, KeyError):
            decimals = None
        if decimals is None:
            return self.context.settings.default_token_decimals
        return int(decimals)

    def _stake_sol(self, request: StakeSol) -> Dict[str, Any]:
        settings = self.context.settings
        vote_account = _pubkey(request.validator, "validator vote account")
        stake_keypair = Keypair()
        lamports = sol_to_lamports(request.amount)
        rent_exemption = self.client.get_minimum_balance_for_rent_exemption(settings.stake_account_space)

        instructions = build_stake_instructions(
            self.signer.pubkey(),
            stake_keypair.pubkey(),
            vote_account,
            lamports + rent_exemption,
            settings.stake_account_space,
        )
        tx_signature = self._submit_legacy(instructions, [self.signer.transaction_signer(), stake_keypair])
        logger.info(f"Staked {request.amount} SOL with {request.validator} in {stake_keypair.pubkey()}. TxHash: {tx_signature}")
        return {"stakeAccount": str(stake_keypair.pubkey()), "txSignature": tx_signature}

    def _withdraw_stake(self, request: WithdrawStake) -> Dict[str, Any]:
        instruction = build_withdraw_stake_instruction(
            _pubkey(request.stake_account, "stake account"),
            self.signer.pubkey(),
            _pubkey(request.destination, "destination address"),
            sol_to_lamports(request.amount),
        )
        tx_signature = self._submit_legacy([instruction], [self.signer.transaction_signer()])
        logger.info(f"Withdrew {request.amount} SOL from stake account {request.stake_account}. TxHash: {tx_signature}")
        return {"txSignature": tx_signature}
