"""
Operation kinds and the per-operation request types.

Each operation has one frozen request dataclass carrying only the fields it
needs. `build_request` resolves an item's parameters into the matching
request and enforces the required-parameter rules.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Tuple, Type, Union

from .errors import ParameterValidationError, UnsupportedOperationError


class Operation(str, Enum):
    CREATE_WALLET = "createWallet"
    GET_ACCOUNT_INFO = "getAccountInfo"
    GET_BALANCE = "getBalance"
    GET_MULTIPLE_TOKEN_BALANCES = "getMultipleTokenBalances"
    GET_TOKEN_BALANCE = "getTokenBalance"
    GET_TX_DETAILS = "getTxDetails"
    SEND_SOL = "sendSol"
    SEND_TOKEN = "sendToken"
    SIGN_MESSAGE = "signMessage"
    STAKE_SOL = "stakeSol"
    VERIFY_SIGNATURE = "verifySignature"
    WITHDRAW_STAKE = "withdrawStake"

    @classmethod
    def parse(cls, value: Any) -> "Operation":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedOperationError(str(value)) from None


@dataclass(frozen=True)
class CreateWallet:
    pass


@dataclass(frozen=True)
class GetAccountInfo:
    account_address: str


@dataclass(frozen=True)
class GetBalance:
    address: str


@dataclass(frozen=True)
class GetMultipleTokenBalances:
    address: str
    token_mints: Tuple[str, ...]


@dataclass(frozen=True)
class GetTokenBalance:
    address: str
    token_mint: str


@dataclass(frozen=True)
class GetTxDetails:
    tx_signature: str


@dataclass(frozen=True)
class SendSol:
    address: str
    amount: float
    include_donation: bool


@dataclass(frozen=True)
class SendToken:
    address: str
    amount: float
    token_mint: str


@dataclass(frozen=True)
class SignMessage:
    message: str


@dataclass(frozen=True)
class StakeSol:
    amount: float
    validator: str


@dataclass(frozen=True)
class VerifySignature:
    message: str
    signature: str
    pub_key: str


@dataclass(frozen=True)
class WithdrawStake:
    stake_account: str
    destination: str
    amount: float


OperationRequest = Union[
    CreateWallet,
    GetAccountInfo,
    GetBalance,
    GetMultipleTokenBalances,
    GetTokenBalance,
    GetTxDetails,
    SendSol,
    SendToken,
    SignMessage,
    StakeSol,
    VerifySignature,
    WithdrawStake,
]

REQUEST_TYPES: Dict[Operation, Type] = {
    Operation.CREATE_WALLET: CreateWallet,
    Operation.GET_ACCOUNT_INFO: GetAccountInfo,
    Operation.GET_BALANCE: GetBalance,
    Operation.GET_MULTIPLE_TOKEN_BALANCES: GetMultipleTokenBalances,
    Operation.GET_TOKEN_BALANCE: GetTokenBalance,
    Operation.GET_TX_DETAILS: GetTxDetails,
    Operation.SEND_SOL: SendSol,
    Operation.SEND_TOKEN: SendToken,
    Operation.SIGN_MESSAGE: SignMessage,
    Operation.STAKE_SOL: StakeSol,
    Operation.VERIFY_SIGNATURE: VerifySignature,
    Operation.WITHDRAW_STAKE: WithdrawStake,
}


def split_mints(value: str) -> Tuple[str, ...]:
    """Split a comma separated mint list, trimming and dropping empty entries."""
    return tuple(mint.strip() for mint in (value or "").split(",") if mint.strip())


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def _as_float(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ParameterValidationError(name, f"Parameter '{name}' must be a number, got {value!r}") from None


def build_request(
    operation: Operation,
    get_parameter: Callable[[str], Any],
    own_address: str,
) -> OperationRequest:
    """
    Resolve the parameters of one item into an OperationRequest.

    Args:
        operation: The selected operation.
        get_parameter: Returns an item's parameter value (declared default
            when unset).
        own_address: The signer's address, used when getBalance has no address.
    """
    def param(name: str) -> str:
        return _as_str(get_parameter(name))

    if operation is Operation.CREATE_WALLET:
        return CreateWallet()

    if operation is Operation.GET_ACCOUNT_INFO:
        account_address = param("accountAddress")
        if not account_address:
            raise ParameterValidationError("accountAddress", "Account address is required")
        return GetAccountInfo(account_address=account_address)

    if operation is Operation.GET_BALANCE:
        return GetBalance(address=param("address") or own_address)

    if operation is Operation.GET_MULTIPLE_TOKEN_BALANCES:
        return GetMultipleTokenBalances(address=param("address"), token_mints=split_mints(param("tokenMints")))

    if operation is Operation.GET_TOKEN_BALANCE:
        return GetTokenBalance(address=param("address"), token_mint=param("tokenMint"))

    if operation is Operation.GET_TX_DETAILS:
        tx_signature = param("txSignature")
        if not tx_signature:
            raise ParameterValidationError("txSignature", "Transaction signature is required")
        return GetTxDetails(tx_signature=tx_signature)

    if operation is Operation.SEND_SOL:
        return SendSol(
            address=param("address"),
            amount=_as_float("amount", get_parameter("amount")),
            include_donation=bool(get_parameter("includeDonation")),
        )

    if operation is Operation.SEND_TOKEN:
        return SendToken(
            address=param("address"),
            amount=_as_float("amount", get_parameter("amount")),
            token_mint=param("tokenMint"),
        )

    if operation is Operation.SIGN_MESSAGE:
        message = param("message")
        if not message:
            raise ParameterValidationError("message", "Message is required for signing")
        return SignMessage(message=message)

    if operation is Operation.STAKE_SOL:
        return StakeSol(
            amount=_as_float("amount", get_parameter("amount")),
            validator=param("validator"),
        )

    if operation is Operation.VERIFY_SIGNATURE:
        message, signature, pub_key = param("message"), param("signature"), param("pubKey")
        missing = [name for name, value in (("message", message), ("signature", signature), ("pubKey", pub_key)) if not value]
        if missing:
            raise ParameterValidationError(
                missing[0], "Message, signature and public key are required for verification"
            )
        return VerifySignature(message=message, signature=signature, pub_key=pub_key)

    if operation is Operation.WITHDRAW_STAKE:
        return WithdrawStake(
            stake_account=param("stakeAccount"),
            destination=param("destination"),
            amount=_as_float("amount", get_parameter("amount")),
        )

    raise UnsupportedOperationError(operation.value)
