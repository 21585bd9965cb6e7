import struct
import unittest

import base58
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import get_associated_token_address

from solana_node.config import DONATION_ADDRESS, NodeSettings
from solana_node.dispatcher import OperationDispatcher, RunContext
from solana_node.errors import ChainClientError
from solana_node.instructions import STAKE_PROGRAM_ID
from solana_node.operations import (
    REQUEST_TYPES,
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
)
from solana_node.wallets import KeypairSigner

from tests.fakes import FakeChainClient, decompile, transfer_lamports


class DispatcherTestCase(unittest.TestCase):
    def setUp(self):
        self.keypair = Keypair()
        self.signer = KeypairSigner(self.keypair)
        self.client = FakeChainClient()
        self.dispatcher = OperationDispatcher(RunContext(signer=self.signer, client=self.client))
        self.other = str(Keypair().pubkey())


class TestReadOperations(DispatcherTestCase):
    def test_every_request_type_is_handled(self):
        self.assertEqual(set(self.dispatcher.handled_types()), set(REQUEST_TYPES.values()))

    def test_get_balance_converts_lamports(self):
        self.client.balances[self.other] = 2_500_000_000
        self.assertEqual(self.dispatcher.dispatch(GetBalance(address=self.other)), {"balance": 2.5})

        self.client.balances[self.other] = 1
        self.assertEqual(self.dispatcher.dispatch(GetBalance(address=self.other))["balance"], 1 / 1e9)

    def test_get_balance_invalid_address(self):
        with self.assertRaises(ValueError):
            self.dispatcher.dispatch(GetBalance(address="not-an-address"))

    def test_get_token_balance_reads_ata(self):
        mint = Keypair().pubkey()
        ata = get_associated_token_address(Pubkey.from_string(self.other), mint)
        self.client.token_balances[str(ata)] = 12.5
        result = self.dispatcher.dispatch(GetTokenBalance(address=self.other, token_mint=str(mint)))
        self.assertEqual(result, {"balance": 12.5})

    def test_get_token_balance_missing_account(self):
        with self.assertRaises(ChainClientError):
            self.dispatcher.dispatch(GetTokenBalance(address=self.other, token_mint=str(Keypair().pubkey())))

    def test_multiple_token_balances_isolate_failures(self):
        mint_a = str(Keypair().pubkey())
        mint_missing = str(Keypair().pubkey())
        ata = get_associated_token_address(Pubkey.from_string(self.other), Pubkey.from_string(mint_a))
        self.client.token_balances[str(ata)] = 3.0

        result = self.dispatcher.dispatch(
            GetMultipleTokenBalances(address=self.other, token_mints=(mint_a, "invalid", mint_missing))
        )
        self.assertEqual(result, {"balances": {mint_a: 3.0, "invalid": None, mint_missing: None}})

    def test_multiple_token_balances_invalid_owner_fails(self):
        with self.assertRaises(ValueError):
            self.dispatcher.dispatch(GetMultipleTokenBalances(address="bad owner", token_mints=("MintA",)))

    def test_get_account_info(self):
        info = {"lamports": 10, "owner": "11111111111111111111111111111111", "executable": False}
        self.client.accounts[self.other] = info
        self.assertEqual(self.dispatcher.dispatch(GetAccountInfo(account_address=self.other)), {"accountInfo": info})

    def test_get_account_info_not_found(self):
        with self.assertRaises(ChainClientError) as ctx:
            self.dispatcher.dispatch(GetAccountInfo(account_address=self.other))
        self.assertIn("No account info found", str(ctx.exception))

    def test_get_tx_details(self):
        self.client.transactions["sig1"] = {"slot": 5}
        self.assertEqual(self.dispatcher.dispatch(GetTxDetails(tx_signature="sig1")), {"txDetails": {"slot": 5}})
        with self.assertRaises(ChainClientError) as ctx:
            self.dispatcher.dispatch(GetTxDetails(tx_signature="sig2"))
        self.assertIn("No transaction details found for signature: sig2", str(ctx.exception))


class TestWalletOperations(DispatcherTestCase):
    def test_create_wallet(self):
        result = self.dispatcher.dispatch(CreateWallet())
        restored = Keypair.from_bytes(base58.b58decode(result["privateKey"]))
        self.assertEqual(str(restored.pubkey()), result["publicKey"])
        self.assertNotEqual(result["publicKey"], self.signer.get_address())

    def test_sign_then_verify(self):
        signature = self.dispatcher.dispatch(SignMessage(message="gm"))["signature"]
        valid = self.dispatcher.dispatch(
            VerifySignature(message="gm", signature=signature, pub_key=self.signer.get_address())
        )
        self.assertEqual(valid, {"isValid": True})

        altered = self.dispatcher.dispatch(
            VerifySignature(message="gn", signature=signature, pub_key=self.signer.get_address())
        )
        self.assertEqual(altered, {"isValid": False})

    def test_signature_matches_keypair(self):
        signature = self.dispatcher.dispatch(SignMessage(message="hello"))["signature"]
        self.assertEqual(Signature.from_string(signature), self.keypair.sign_message(b"hello"))


class TestSendSol(DispatcherTestCase):
    def _sent_instructions(self):
        self.assertEqual(len(self.client.raw_sent), 1)
        tx = Transaction.from_bytes(self.client.raw_sent[0])
        self.assertEqual(tx.message.recent_blockhash, self.client.blockhash)
        self.assertEqual(tx.message.account_keys[0], self.keypair.pubkey())
        return tx, decompile(tx.message)

    def test_with_donation(self):
        result = self.dispatcher.dispatch(SendSol(address=self.other, amount=1.0, include_donation=True))
        tx, instructions = self._sent_instructions()
        self.assertEqual(result, {"txSignature": str(tx.signatures[0])})
        self.assertEqual(len(instructions), 2)
        self.assertEqual(transfer_lamports(instructions[0]), 990_000_000)
        self.assertEqual(transfer_lamports(instructions[1]), 10_000_000)
        self.assertEqual(instructions[1].accounts[1].pubkey, Pubkey.from_string(DONATION_ADDRESS))

    def test_without_donation(self):
        self.dispatcher.dispatch(SendSol(address=self.other, amount=0.25, include_donation=False))
        _, instructions = self._sent_instructions()
        self.assertEqual(len(instructions), 1)
        self.assertEqual(transfer_lamports(instructions[0]), 250_000_000)
        self.assertEqual(str(instructions[0].accounts[1].pubkey), self.other)

    def test_configured_donation_address(self):
        donation = Keypair().pubkey()
        dispatcher = OperationDispatcher(
            RunContext(self.signer, self.client, NodeSettings(donation_address=str(donation)))
        )
        dispatcher.dispatch(SendSol(address=self.other, amount=2, include_donation=True))
        _, instructions = self._sent_instructions()
        self.assertEqual(instructions[1].accounts[1].pubkey, donation)

    def test_invalid_recipient(self):
        with self.assertRaises(ValueError):
            self.dispatcher.dispatch(SendSol(address="nope", amount=1, include_donation=False))
        self.assertEqual(self.client.raw_sent, [])


class TestSendToken(DispatcherTestCase):
    def setUp(self):
        super().setUp()
        self.mint = Keypair().pubkey()
        self.recipient = Pubkey.from_string(self.other)
        self.recipient_ata = get_associated_token_address(self.recipient, self.mint)

    def _send(self, amount):
        result = self.dispatcher.dispatch(SendToken(address=self.other, amount=amount, token_mint=str(self.mint)))
        self.assertEqual(len(self.client.versioned_sent), 1)
        tx = self.client.versioned_sent[0]
        self.assertEqual(result, {"txSignature": str(tx.signatures[0])})
        return decompile(tx.message)

    def _amount(self, instruction):
        data = bytes(instruction.data)
        self.assertEqual(data[0], 3)
        return struct.unpack("<Q", data[1:9])[0]

    def test_creates_recipient_ata_and_uses_mint_decimals(self):
        self.client.parsed_accounts[str(self.mint)] = {"data": {"parsed": {"info": {"decimals": 6}}}}
        instructions = self._send(1.5)
        self.assertEqual(len(instructions), 2)
        self.assertEqual(instructions[0].program_id, ASSOCIATED_TOKEN_PROGRAM_ID)
        self.assertEqual(instructions[1].program_id, TOKEN_PROGRAM_ID)
        self.assertEqual(self._amount(instructions[1]), 1_500_000)

    def test_existing_ata_and_default_decimals(self):
        self.client.accounts[str(self.recipient_ata)] = {"lamports": 2039280}
        instructions = self._send(2)
        self.assertEqual(len(instructions), 1)
        self.assertEqual(self._amount(instructions[0]), 2_000_000_000)

    def test_amount_is_floored(self):
        self.client.parsed_accounts[str(self.mint)] = {"data": {"parsed": {"info": {"decimals": 2}}}}
        self.client.accounts[str(self.recipient_ata)] = {"lamports": 1}
        instructions = self._send(1.239)
        self.assertEqual(self._amount(instructions[0]), 123)

    def test_unparsed_mint_data_defaults_to_nine(self):
        self.client.parsed_accounts[str(self.mint)] = {"data": ["AAAA", "base64"]}
        self.client.accounts[str(self.recipient_ata)] = {"lamports": 1}
        instructions = self._send(1)
        self.assertEqual(self._amount(instructions[0]), 1_000_000_000)


class TestStaking(DispatcherTestCase):
    def test_stake_sol(self):
        validator = str(Keypair().pubkey())
        result = self.dispatcher.dispatch(StakeSol(amount=1, validator=validator))

        self.assertEqual(self.client.rent_requests, [200])
        tx = Transaction.from_bytes(self.client.raw_sent[0])
        self.assertEqual(result["txSignature"], str(tx.signatures[0]))
        self.assertEqual(len(tx.signatures), 2)
        self.assertIn(Pubkey.from_string(result["stakeAccount"]), tx.message.account_keys)

        create, initialize, delegate = decompile(tx.message)
        lamports = struct.unpack("<IQQ", bytes(create.data)[:20])[1]
        self.assertEqual(lamports, 1_000_000_000 + self.client.rent_exemption)
        self.assertEqual(initialize.program_id, STAKE_PROGRAM_ID)
        self.assertEqual(delegate.program_id, STAKE_PROGRAM_ID)
        self.assertEqual(str(delegate.accounts[1].pubkey), validator)

    def test_stake_invalid_validator(self):
        with self.assertRaises(ValueError):
            self.dispatcher.dispatch(StakeSol(amount=1, validator="validator"))

    def test_withdraw_stake(self):
        stake_account = str(Keypair().pubkey())
        result = self.dispatcher.dispatch(
            WithdrawStake(stake_account=stake_account, destination=self.other, amount=0.5)
        )
        tx = Transaction.from_bytes(self.client.raw_sent[0])
        self.assertEqual(result, {"txSignature": str(tx.signatures[0])})
        self.assertEqual(len(tx.signatures), 1)
        (withdraw,) = decompile(tx.message)
        self.assertEqual(withdraw.program_id, STAKE_PROGRAM_ID)
        self.assertEqual(struct.unpack("<IQ", bytes(withdraw.data)), (4, 500_000_000))
        self.assertEqual(str(withdraw.accounts[0].pubkey), stake_account)
        self.assertEqual(str(withdraw.accounts[1].pubkey), self.other)


if __name__ == '__main__':
    unittest.main()
