"""
Unit tests for the EVM delegated transfer sender.

Tests cover:
- transferFrom built from the payer's approval
- Allowance and revert checks before broadcasting
- Receipt failures carrying the broadcast hash
- Base unit conversion
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from relayer.services.blockchain.delegated_transfer import (
    DelegatedTransferSender,
    to_base_units,
)
from relayer.utils.exceptions import ChainExecutionError

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
TOKEN = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
PAYER = "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"
RECEIVER = "0x55d398326f99059ff775485246999027b3197955"
TX_HASH = bytes.fromhex("ab" * 32)


async def _value(value):
    return value


class FakeEth:
    """AsyncWeb3.eth stand-in; gas_price is an awaitable property."""

    def __init__(self) -> None:
        self.contract = MagicMock()
        self.get_transaction_count = AsyncMock(return_value=7)
        self.send_raw_transaction = AsyncMock(return_value=TX_HASH)
        self.wait_for_transaction_receipt = AsyncMock(return_value={"status": 1})

    @property
    def gas_price(self):
        return _value(5 * 10**9)


@pytest.fixture
def token_contract():
    contract = MagicMock()
    contract.functions.allowance.return_value.call = AsyncMock(
        return_value=100 * 10**6
    )
    transfer = contract.functions.transferFrom.return_value
    transfer.estimate_gas = AsyncMock(return_value=60_000)
    transfer.build_transaction = AsyncMock(
        return_value={
            "to": Web3.to_checksum_address(TOKEN),
            "data": "0x23b872dd",
            "value": 0,
            "gas": 72_000,
            "gasPrice": 5 * 10**9,
            "nonce": 7,
            "chainId": 56,
        }
    )
    return contract


@pytest.fixture
def web3(token_contract):
    web3 = MagicMock()
    web3.eth = FakeEth()
    web3.eth.contract.return_value = token_contract
    web3.to_checksum_address = Web3.to_checksum_address
    web3.to_hex = Web3.to_hex
    return web3


@pytest.fixture
def sender(web3):
    return DelegatedTransferSender(
        web3=web3,
        private_key=PRIVATE_KEY,
        chain_id=56,
        receipt_timeout=5,
        rpc_timeout=5,
    )


async def _charge(sender, amount=Decimal("9.99")):
    return await sender.execute_delegated_transfer(
        payer_wallet=PAYER,
        receiver_wallet=RECEIVER,
        token_mint=TOKEN,
        token_decimals=6,
        amount=amount,
    )


class TestExecuteDelegatedTransfer:

    @pytest.mark.asyncio
    async def test_success(self, sender, web3, token_contract):
        tx_hash = await _charge(sender)

        assert tx_hash == "0x" + "ab" * 32
        token_contract.functions.transferFrom.assert_called_once_with(
            Web3.to_checksum_address(PAYER),
            Web3.to_checksum_address(RECEIVER),
            9_990_000,
        )
        token_contract.functions.allowance.assert_called_once_with(
            Web3.to_checksum_address(PAYER), sender.sender_address
        )
        web3.eth.get_transaction_count.assert_awaited_once_with(
            sender.sender_address, "pending"
        )
        tx_params = token_contract.functions.transferFrom.return_value.build_transaction.await_args.args[0]
        assert tx_params["gas"] == 72_000
        assert tx_params["nonce"] == 7
        assert tx_params["chainId"] == 56
        web3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_insufficient_allowance(self, sender, web3, token_contract):
        """Test nothing is broadcast when the approval is too small."""
        token_contract.functions.allowance.return_value.call.return_value = 1_000

        with pytest.raises(ChainExecutionError, match="Insufficient allowance"):
            await _charge(sender)

        web3.eth.send_raw_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_estimate_revert(self, sender, web3, token_contract):
        transfer = token_contract.functions.transferFrom.return_value
        transfer.estimate_gas.side_effect = ContractLogicError(
            "execution reverted: ERC20: transfer amount exceeds balance"
        )

        with pytest.raises(ChainExecutionError, match="would revert"):
            await _charge(sender)

        web3.eth.send_raw_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reverted_receipt_keeps_hash(self, sender, web3):
        web3.eth.wait_for_transaction_receipt.return_value = {"status": 0}

        with pytest.raises(ChainExecutionError) as exc_info:
            await _charge(sender)

        assert exc_info.value.tx_signature == "0x" + "ab" * 32

    @pytest.mark.asyncio
    async def test_receipt_timeout_keeps_hash(self, sender, web3):
        web3.eth.wait_for_transaction_receipt.side_effect = TimeExhausted(
            "not in chain after 120 seconds"
        )

        with pytest.raises(ChainExecutionError, match="timeout") as exc_info:
            await _charge(sender)

        assert exc_info.value.tx_signature == "0x" + "ab" * 32

    @pytest.mark.asyncio
    async def test_invalid_address(self, sender, web3):
        with pytest.raises(ChainExecutionError, match="Invalid address"):
            await sender.execute_delegated_transfer(
                payer_wallet="not-an-address",
                receiver_wallet=RECEIVER,
                token_mint=TOKEN,
                token_decimals=6,
                amount=Decimal("1"),
            )

    @pytest.mark.asyncio
    async def test_dust_amount_rejected(self, sender, web3):
        with pytest.raises(ChainExecutionError, match="zero base units"):
            await _charge(sender, amount=Decimal("0.0000001"))

    @pytest.mark.asyncio
    async def test_without_private_key(self, web3):
        sender = DelegatedTransferSender(web3=web3, private_key=None)

        assert sender.sender_address is None
        with pytest.raises(ChainExecutionError, match="private key"):
            await _charge(sender)


class TestToBaseUnits:

    def test_six_decimals(self):
        assert to_base_units(Decimal("9.99"), 6) == 9_990_000

    def test_eighteen_decimals(self):
        assert to_base_units(Decimal("1.5"), 18) == 1_500_000_000_000_000_000

    def test_rounds_down(self):
        assert to_base_units(Decimal("0.1234567"), 6) == 123_456
