"""
Delegated Transfer Sender.

Charges a payer through an ERC-20 approval: the relayer wallet is the
approved spender and submits ``transferFrom(payer, receiver, amount)``.
One call sends at most one transaction; retries belong to the caller.
"""

import asyncio
from decimal import ROUND_DOWN, Decimal

from eth_account import Account
from loguru import logger
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from relayer.config.constants import (
    CHAIN_RECEIPT_TIMEOUT_SECONDS,
    CHAIN_RPC_TIMEOUT_SECONDS,
    DEFAULT_GAS_LIMIT,
    GAS_LIMIT_BUFFER,
)
from relayer.utils.exceptions import ChainExecutionError
from relayer.utils.security import mask_address

from .constants import ERC20_DELEGATED_TRANSFER_ABI


def to_base_units(amount: Decimal, decimals: int) -> int:
    """
    Convert a human token amount to integer base units, rounding down.

    Examples:
        >>> to_base_units(Decimal("9.99"), 6)
        9990000
    """
    scaled = Decimal(str(amount)) * Decimal(10 ** decimals)
    return int(scaled.to_integral_value(ROUND_DOWN))


class DelegatedTransferSender:
    """
    EVM chain adapter for recurring charges.

    Features:
    - Allowance pre-check with a readable failure cause
    - Gas estimation with buffer and fallback
    - Bounded RPC and receipt waits
    """

    def __init__(
        self,
        web3: AsyncWeb3,
        private_key: str | None,
        chain_id: int | None = None,
        receipt_timeout: float = CHAIN_RECEIPT_TIMEOUT_SECONDS,
        rpc_timeout: float = CHAIN_RPC_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize sender.

        Args:
            web3: AsyncWeb3 instance
            private_key: Key of the approved spender
            chain_id: Chain id for replay protection (optional)
            receipt_timeout: Max wait for the receipt
            rpc_timeout: Max wait for a single RPC call
        """
        self.web3 = web3
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.rpc_timeout = rpc_timeout

        self._private_key = private_key
        self.sender_address: str | None = None

        # Nonce lock for transfers sent from this process
        self._nonce_lock = asyncio.Lock()

        if self._private_key:
            account = Account.from_key(self._private_key)
            self.sender_address = account.address
            del account
            logger.info(
                f"DelegatedTransferSender initialized with spender "
                f"{mask_address(self.sender_address)}"
            )
        else:
            logger.warning(
                "DelegatedTransferSender initialized without private key - "
                "charges will fail"
            )

    async def _rpc(self, awaitable, what: str):
        """Await an RPC call with the RPC timeout."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.rpc_timeout)
        except TimeoutError as e:
            raise ChainExecutionError(f"Timeout {what}") from e
        except Web3Exception as e:
            raise ChainExecutionError(f"RPC error {what}: {e}") from e

    async def execute_delegated_transfer(
        self,
        payer_wallet: str,
        receiver_wallet: str,
        token_mint: str,
        token_decimals: int,
        amount: Decimal,
    ) -> str:
        """
        Send ``transferFrom`` and wait for its receipt.

        Args:
            payer_wallet: Token owner who approved the relayer
            receiver_wallet: Plan receiver
            token_mint: Token contract address
            token_decimals: Token decimals
            amount: Amount in token units

        Returns:
            0x-prefixed transaction hash of the confirmed transfer

        Raises:
            ChainExecutionError: On any failure; carries the hash if the
                transaction was broadcast
        """
        if not self._private_key or not self.sender_address:
            raise ChainExecutionError("Relayer private key not configured")

        try:
            payer = self.web3.to_checksum_address(payer_wallet)
            receiver = self.web3.to_checksum_address(receiver_wallet)
            token = self.web3.to_checksum_address(token_mint)
        except ValueError as e:
            raise ChainExecutionError(f"Invalid address: {e}") from e

        amount_units = to_base_units(amount, token_decimals)
        if amount_units <= 0:
            raise ChainExecutionError(f"Amount {amount} rounds to zero base units")

        contract = self.web3.eth.contract(
            address=token, abi=ERC20_DELEGATED_TRANSFER_ABI
        )

        allowance = await self._rpc(
            contract.functions.allowance(payer, self.sender_address).call(),
            "reading allowance",
        )
        if allowance < amount_units:
            raise ChainExecutionError(
                f"Insufficient allowance: {allowance} < {amount_units}"
            )

        transfer_function = contract.functions.transferFrom(
            payer, receiver, amount_units
        )

        async with self._nonce_lock:
            nonce = await self._rpc(
                self.web3.eth.get_transaction_count(self.sender_address, "pending"),
                "getting nonce",
            )

            try:
                gas_estimate = await asyncio.wait_for(
                    transfer_function.estimate_gas({"from": self.sender_address}),
                    timeout=self.rpc_timeout,
                )
                gas_limit = int(gas_estimate * GAS_LIMIT_BUFFER)
            except ContractLogicError as e:
                # Would revert on-chain; do not spend gas on it
                raise ChainExecutionError(f"Transfer would revert: {e}") from e
            except TimeoutError:
                logger.warning("Timeout estimating gas, using default")
                gas_limit = DEFAULT_GAS_LIMIT

            gas_price = await self._rpc(self.web3.eth.gas_price, "getting gas price")

            tx_params = {
                "from": self.sender_address,
                "gas": gas_limit,
                "gasPrice": gas_price,
                "nonce": nonce,
            }
            if self.chain_id is not None:
                tx_params["chainId"] = self.chain_id

            transaction = await self._rpc(
                transfer_function.build_transaction(tx_params),
                "building transaction",
            )

            account = Account.from_key(self._private_key)
            try:
                signed_tx = account.sign_transaction(transaction)
            finally:
                del account

            tx_hash = await self._rpc(
                self.web3.eth.send_raw_transaction(signed_tx.raw_transaction),
                "sending transaction",
            )

        tx_hash_hex = self.web3.to_hex(tx_hash)
        logger.info(
            f"Transfer sent: {tx_hash_hex}, {amount_units} units of "
            f"{mask_address(token)} from {mask_address(payer)}"
        )

        try:
            receipt = await asyncio.wait_for(
                self.web3.eth.wait_for_transaction_receipt(tx_hash),
                timeout=self.receipt_timeout,
            )
        except (TimeoutError, TimeExhausted) as e:
            raise ChainExecutionError(
                "Transaction confirmation timeout", tx_signature=tx_hash_hex
            ) from e
        except Web3Exception as e:
            raise ChainExecutionError(
                f"Error waiting for receipt: {e}", tx_signature=tx_hash_hex
            ) from e

        if receipt["status"] != 1:
            raise ChainExecutionError(
                "Transaction reverted", tx_signature=tx_hash_hex
            )

        return tx_hash_hex
