"""
Chain adapter boundary.

The charge processor only depends on this capability; how the transfer
is signed and confirmed is the adapter's business.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable


@runtime_checkable
class ChainAdapter(Protocol):
    """Executes a transfer the payer has pre-authorized."""

    sender_address: str | None

    async def execute_delegated_transfer(
        self,
        payer_wallet: str,
        receiver_wallet: str,
        token_mint: str,
        token_decimals: int,
        amount: Decimal,
    ) -> str:
        """
        Move ``amount`` tokens from payer to receiver under the delegation.

        Returns:
            Transaction signature of the confirmed transfer

        Raises:
            ChainExecutionError: If the transfer failed or was not confirmed
        """
        ...
