"""
Singleton pattern for the chain adapter.

Provides global access to a single DelegatedTransferSender per process.
"""

from typing import TYPE_CHECKING

from web3 import AsyncHTTPProvider, AsyncWeb3

from .delegated_transfer import DelegatedTransferSender


if TYPE_CHECKING:
    from relayer.config.settings import Settings


_chain_adapter: DelegatedTransferSender | None = None


def get_chain_adapter() -> DelegatedTransferSender:
    """
    Get the singleton chain adapter instance.

    Raises:
        RuntimeError: If adapter not initialized
    """
    if _chain_adapter is None:
        raise RuntimeError("Chain adapter not initialized")
    return _chain_adapter


def init_chain_adapter(settings: "Settings") -> DelegatedTransferSender:
    """
    Initialize the singleton chain adapter from settings.

    Args:
        settings: Application settings

    Returns:
        The initialized adapter
    """
    global _chain_adapter
    web3 = AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))
    _chain_adapter = DelegatedTransferSender(
        web3=web3,
        private_key=settings.relayer_private_key,
        chain_id=settings.chain_id,
        receipt_timeout=settings.receipt_timeout_seconds,
    )
    return _chain_adapter
