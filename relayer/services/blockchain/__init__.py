"""
Blockchain services module.

Chain adapter boundary and the EVM delegated-transfer implementation.
"""

from .base import ChainAdapter
from .constants import ERC20_DELEGATED_TRANSFER_ABI
from .delegated_transfer import DelegatedTransferSender, to_base_units
from .singleton import get_chain_adapter, init_chain_adapter


__all__ = [
    "ChainAdapter",
    "DelegatedTransferSender",
    "ERC20_DELEGATED_TRANSFER_ABI",
    "get_chain_adapter",
    "init_chain_adapter",
    "to_base_units",
]
