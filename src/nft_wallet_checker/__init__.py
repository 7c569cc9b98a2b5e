"""
NFT Wallet Checker - verify collection holdings for batches of wallets
"""

__version__ = "1.0.0"

from .checker import CheckContext, FallbackController, WalletChecker
from .models import AddressCheckResult, AssetSummary, BatchSummary, CheckSource, CollectionStats, summarize
from .utils import is_valid_address, parse_address_input

__all__ = [
    "WalletChecker",
    "FallbackController",
    "CheckContext",
    "AddressCheckResult",
    "AssetSummary",
    "BatchSummary",
    "CheckSource",
    "CollectionStats",
    "summarize",
    "is_valid_address",
    "parse_address_input",
]
