"""Data providers for wallet checks"""

from .base import BaseAPIClient
from .chain import ChainBalanceClient
from .opensea import OpenSeaClient

__all__ = ["BaseAPIClient", "ChainBalanceClient", "OpenSeaClient"]
