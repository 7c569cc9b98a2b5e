"""Exception hierarchy for wallet checks"""

from typing import Optional


class WalletCheckerError(Exception):
    """Base class for all wallet checker errors"""


class InvalidAddressError(WalletCheckerError):
    """Raised when a string is not a well-formed wallet address"""

    def __init__(self, address: str):
        super().__init__(f"Invalid address: {address!r}")
        self.address = address


class ProviderError(WalletCheckerError):
    """Raised when a data provider (indexing API or chain RPC) fails"""

    def __init__(self, message: str, provider: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderTransportError(ProviderError):
    """Network failure or timeout talking to a provider"""

    pass


class ProviderResponseError(ProviderError):
    """Non-2xx status, malformed payload or contract revert"""

    pass


class ServiceSetupError(WalletCheckerError):
    """Raised when a provider cannot be constructed for a batch"""

    pass
