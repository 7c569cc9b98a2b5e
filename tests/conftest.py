"""
Pytest configuration and shared fixtures for NFT wallet checker tests.
"""

from typing import Dict, Iterable, List, Optional

import pytest

from nft_wallet_checker.config import Config
from nft_wallet_checker.exceptions import ProviderResponseError, ProviderTransportError, ServiceSetupError
from nft_wallet_checker.models import AssetSummary

CONTRACT = "0x" + "d" * 40
WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40
WALLET_C = "0x" + "c" * 40


def make_asset(token_id: str) -> AssetSummary:
    return AssetSummary(
        token_id=token_id,
        display_name=f"Token #{token_id}",
        external_url=f"https://opensea.io/assets/ethereum/{CONTRACT}/{token_id}",
    )


class FakeAssetProvider:
    """Indexing API stand-in recording every lookup"""

    name = "fake-index"

    def __init__(self, holdings: Optional[Dict[str, List[AssetSummary]]] = None, fail_for: Iterable[str] = ()):
        self.holdings = {k.lower(): v for k, v in (holdings or {}).items()}
        self.fail_for = {a.lower() for a in fail_for}
        self.calls: List[str] = []
        self.opened = False
        self.closed = False

    async def open(self):
        self.opened = True

    async def close(self):
        self.closed = True

    async def get_owned_assets(self, address: str, contract_address: str) -> List[AssetSummary]:
        self.calls.append(address)
        if address.lower() in self.fail_for:
            raise ProviderResponseError("opensea API error: 500", provider="opensea", status_code=500)
        return list(self.holdings.get(address.lower(), []))


class FakeBalanceProvider:
    """Chain RPC stand-in recording every lookup"""

    name = "fake-chain"

    def __init__(
        self,
        balances: Optional[Dict[str, int]] = None,
        fail_for: Iterable[str] = (),
        open_error: Optional[Exception] = None,
    ):
        self.balances = {k.lower(): v for k, v in (balances or {}).items()}
        self.fail_for = {a.lower() for a in fail_for}
        self.open_error = open_error
        self.calls: List[str] = []
        self.opened = False
        self.closed = False

    async def open(self):
        if self.open_error is not None:
            raise self.open_error
        self.opened = True

    async def close(self):
        self.closed = True

    async def get_token_balance(self, address: str, contract_address: str) -> int:
        self.calls.append(address)
        if address.lower() in self.fail_for:
            raise ProviderTransportError("RPC request failed: connection reset", provider="chain")
        return self.balances.get(address.lower(), 0)


@pytest.fixture
def contract_address():
    """Collection contract used across tests."""
    return CONTRACT


@pytest.fixture
def sample_wallet_address():
    """Checksummed Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def test_config():
    """Config with the indexing API enabled and no delays."""
    return Config(
        opensea_api_key="test-api-key-12345",
        contract_address=CONTRACT,
        address_delay=0,
        chain_retry_delay=0,
        verify_rpc_on_setup=False,
    )


@pytest.fixture
def chain_only_config(test_config):
    """Config without an OpenSea key."""
    test_config.opensea_api_key = ""
    return test_config


@pytest.fixture
def setup_error():
    return ServiceSetupError("RPC endpoint unreachable")
