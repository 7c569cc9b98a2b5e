"""
Configuration management for NFT Wallet Checker
"""

import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(env_path)


DEFAULT_CONTRACT_ADDRESS = "0xd887090Fc6f9af10abE6cF287AC8011a3Cb55a65"


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Config:
    """Main configuration class"""

    # Indexing API (OpenSea v2)
    opensea_api_key: str = ""
    opensea_base_url: str = "https://api.opensea.io/api/v2"
    marketplace_url: str = "https://opensea.io"
    page_limit: int = 50

    # Chain RPC
    chain: str = "ethereum"
    rpc_url: str = "https://cloudflare-eth.com"
    verify_rpc_on_setup: bool = True

    # Collection
    contract_address: str = DEFAULT_CONTRACT_ADDRESS
    collection_slug: str = "quills-adventure"

    # Request settings
    timeout: int = 10  # per-call, seconds
    chain_max_retries: int = 2
    chain_retry_delay: float = 0.3  # constant, seconds
    address_delay: float = 0.2  # between addresses, seconds

    # Web settings
    web_port: int = 8000

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables"""
        return cls(
            opensea_api_key=os.getenv("OPENSEA_API_KEY", "").strip(),
            opensea_base_url=os.getenv("OPENSEA_BASE_URL", "https://api.opensea.io/api/v2").rstrip("/"),
            marketplace_url=os.getenv("MARKETPLACE_URL", "https://opensea.io").rstrip("/"),
            page_limit=int(os.getenv("PAGE_LIMIT", "50")),
            chain=os.getenv("CHAIN", "ethereum"),
            rpc_url=os.getenv("ETHEREUM_RPC_URL", "https://cloudflare-eth.com"),
            verify_rpc_on_setup=_get_bool("VERIFY_RPC_ON_SETUP", True),
            contract_address=os.getenv("NFT_CONTRACT_ADDRESS", DEFAULT_CONTRACT_ADDRESS),
            collection_slug=os.getenv("COLLECTION_SLUG", "quills-adventure"),
            timeout=int(os.getenv("TIMEOUT", "10")),
            chain_max_retries=int(os.getenv("CHAIN_MAX_RETRIES", "2")),
            chain_retry_delay=float(os.getenv("CHAIN_RETRY_DELAY", "0.3")),
            address_delay=float(os.getenv("ADDRESS_DELAY", "0.2")),
            web_port=int(os.getenv("WEB_PORT", "8000")),
        )

    @property
    def index_api_enabled(self) -> bool:
        """The indexing API is only consulted when a key is configured"""
        return bool(self.opensea_api_key)


# Global config instance
config = Config.from_env()
