"""
OpenSea API v2 client
Provides wallet holdings for a collection and collection statistics
"""

from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from .base import BaseAPIClient
from ..exceptions import ProviderError, ProviderResponseError
from ..models import AssetSummary, CollectionStats, StatsInterval


class OpenSeaClient(BaseAPIClient):
    """OpenSea API client"""

    name = "opensea"
    BASE_URL = "https://api.opensea.io/api/v2"
    MARKETPLACE_URL = "https://opensea.io"

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        marketplace_url: str = MARKETPLACE_URL,
        chain: str = "ethereum",
        page_limit: int = 50,
        timeout: int = 10,
        rate_limit: float = 4.0,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize OpenSea client

        Args:
            api_key: Static API key sent as ``X-API-KEY``
            base_url: API root, without trailing slash
            marketplace_url: Site root used to build asset links
            chain: Chain slug in OpenSea URLs
            page_limit: Page size for account NFT listings (single page only)
            timeout: Per-request timeout in seconds
            rate_limit: Requests per second
        """
        super().__init__(api_key, base_url, rate_limit=rate_limit, timeout=timeout, session=session)
        self.marketplace_url = marketplace_url.rstrip("/")
        self.chain = chain
        self.page_limit = page_limit

    def _default_headers(self) -> Dict[str, str]:
        headers = super()._default_headers()
        headers["X-API-KEY"] = self.api_key
        return headers

    def asset_url(self, contract_address: str, token_id: str) -> str:
        """Build a marketplace link for a token"""
        return f"{self.marketplace_url}/assets/{self.chain}/{contract_address}/{token_id}"


    async def _get_object(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET an endpoint whose body must be a JSON object"""
        data = await self._request("GET", endpoint, params=params)
        if not isinstance(data, dict):
            raise ProviderResponseError(
                f"OpenSea API returned an unexpected payload for {endpoint}", provider=self.name
            )
        return data

    def _to_asset_summary(self, nft: Dict[str, Any], contract_address: str) -> AssetSummary:
        token_id = str(nft["identifier"])
        return AssetSummary(
            token_id=token_id,
            display_name=nft.get("name"),
            image_url=nft.get("image_url"),
            external_url=nft.get("permalink") or self.asset_url(contract_address, token_id),
        )

    async def get_owned_assets(self, address: str, contract_address: str) -> List[AssetSummary]:
        """
        Get tokens from one collection owned by a wallet

        Only the first page (``page_limit`` items) is read. Entries are kept
        when their contract matches ``contract_address`` regardless of case.
        """
        endpoint = f"/chain/{self.chain}/account/{address}/nfts"
        logger.debug(f"Fetching OpenSea NFTs for wallet {address} and contract {contract_address}")

        data = await self._get_object(endpoint, params={"limit": self.page_limit})

        nfts = data.get("nfts") or []
        target = contract_address.lower()
        try:
            matching = [nft for nft in nfts if str(nft.get("contract", "")).lower() == target]
            assets = [self._to_asset_summary(nft, contract_address) for nft in matching]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ProviderResponseError(f"OpenSea NFT entry malformed: {e}", provider=self.name) from e

        logger.debug(f"Found {len(nfts)} total NFTs, {len(assets)} match contract {contract_address}")
        return assets

    async def get_collection(self, slug: str) -> Dict[str, Any]:
        """Get collection details (name, total supply, contracts)"""
        return await self._get_object(f"/collections/{slug}")

    async def get_raw_collection_stats(self, slug: str) -> Dict[str, Any]:
        """Get collection totals and per-interval figures"""
        return await self._get_object(f"/collections/{slug}/stats")

    async def get_best_offer(self, slug: str, token_id: str = "1") -> Optional[float]:
        """
        Get the best offer for a token of the collection, in whole currency units

        Returns None when no offer is listed.
        """
        data = await self._get_object(f"/offers/collection/{slug}/nfts/{token_id}/best")
        try:
            price = data.get("price") or {}
            value = price.get("value")
            if value is None:
                return None
            decimals = int(price.get("decimals", 18))
            return int(value) / (10 ** decimals)
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderResponseError(f"OpenSea best offer malformed: {e}", provider=self.name) from e

    async def get_collection_stats(self, slug: str) -> CollectionStats:
        """
        Get a one-shot snapshot of collection statistics

        Combines collection details, stats and the best offer. A failing best
        offer lookup is logged and leaves ``best_offer`` unset.
        """
        collection = await self.get_collection(slug)
        stats = await self.get_raw_collection_stats(slug)

        best_offer = None
        try:
            best_offer = await self.get_best_offer(slug)
        except ProviderError as e:
            logger.warning(f"Best offer unavailable for {slug}: {e}")

        try:
            total = stats.get("total") or {}
            contracts = collection.get("contracts") or []
            intervals = [
                StatsInterval(
                    interval=item.get("interval", ""),
                    volume=item.get("volume"),
                    volume_change=item.get("volume_change"),
                    sales=item.get("sales"),
                    average_price=item.get("average_price"),
                )
                for item in stats.get("intervals") or []
            ]

            return CollectionStats(
                slug=slug,
                name=collection.get("name"),
                contract_address=contracts[0].get("address") if contracts else None,
                total_supply=collection.get("total_supply"),
                num_owners=total.get("num_owners"),
                num_sales=total.get("sales"),
                floor_price=total.get("floor_price"),
                floor_price_symbol=total.get("floor_price_symbol") or "ETH",
                average_price=total.get("average_price"),
                best_offer=best_offer,
                total_volume=total.get("volume"),
                market_cap=total.get("market_cap"),
                intervals=intervals,
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            raise ProviderResponseError(f"OpenSea collection stats malformed: {e}", provider=self.name) from e
