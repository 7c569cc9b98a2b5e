"""Base client with common HTTP functionality"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from ..exceptions import ProviderResponseError, ProviderTransportError, ServiceSetupError
from ..models import AssetSummary
from ..utils import redact


class BaseAPIClient(ABC):
    """
    Base class for HTTP API clients with rate limiting and a shared session.

    The session is opened once per batch with :meth:`open` and reused for
    every request until :meth:`close`. Requests are not retried here; callers
    decide what a failure means.
    """

    name = "http"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        rate_limit: float = 4.0,
        timeout: int = 10,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.rate_limit = rate_limit
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None
        self._last_request_time = 0.0
        self._min_request_interval = 1.0 / rate_limit if rate_limit > 0 else 0.0

    async def open(self) -> None:
        """Create the HTTP session"""
        if self._session is not None:
            return
        try:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        except Exception as e:
            raise ServiceSetupError(f"{self.name} client could not be created: {e}") from e
        self._owns_session = True

    async def close(self) -> None:
        """Close the HTTP session if this client created it"""
        if self._session is not None and self._owns_session:
            await self._session.close()
        if self._owns_session:
            self._session = None

    async def __aenter__(self) -> "BaseAPIClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _default_headers(self) -> Dict[str, str]:
        return {"accept": "application/json"}

    async def _apply_rate_limit(self):
        """Rate limiting"""
        current_time = time.monotonic()
        time_since_last = current_time - self._last_request_time
        if time_since_last < self._min_request_interval:
            await asyncio.sleep(self._min_request_interval - time_since_last)
        self._last_request_time = time.monotonic()

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body"""
        if self._session is None:
            await self.open()
        await self._apply_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        request_headers = self._default_headers()
        if headers:
            request_headers.update(headers)

        try:
            async with self._session.request(
                method=method,
                url=url,
                params=params,
                headers=request_headers,
            ) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    message = redact(f"{self.name} API error: {response.status} {body[:200]}", self.api_key)
                    logger.error(message)
                    raise ProviderResponseError(message, provider=self.name, status_code=response.status)
                try:
                    return await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise ProviderResponseError(
                        f"{self.name} API returned malformed JSON", provider=self.name, status_code=response.status
                    ) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            message = redact(f"{self.name} request failed: {e!r}", self.api_key)
            logger.error(message)
            raise ProviderTransportError(message, provider=self.name) from e

    @abstractmethod
    async def get_owned_assets(self, address: str, contract_address: str) -> List[AssetSummary]:
        """Get the tokens of one collection owned by an address"""
        pass
