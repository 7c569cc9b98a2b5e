"""Direct contract reads over JSON-RPC"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
from eth_utils import to_checksum_address
from loguru import logger
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_fixed
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.exceptions import Web3Exception

from ..exceptions import (
    InvalidAddressError,
    ProviderError,
    ProviderResponseError,
    ProviderTransportError,
    ServiceSetupError,
)
from ..utils import has_address_format, redact

# ABI fragment for ERC-721 balanceOf
BALANCE_OF_ABI = [
    {
        "inputs": [{"internalType": "address", "name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
]


class ChainBalanceClient:
    """
    Reads token balances straight from the collection contract.

    Each read is retried with a constant delay: ``max_retries`` retries after
    the first attempt, after which the last :class:`ProviderError` propagates.
    The chain path only yields a count, never token identifiers.
    """

    name = "chain"

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 10,
        max_retries: int = 2,
        retry_delay: float = 0.3,
        verify_connection: bool = True,
        web3: Optional[AsyncWeb3] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.verify_connection = verify_connection
        self.web3 = web3
        self._owns_web3 = web3 is None
        self._contracts: Dict[str, Any] = {}

    async def open(self) -> None:
        """Create the web3 client, optionally checking that the node answers"""
        if self.web3 is not None:
            return
        try:
            provider = AsyncHTTPProvider(
                self.rpc_url,
                request_kwargs={"timeout": aiohttp.ClientTimeout(total=self.timeout)},
                # retries belong to get_token_balance only
                exception_retry_configuration=None,
            )
            self.web3 = AsyncWeb3(provider)
        except Exception as e:
            raise ServiceSetupError(f"RPC client could not be created: {self._safe(e)}") from e

        if self.verify_connection:
            try:
                connected = await self.web3.is_connected()
            except Exception as e:
                await self.close()
                raise ServiceSetupError(f"RPC endpoint unreachable: {self._safe(e)}") from e
            if not connected:
                await self.close()
                raise ServiceSetupError("RPC endpoint unreachable")
        logger.info("Chain RPC client initialized")

    async def close(self) -> None:
        if self.web3 is not None and self._owns_web3:
            await self.web3.provider.disconnect()
            self.web3 = None
        self._contracts.clear()

    async def __aenter__(self) -> "ChainBalanceClient":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _safe(self, error: Exception) -> str:
        # RPC URLs frequently embed the provider key as the last path segment
        return redact(str(error), self.rpc_url)

    def _contract(self, contract_address: str):
        key = contract_address.lower()
        if key not in self._contracts:
            self._contracts[key] = self.web3.eth.contract(
                address=to_checksum_address(contract_address),
                abi=BALANCE_OF_ABI,
            )
        return self._contracts[key]

    async def _read_balance(self, address: str, contract_address: str) -> int:
        """Single balanceOf call, with errors translated to ProviderError"""
        if self.web3 is None:
            await self.open()
        try:
            contract = self._contract(contract_address)
            balance = await contract.functions.balanceOf(to_checksum_address(address)).call()
        except (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError) as e:
            raise ProviderTransportError(f"RPC request failed: {self._safe(e)}", provider=self.name) from e
        except (Web3Exception, ValueError) as e:
            raise ProviderResponseError(f"balanceOf call failed: {self._safe(e)}", provider=self.name) from e

        try:
            balance = int(balance)
        except (TypeError, ValueError) as e:
            raise ProviderResponseError(f"Unexpected balanceOf result: {balance!r}", provider=self.name) from e
        if balance < 0:
            raise ProviderResponseError(f"Negative balance returned: {balance}", provider=self.name)
        return balance

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.debug(
            f"balanceOf attempt {retry_state.attempt_number}/{self.max_retries + 1} failed ({error}), "
            f"retrying in {self.retry_delay}s"
        )

    async def get_token_balance(self, address: str, contract_address: str) -> int:
        """
        Get the number of collection tokens held by ``address``

        Raises:
            InvalidAddressError: if either address is malformed (not retried)
            ProviderError: once the retry budget is exhausted
        """
        for value in (address, contract_address):
            if not has_address_format(value):
                raise InvalidAddressError(value)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.retry_delay),
            retry=retry_if_exception_type(ProviderError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._read_balance(address, contract_address)
