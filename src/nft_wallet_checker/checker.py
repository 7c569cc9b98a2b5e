"""
Wallet verification pipeline
"""

import asyncio
import inspect
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Tuple, Union

from loguru import logger

from .clients.chain import ChainBalanceClient
from .clients.opensea import OpenSeaClient
from .config import Config, config
from .exceptions import ProviderError, ServiceSetupError
from .models import AddressCheckResult, CheckSource
from .utils import is_valid_address

INVALID_ADDRESS_MESSAGE = "Invalid address"
UNKNOWN_ERROR_MESSAGE = "Unknown error checking wallet"
DEGRADED_NOTICE = "Token IDs unavailable: indexing API failed, balance read from chain"

ProgressCallback = Callable[[int, int, List[AddressCheckResult]], Union[None, Awaitable[None]]]


@dataclass
class CheckContext:
    """State for one batch; a new context is created for every run"""
    contract_address: str
    index_api_failed: bool = False


class FallbackController:
    """
    Decides, per address, which provider to consult.

    The indexing API is preferred while ``context.index_api_failed`` is
    False. Its first failure sets the flag, and that address and every
    later address in the batch are read from the chain instead.
    """

    def __init__(self, balance_provider, asset_provider=None):
        self.balance_provider = balance_provider
        self.asset_provider = asset_provider

    def uses_chain(self, context: CheckContext) -> bool:
        return self.asset_provider is None or context.index_api_failed

    async def check(self, address: str, context: CheckContext) -> AddressCheckResult:
        address = address.strip()
        source = CheckSource.CHAIN if self.uses_chain(context) else CheckSource.INDEX_API

        if not is_valid_address(address):
            return AddressCheckResult.failure(address, source, INVALID_ADDRESS_MESSAGE)

        if source == CheckSource.CHAIN:
            return await self._check_on_chain(address, context)

        try:
            assets = await self.asset_provider.get_owned_assets(address, context.contract_address)
        except ProviderError as e:
            logger.warning(f"Indexing API failed for {address}, using chain for the rest of this batch: {e}")
            context.index_api_failed = True
            return await self._check_on_chain(address, context, after_index_failure=True)

        return AddressCheckResult(
            address=address,
            has_token=len(assets) > 0,
            token_count=len(assets),
            token_ids=[asset.token_id for asset in assets],
            assets=assets,
            source=CheckSource.INDEX_API,
        )

    async def _check_on_chain(
        self,
        address: str,
        context: CheckContext,
        after_index_failure: bool = False,
    ) -> AddressCheckResult:
        try:
            balance = await self.balance_provider.get_token_balance(address, context.contract_address)
        except ProviderError as e:
            logger.error(f"Blockchain check failed for {address}: {e}")
            return AddressCheckResult.failure(address, CheckSource.CHAIN, f"Blockchain check failed: {e}")

        if after_index_failure and balance > 0:
            return AddressCheckResult(
                address=address,
                has_token=True,
                token_count=balance,
                source=CheckSource.CHAIN,
                error_message=DEGRADED_NOTICE,
                degraded=True,
            )
        return AddressCheckResult(
            address=address,
            has_token=balance > 0,
            token_count=balance,
            source=CheckSource.CHAIN,
        )


class WalletChecker:
    """Checks batches of wallets for tokens of one collection"""

    def __init__(
        self,
        config_instance: Optional[Config] = None,
        asset_provider=None,
        balance_provider=None,
    ):
        self.config = config_instance or config
        self._asset_provider = asset_provider
        self._balance_provider = balance_provider

    def _create_providers(self) -> Tuple[Optional[OpenSeaClient], ChainBalanceClient]:
        """Build the providers that were not injected"""
        asset_provider = self._asset_provider
        if asset_provider is None and self.config.index_api_enabled:
            asset_provider = OpenSeaClient(
                api_key=self.config.opensea_api_key,
                base_url=self.config.opensea_base_url,
                marketplace_url=self.config.marketplace_url,
                chain=self.config.chain,
                page_limit=self.config.page_limit,
                timeout=self.config.timeout,
            )
        balance_provider = self._balance_provider or ChainBalanceClient(
            rpc_url=self.config.rpc_url,
            timeout=self.config.timeout,
            max_retries=self.config.chain_max_retries,
            retry_delay=self.config.chain_retry_delay,
            verify_connection=self.config.verify_rpc_on_setup,
        )
        return asset_provider, balance_provider

    async def _close_providers(self, *providers) -> None:
        for provider in providers:
            if provider is None:
                continue
            try:
                await provider.close()
            except Exception as e:
                logger.warning(f"Error closing {getattr(provider, 'name', provider)}: {e}")

    async def iter_check_addresses(
        self,
        addresses: Sequence[str],
        contract_address: Optional[str] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[Tuple[int, int, AddressCheckResult]]:
        """
        Check addresses one at a time, yielding ``(completed, total, result)``

        Addresses are processed strictly in order with ``address_delay``
        seconds between them. Setting ``cancel_event`` stops the run before
        the next address.
        """
        total = len(addresses)
        if total == 0:
            return

        context = CheckContext(contract_address=contract_address or self.config.contract_address)
        logger.info(f"Checking {total} wallets against {context.contract_address}")

        asset_provider = balance_provider = None
        try:
            try:
                asset_provider, balance_provider = self._create_providers()
                if asset_provider is not None:
                    await asset_provider.open()
                await balance_provider.open()
            except Exception as e:
                message = str(e) if isinstance(e, ServiceSetupError) else f"{type(e).__name__}: {e}"
                logger.error(f"Error during wallet check setup: {message}")
                source = CheckSource.INDEX_API if asset_provider is not None else CheckSource.CHAIN
                for index, address in enumerate(addresses, start=1):
                    yield index, total, AddressCheckResult.failure(
                        address.strip(), source, f"Service error: {message}"
                    )
                return

            controller = FallbackController(balance_provider, asset_provider)
            for index, address in enumerate(addresses):
                if index > 0 and self.config.address_delay > 0:
                    await asyncio.sleep(self.config.address_delay)
                if cancel_event is not None and cancel_event.is_set():
                    logger.info(f"Wallet check cancelled after {index}/{total} wallets")
                    return

                try:
                    result = await controller.check(address, context)
                except Exception as e:
                    logger.exception(f"Error checking wallet {address}: {e}")
                    source = CheckSource.CHAIN if controller.uses_chain(context) else CheckSource.INDEX_API
                    result = AddressCheckResult.failure(address.strip(), source, UNKNOWN_ERROR_MESSAGE)

                yield index + 1, total, result
        finally:
            await self._close_providers(
                asset_provider if self._asset_provider is None else None,
                balance_provider if self._balance_provider is None else None,
            )

        logger.info(
            f"Wallet check finished: {total} wallets"
            + (" (indexing API fell back to chain)" if context.index_api_failed else "")
        )

    async def check_addresses(
        self,
        addresses: Sequence[str],
        contract_address: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[AddressCheckResult]:
        """
        Check every address and return one result per address, in input order

        ``on_progress(completed, total, partial_results)`` runs after each
        address and may be a coroutine function. If ``cancel_event`` is set
        mid-run, the results accumulated so far are returned.
        """
        results: List[AddressCheckResult] = []
        async for completed, total, result in self.iter_check_addresses(
            addresses, contract_address=contract_address, cancel_event=cancel_event
        ):
            results.append(result)
            if on_progress is not None:
                outcome = on_progress(completed, total, list(results))
                if inspect.isawaitable(outcome):
                    await outcome
        return results
