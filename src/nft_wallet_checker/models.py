"""
Pydantic models for wallet check results and collection statistics
"""

from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CheckSource(str, Enum):
    """Provider that produced a result"""
    INDEX_API = "index_api"
    CHAIN = "chain"


class AssetSummary(BaseModel):
    """One token owned by a wallet, as reported by the indexing API"""

    token_id: str
    display_name: Optional[str] = None
    image_url: Optional[str] = None
    external_url: str


class AddressCheckResult(BaseModel):
    """
    Outcome of checking a single address.

    Which optional fields are populated depends on the path taken:

    - indexing API success: ``token_count``, ``token_ids`` and ``assets``
    - chain path: ``token_count`` only
    - failures: ``error_message`` with ``has_token=False``

    A degraded success (indexing API failed, chain read found tokens) keeps
    ``has_token=True`` and carries an informational ``error_message`` with
    ``degraded=True``.
    """

    model_config = ConfigDict(use_enum_values=True)

    address: str
    has_token: bool
    source: CheckSource
    token_count: Optional[int] = Field(default=None, ge=0)
    token_ids: Optional[List[str]] = None
    assets: Optional[List[AssetSummary]] = None
    error_message: Optional[str] = None
    degraded: bool = False

    @model_validator(mode="after")
    def _check_consistency(self) -> "AddressCheckResult":
        if self.has_token and self.token_count is not None and self.token_count == 0:
            raise ValueError("has_token requires a positive token_count")
        if self.error_message and self.has_token and not self.degraded:
            raise ValueError("a failed check cannot report a holding")
        if self.degraded and not self.error_message:
            raise ValueError("degraded results must carry a notice")
        if self.source == CheckSource.CHAIN and (self.token_ids is not None or self.assets is not None):
            raise ValueError("chain results carry no token identifiers")
        return self

    @property
    def is_error(self) -> bool:
        """True for hard failures, False for successes and degraded successes"""
        return bool(self.error_message) and not self.degraded

    @classmethod
    def failure(cls, address: str, source: CheckSource, message: str) -> "AddressCheckResult":
        return cls(address=address, has_token=False, source=source, error_message=message)


class BatchSummary(BaseModel):
    """Counts shown under a results table"""
    total: int = 0
    holders: int = 0
    non_holders: int = 0
    errors: int = 0


def summarize(results: Iterable[AddressCheckResult]) -> BatchSummary:
    """Tally holders, non-holders and errors for a batch"""
    summary = BatchSummary()
    for result in results:
        summary.total += 1
        if result.is_error:
            summary.errors += 1
        elif result.has_token:
            summary.holders += 1
        else:
            summary.non_holders += 1
    return summary


class StatsInterval(BaseModel):
    """Per-interval market figures (one_day, seven_day, thirty_day)"""
    interval: str
    volume: Optional[float] = None
    volume_change: Optional[float] = None
    sales: Optional[int] = None
    average_price: Optional[float] = None


class CollectionStats(BaseModel):
    """Collection statistics"""

    slug: str
    name: Optional[str] = None
    contract_address: Optional[str] = None

    # Counts
    total_supply: Optional[int] = None
    num_owners: Optional[int] = None
    num_sales: Optional[int] = None

    # Pricing
    floor_price: Optional[float] = None
    floor_price_symbol: str = "ETH"
    average_price: Optional[float] = None
    best_offer: Optional[float] = None

    # Volume
    total_volume: Optional[float] = None
    market_cap: Optional[float] = None

    intervals: List[StatsInterval] = Field(default_factory=list)
