"""
Shared types for the Matrix price oracle.
"""

import time
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Protocol, Union


def now_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class ChainId(str, Enum):
    """Known blockchain networks."""
    ETHEREUM = "ethereum"
    POLYGON = "polygon"
    OPTIMISM = "optimism"
    ARBITRUM = "arbitrum"
    BASE = "base"

    @property
    def chain_id(self) -> int:
        """Get numeric chain ID."""
        chain_ids = {
            ChainId.ETHEREUM: 1,
            ChainId.POLYGON: 137,
            ChainId.OPTIMISM: 10,
            ChainId.ARBITRUM: 42161,
            ChainId.BASE: 8453,
        }
        return chain_ids[self]


class MonitorState(str, Enum):
    """Opportunity monitor states."""
    IDLE = "idle"
    POLLING = "polling"
    TRIGGERED = "triggered"
    STOPPED = "stopped"


# network -> fee cost in the same unit as price
CostEstimate = Mapping[str, Decimal]


@dataclass(frozen=True)
class PriceSample:
    """Normalized price read from one network's feed."""
    network: str
    asset: str
    price: Decimal
    observed_at_ms: int
    updated_at: int = 0  # On-chain update time, seconds


@dataclass(frozen=True)
class PriceSet:
    """Samples for one asset in one evaluation round, keyed by network."""
    asset: str
    samples: Mapping[str, PriceSample] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for network, sample in self.samples.items():
            if sample.asset != self.asset:
                raise ValueError(
                    f"Sample for {sample.asset} in price set for {self.asset}"
                )
            if sample.network != network:
                raise ValueError(
                    f"Sample from {sample.network} keyed under {network}"
                )
        object.__setattr__(self, "samples", MappingProxyType(dict(self.samples)))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PriceSet):
            return NotImplemented
        return self.asset == other.asset and dict(self.samples) == dict(other.samples)

    def __hash__(self) -> int:
        return hash((self.asset, frozenset(self.samples.items())))

    def __len__(self) -> int:
        return len(self.samples)

    @property
    def networks(self) -> list[str]:
        return sorted(self.samples)

    def prices(self) -> dict[str, Decimal]:
        return {network: s.price for network, s in self.samples.items()}


@dataclass(frozen=True)
class DeviationReport:
    """Spread between the highest and lowest price for one asset."""
    asset: str
    deviation_percent: Decimal
    price_set: PriceSet
    exceeds_threshold: bool
    threshold_percent: Decimal = Decimal(0)
    dropped: tuple[str, ...] = ()
    evaluated_at_ms: int = field(default_factory=now_ms, compare=False)

    @property
    def insufficient_data(self) -> bool:
        return len(self.price_set) < 2


@dataclass(frozen=True)
class TradeRecommendation:
    """Buy-low/sell-high network pair ranked by net profit."""
    buy_network: str
    sell_network: str
    price_difference: Decimal
    estimated_costs: Mapping[str, Decimal]
    potential_profit: Decimal
    costs_complete: bool = True


@dataclass(frozen=True)
class RoundResult:
    """Everything one monitoring round hands to consumers."""
    asset: str
    deviation_report: DeviationReport
    recommendations: tuple[TradeRecommendation, ...] = ()
    costs: Mapping[str, Decimal] = field(default_factory=dict)

    @property
    def triggered(self) -> bool:
        return self.deviation_report.exceeds_threshold


class FeedClient(Protocol):
    """Read-only access to one network's price feed contracts."""

    async def latest_round_data(self, address: str) -> tuple[int, int, int]:
        """Return (raw_value, updated_at, decimals) for a feed address."""
        ...


class CostEstimator(Protocol):
    """Supplies per-network transaction costs at recommendation time."""

    def get_costs(self) -> Union[CostEstimate, Awaitable[CostEstimate]]:
        ...
