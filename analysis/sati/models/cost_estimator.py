"""
SATI - Gas Cost Estimator

Turns per-network gas price history into a transaction cost quoted in the
oracle's price unit.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Protocol

import numpy as np

from shared import AgentLogger, OracleError


@dataclass
class GasSample:
    """Historical gas price sample."""
    timestamp_ms: int
    base_fee_gwei: float
    priority_fee_gwei: float
    block_utilization: float


class GasCostEstimator:
    """
    Cost estimator collaborator for the recommendation engine.

    cost = gas_price_gwei * 1e-9 * gas_units * native_price

    A network only appears in `get_costs()` once its native token price is
    known. Without samples the default base and priority fees are used.
    """

    PERCENTILES = {
        "low": 25,
        "medium": 50,
        "high": 75,
        "urgent": 90,
    }

    def __init__(
        self,
        networks: Iterable[str],
        gas_units: int = 150_000,
        urgency: str = "medium",
        history_size: int = 1000,
        default_base_fee_gwei: float = 30.0,
        default_priority_fee_gwei: float = 1.0,
    ):
        if urgency not in self.PERCENTILES:
            raise ValueError(f"Unknown urgency: {urgency}")

        self.logger = AgentLogger("SATI-COST")
        self.networks = list(networks)
        self.gas_units = gas_units
        self.urgency = urgency
        self.history_size = history_size
        self.default_base_fee_gwei = default_base_fee_gwei
        self.default_priority_fee_gwei = default_priority_fee_gwei

        self.samples: dict[str, deque[GasSample]] = {
            n: deque(maxlen=history_size) for n in self.networks
        }
        self.native_prices: dict[str, Decimal] = {}

        # Statistics
        self.samples_processed = 0

        self.logger.info(
            "Gas cost estimator initialized",
            networks=self.networks,
            gas_units=gas_units,
            urgency=urgency,
        )

    def add_sample(self, network: str, sample: GasSample) -> None:
        """Add a gas price sample for a network."""
        if network not in self.samples:
            self.samples[network] = deque(maxlen=self.history_size)
            self.networks.append(network)
        self.samples[network].append(sample)
        self.samples_processed += 1

    def set_native_price(self, network: str, price: Decimal) -> None:
        """Set the network's gas token price, in the oracle's price unit."""
        price = Decimal(price)
        if price < 0:
            raise ValueError(f"Negative native price for {network}: {price}")
        self.native_prices[network] = price

    def get_gas_price(self, network: str, urgency: Optional[str] = None) -> float:
        """Get the gas price in gwei for a network at an urgency level."""
        urgency = urgency or self.urgency
        samples = self.samples.get(network)
        if not samples:
            return self.default_base_fee_gwei + self.default_priority_fee_gwei

        # Last 10 samples drive the base fee, full history the priority fee
        recent = list(samples)[-10:]
        base_fee = float(np.mean([s.base_fee_gwei for s in recent]))
        priority_fees = [s.priority_fee_gwei for s in samples]
        priority_fee = float(np.percentile(priority_fees, self.PERCENTILES.get(urgency, 50)))

        return max(0.0, base_fee + priority_fee)

    def get_costs(self) -> dict[str, Decimal]:
        """Cost of one transaction on each network with a known native price."""
        costs = {}
        for network in self.networks:
            native_price = self.native_prices.get(network)
            if native_price is None:
                continue
            gas_price = Decimal(str(self.get_gas_price(network)))
            costs[network] = gas_price * Decimal("1e-9") * self.gas_units * native_price

        missing = [n for n in self.networks if n not in costs]
        if missing:
            self.logger.debug("No native price for networks", networks=missing)

        return costs

    def get_stats(self) -> dict:
        """Get estimator statistics."""
        stats = {
            "samples_processed": self.samples_processed,
            "networks_priced": len(self.native_prices),
        }
        for network, samples in self.samples.items():
            if samples:
                fees = [s.priority_fee_gwei for s in samples]
                stats[f"{network}_priority_fee_std"] = round(float(np.std(fees)), 2)
        return stats


class GasSource(Protocol):
    """Live fee market reader for one network."""

    async def fee_sample(self) -> GasSample:
        ...


class LiveGasCostEstimator(GasCostEstimator):
    """
    GasCostEstimator that refreshes itself on every cost request.

    Each request samples every network's fee market and re-prices its gas
    token, all concurrently and each bounded by `timeout_ms`. A network
    whose refresh fails keeps its previous samples and price; one that was
    never priced stays out of the estimate.
    """

    def __init__(
        self,
        gas_sources: Mapping[str, GasSource],
        native_price: Callable[[str], Awaitable[Decimal]],
        timeout_ms: int = 3000,
        **kwargs,
    ):
        super().__init__(list(gas_sources), **kwargs)
        self.gas_sources = dict(gas_sources)
        self.native_price = native_price
        self.timeout_ms = timeout_ms
        self.refresh_failures = 0

    async def refresh(self) -> None:
        """Sample gas prices and gas token prices on all networks."""
        await asyncio.gather(*(self._refresh_network(n) for n in self.gas_sources))

    async def _refresh_network(self, network: str) -> None:
        timeout = self.timeout_ms / 1000
        try:
            sample = await asyncio.wait_for(self.gas_sources[network].fee_sample(), timeout)
            self.add_sample(network, sample)
            price = await asyncio.wait_for(self.native_price(network), timeout)
            self.set_native_price(network, price)
        except (OracleError, asyncio.TimeoutError, ValueError) as e:
            self.refresh_failures += 1
            self.logger.warning("Gas refresh failed", network=network, error=str(e))

    async def get_costs(self) -> dict[str, Decimal]:
        await self.refresh()
        return super().get_costs()

    def get_stats(self) -> dict:
        stats = super().get_stats()
        stats["refresh_failures"] = self.refresh_failures
        return stats
