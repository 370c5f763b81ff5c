"""
ORACLE - Price Aggregator

Fans price reads out across every network carrying the asset's feed and
collects whatever comes back.
"""

import asyncio
from collections import defaultdict
from typing import Dict, Optional

from shared import (
    AgentLogger,
    FeedNotFoundError,
    PriceSample,
    PriceSet,
    SourceUnavailableError,
)

from .feed_reader import PriceFeedReader
from .registry import EndpointRegistry


class PriceAggregator:
    """
    Collects one price per network for an asset, best effort.

    Each network read runs as its own task and captures its own error, so
    one failing or slow source never drops the others' results. A round is
    combined only after every read has settled.
    """

    def __init__(
        self,
        reader: PriceFeedReader,
        registry: EndpointRegistry,
        max_retries: int = 0,
    ):
        self.logger = AgentLogger("ORACLE-AGGREGATOR")
        self.reader = reader
        self.registry = registry
        self.max_retries = max_retries

        # Statistics
        self.rounds = 0
        self.samples_collected = 0
        self.failures: Dict[str, int] = defaultdict(int)

        self.logger.info(
            "Price aggregator initialized",
            networks=registry.networks,
            max_retries=max_retries,
        )

    async def collect_prices(self, asset: str) -> PriceSet:
        """Read the asset on every network that has a feed for it, concurrently."""
        logger = self.logger.bind(asset=asset)
        networks = self.registry.networks_for(asset)
        results = await asyncio.gather(
            *(self._read(network, asset, logger) for network in networks)
        )

        samples = {sample.network: sample for sample in results if sample is not None}

        self.rounds += 1
        self.samples_collected += len(samples)

        if not samples:
            logger.warning("No prices collected", networks=networks)
        else:
            logger.debug(
                "Prices collected",
                networks=sorted(samples),
                missing=sorted(set(networks) - set(samples)),
            )

        return PriceSet(asset=asset, samples=samples)

    async def _read(
        self, network: str, asset: str, logger: AgentLogger
    ) -> Optional[PriceSample]:
        logger = logger.bind(network=network)
        attempts = self.max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await self.reader.read_price(network, asset)
            except FeedNotFoundError as e:
                self.failures[network] += 1
                logger.info("No feed configured", error=str(e))
                return None
            except SourceUnavailableError as e:
                if attempt < attempts:
                    logger.debug("Retrying price read", attempt=attempt, error=e.reason)
                    continue
                self.failures[network] += 1
                logger.warning("Price source unavailable", attempts=attempt, error=e.reason)
                return None
            except Exception as e:
                self.failures[network] += 1
                logger.exception("Unexpected price read failure", error=str(e))
                return None
        return None

    def get_stats(self) -> Dict:
        """Get aggregator statistics."""
        return {
            "rounds": self.rounds,
            "samples_collected": self.samples_collected,
            "failures": dict(self.failures),
            "networks": len(self.registry),
        }
