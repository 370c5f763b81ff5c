"""
ORACLE - Oracle Service

Explicitly constructed facade wiring reader, aggregator, detector and
recommendation engine around one endpoint registry.
"""

from collections.abc import Callable
from decimal import Decimal
from typing import Optional

from shared import (
    AgentLogger,
    CostEstimate,
    DeviationReport,
    FeedClient,
    OracleConfig,
    TradeRecommendation,
)

from .aggregator import PriceAggregator
from .detector import DeviationDetector
from .feed_reader import PriceFeedReader, Web3FeedClient
from .recommender import MissingCostPolicy, RecommendationEngine
from .registry import EndpointRegistry, NetworkEndpoint


class OracleService:
    """Cross-network price oracle. Independent instances share nothing."""

    def __init__(
        self,
        registry: EndpointRegistry,
        call_timeout_ms: int = 5000,
        threshold_percent: Decimal = Decimal("0.5"),
        max_retries: int = 0,
        max_staleness_ms: Optional[int] = None,
        missing_cost_policy: MissingCostPolicy = "zero",
        client_factory: Callable[[NetworkEndpoint], FeedClient] = Web3FeedClient,
    ):
        self.logger = AgentLogger("ORACLE-SERVICE")
        self.registry = registry
        self.threshold_percent = Decimal(threshold_percent)

        self.reader = PriceFeedReader(registry, call_timeout_ms, client_factory)
        self.aggregator = PriceAggregator(self.reader, registry, max_retries)
        self.detector = DeviationDetector(max_staleness_ms)
        self.engine = RecommendationEngine(missing_cost_policy)

    @classmethod
    def from_config(
        cls,
        config: OracleConfig,
        client_factory: Callable[[NetworkEndpoint], FeedClient] = Web3FeedClient,
    ) -> "OracleService":
        return cls(
            EndpointRegistry.from_config(config),
            call_timeout_ms=config.call_timeout_ms,
            threshold_percent=config.threshold_percent,
            max_retries=config.max_retries,
            max_staleness_ms=config.max_staleness_ms,
            missing_cost_policy=config.missing_cost_policy,
            client_factory=client_factory,
        )

    async def get_current_deviation(
        self,
        asset: str,
        threshold_percent: Optional[Decimal] = None,
    ) -> DeviationReport:
        """Run one aggregation round for the asset and measure its deviation."""
        threshold = self.threshold_percent if threshold_percent is None else threshold_percent
        price_set = await self.aggregator.collect_prices(asset)
        return self.detector.detect_deviation(price_set, threshold)

    def recommend(
        self,
        report: DeviationReport,
        costs: CostEstimate,
    ) -> list[TradeRecommendation]:
        return self.engine.recommend(report, costs)

    async def close(self) -> None:
        await self.reader.close()
