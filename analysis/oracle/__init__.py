"""
ORACLE - Cross-Network Price Oracle

"You do not truly know someone until you fight them."

Reads the same asset price from several networks, measures how far they
drift apart, and ranks the arbitrage that drift would pay for.
"""

from .aggregator import PriceAggregator
from .detector import DeviationDetector
from .feed_reader import PriceFeedReader, Web3FeedClient
from .gas_source import Web3GasSource
from .monitor import OpportunityMonitor
from .recommender import RecommendationEngine
from .registry import EndpointRegistry, NetworkEndpoint
from .service import OracleService

__all__ = [
    "EndpointRegistry",
    "NetworkEndpoint",
    "PriceFeedReader",
    "Web3FeedClient",
    "Web3GasSource",
    "PriceAggregator",
    "DeviationDetector",
    "RecommendationEngine",
    "OpportunityMonitor",
    "OracleService",
]
