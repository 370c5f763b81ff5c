"""
Matrix Shared - Common types and utilities for the price oracle.
"""

from .config import NetworkConfig, OracleConfig, get_config
from .errors import (
    ConfigurationError,
    FeedNotFoundError,
    InvalidSampleError,
    OracleError,
    SourceUnavailableError,
)
from .logger import AgentLogger, configure_from_config, configure_logging
from .types import (
    ChainId,
    CostEstimate,
    CostEstimator,
    DeviationReport,
    FeedClient,
    MonitorState,
    PriceSample,
    PriceSet,
    RoundResult,
    TradeRecommendation,
    now_ms,
)

__all__ = [
    # Types
    "ChainId",
    "MonitorState",
    "PriceSample",
    "PriceSet",
    "DeviationReport",
    "TradeRecommendation",
    "RoundResult",
    "CostEstimate",
    "CostEstimator",
    "FeedClient",
    "now_ms",
    # Errors
    "OracleError",
    "FeedNotFoundError",
    "SourceUnavailableError",
    "InvalidSampleError",
    "ConfigurationError",
    # Config
    "get_config",
    "OracleConfig",
    "NetworkConfig",
    # Logger
    "AgentLogger",
    "configure_logging",
    "configure_from_config",
]
