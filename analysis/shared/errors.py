"""
Error taxonomy for the Matrix price oracle.

Per-network errors are contained by the aggregator and detector; only
ConfigurationError is meant to stop the process.
"""

from typing import Any, Dict, Optional


class OracleError(Exception):
    """Base class for oracle errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}


class FeedNotFoundError(OracleError):
    """No price feed registered for a network/asset pair."""

    def __init__(self, network: str, asset: Optional[str] = None):
        if asset is None:
            message = f"Network not registered: {network}"
        else:
            message = f"Price feed not found for {asset} on {network}"
        super().__init__(message, {"network": network, "asset": asset})
        self.network = network
        self.asset = asset


class SourceUnavailableError(OracleError):
    """Transient failure reading from a network: connection, timeout, bad payload."""

    def __init__(self, network: str, reason: str, asset: Optional[str] = None):
        super().__init__(
            f"Source unavailable on {network}: {reason}",
            {"network": network, "asset": asset, "reason": reason},
        )
        self.network = network
        self.asset = asset
        self.reason = reason


class InvalidSampleError(OracleError):
    """Price sample that cannot take part in deviation math."""

    def __init__(self, network: str, reason: str):
        super().__init__(
            f"Invalid sample from {network}: {reason}",
            {"network": network, "reason": reason},
        )
        self.network = network
        self.reason = reason


class ConfigurationError(OracleError):
    """Static configuration is unusable."""
