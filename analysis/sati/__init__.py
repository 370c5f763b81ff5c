"""
SATI - Cost Estimation Agent

"I made a choice, and that choice was to love."

Learns gas price patterns per network and prices what a trade would cost
to execute there.
"""

from .models.cost_estimator import GasCostEstimator, GasSample, GasSource, LiveGasCostEstimator

__all__ = ["GasCostEstimator", "GasSample", "GasSource", "LiveGasCostEstimator"]
