"""
SATI Models
"""

from .cost_estimator import GasCostEstimator, GasSample, GasSource, LiveGasCostEstimator

__all__ = ["GasCostEstimator", "GasSample", "GasSource", "LiveGasCostEstimator"]
