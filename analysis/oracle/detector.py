"""
ORACLE - Deviation Detector

Measures the spread of one asset's price across networks.
"""

from decimal import Decimal
from typing import Optional, Union

from shared import (
    AgentLogger,
    DeviationReport,
    InvalidSampleError,
    PriceSample,
    PriceSet,
)
from shared import now_ms as current_time_ms


class DeviationDetector:
    """
    Computes (max - min) / min * 100 over a price set.

    All math is Decimal. Non-positive prices, and samples whose on-chain
    update is older than `max_staleness_ms` when that limit is set, are
    dropped with a warning before comparison. Fewer than two valid samples
    is a non-event, never an error.
    """

    def __init__(self, max_staleness_ms: Optional[int] = None):
        self.logger = AgentLogger("ORACLE-DETECTOR")
        self.max_staleness_ms = max_staleness_ms

    def validate_sample(self, sample: PriceSample, now_ms: int) -> None:
        """Raise InvalidSampleError if a sample can't be compared."""
        if not sample.price.is_finite() or sample.price <= 0:
            raise InvalidSampleError(sample.network, f"non-positive price {sample.price}")

        if self.max_staleness_ms is None:
            return
        # Chainlink reports updatedAt == 0 for a round that never completed
        if sample.updated_at <= 0:
            raise InvalidSampleError(sample.network, "no completed round (updatedAt is 0)")
        age_ms = now_ms - sample.updated_at * 1000
        if age_ms > self.max_staleness_ms:
            raise InvalidSampleError(sample.network, f"stale by {age_ms}ms")

    def detect_deviation(
        self,
        price_set: PriceSet,
        threshold_percent: Union[Decimal, int, float, str],
        now_ms: Optional[int] = None,
    ) -> DeviationReport:
        """
        Build the deviation report for one round.

        Float thresholds are read by their shortest repr, so 0.1 means
        Decimal("0.1") rather than its binary expansion.
        """
        if isinstance(threshold_percent, float):
            threshold_percent = str(threshold_percent)
        threshold = Decimal(threshold_percent)
        evaluated_at = now_ms if now_ms is not None else current_time_ms()

        valid: dict[str, PriceSample] = {}
        dropped: list[str] = []
        for network in sorted(price_set.samples):
            sample = price_set.samples[network]
            try:
                self.validate_sample(sample, evaluated_at)
            except InvalidSampleError as e:
                dropped.append(str(e))
                self.logger.warning(
                    "Dropping invalid sample",
                    asset=price_set.asset,
                    network=network,
                    reason=e.reason,
                )
                continue
            valid[network] = sample

        valid_set = PriceSet(asset=price_set.asset, samples=valid)

        if len(valid) < 2:
            self.logger.info(
                "Insufficient data for deviation",
                asset=price_set.asset,
                samples=len(valid),
            )
            return DeviationReport(
                asset=price_set.asset,
                deviation_percent=Decimal(0),
                price_set=valid_set,
                exceeds_threshold=False,
                threshold_percent=threshold,
                dropped=tuple(dropped),
                evaluated_at_ms=evaluated_at,
            )

        prices = [s.price for s in valid.values()]
        low = min(prices)
        high = max(prices)
        deviation = (high - low) / low * 100

        exceeds = deviation > threshold
        self.logger.debug(
            "Deviation computed",
            asset=price_set.asset,
            deviation_percent=str(deviation),
            exceeds_threshold=exceeds,
        )

        return DeviationReport(
            asset=price_set.asset,
            deviation_percent=deviation,
            price_set=valid_set,
            exceeds_threshold=exceeds,
            threshold_percent=threshold,
            dropped=tuple(dropped),
            evaluated_at_ms=evaluated_at,
        )
