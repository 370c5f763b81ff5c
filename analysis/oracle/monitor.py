"""
ORACLE - Opportunity Monitor

Periodically re-evaluates every watched asset and publishes the results.
"""

import asyncio
import inspect
from collections.abc import Callable, Iterable
from decimal import Decimal
from typing import Any, Optional

from shared import (
    AgentLogger,
    CostEstimate,
    CostEstimator,
    MonitorState,
    RoundResult,
)

from .service import OracleService

RoundHandler = Callable[[RoundResult], Any]


class OpportunityMonitor:
    """
    Single-flight scheduler over aggregation, detection and recommendation.

    A tick evaluates each asset in turn. The next tick starts `interval_ms`
    after the previous one finished, so rounds never overlap. `stop()` sets
    the stop event, which ends the wait between ticks.
    """

    def __init__(
        self,
        service: OracleService,
        cost_estimator: CostEstimator,
        assets: Iterable[str],
        threshold_percent: Optional[Decimal] = None,
        interval_ms: int = 60_000,
        cost_timeout_ms: int = 5000,
    ):
        self.logger = AgentLogger("ORACLE-MONITOR")
        self.service = service
        self.cost_estimator = cost_estimator
        self.assets = list(assets)
        self.threshold_percent = (
            service.threshold_percent if threshold_percent is None else Decimal(threshold_percent)
        )
        self.interval_ms = interval_ms
        self.cost_timeout_ms = cost_timeout_ms

        self.state = MonitorState.IDLE
        self.round_handlers: list[RoundHandler] = []
        self.last_results: dict[str, RoundResult] = {}

        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

        # Statistics
        self.rounds_completed = 0
        self.rounds_failed = 0
        self.rounds_triggered = 0

        self.logger.info(
            "Opportunity monitor initialized",
            assets=self.assets,
            threshold_percent=str(self.threshold_percent),
            interval_ms=interval_ms,
        )

    def on_round(self, handler: RoundHandler) -> None:
        """Register a handler for completed rounds. May be sync or async."""
        self.round_handlers.append(handler)

    async def run_round(self, asset: str) -> Optional[RoundResult]:
        """Aggregate, detect and (if triggered) recommend for one asset."""
        logger = self.logger.bind(asset=asset)
        self.state = MonitorState.POLLING
        try:
            report = await self.service.get_current_deviation(asset, self.threshold_percent)

            if report.insufficient_data:
                logger.info("Insufficient data", samples=len(report.price_set))

            if report.exceeds_threshold:
                self.state = MonitorState.TRIGGERED
                self.rounds_triggered += 1
                costs = await self._fetch_costs()
                recommendations = self.service.recommend(report, costs)
                result = RoundResult(
                    asset=asset,
                    deviation_report=report,
                    recommendations=tuple(recommendations),
                    costs=dict(costs),
                )
                logger.info(
                    "Deviation above threshold",
                    deviation_percent=str(report.deviation_percent),
                    recommendations=len(recommendations),
                )
            else:
                result = RoundResult(asset=asset, deviation_report=report)
        except Exception as e:
            self.rounds_failed += 1
            logger.exception("Monitoring round failed", error=str(e))
            return None
        finally:
            if self.state != MonitorState.STOPPED:
                self.state = MonitorState.IDLE

        self.rounds_completed += 1
        self.last_results[asset] = result
        await self._publish(result)
        return result

    async def run_once(self) -> list[RoundResult]:
        """Run one tick over all watched assets."""
        results = []
        for asset in self.assets:
            result = await self.run_round(asset)
            if result is not None:
                results.append(result)
        return results

    async def run(self) -> None:
        """Tick until stopped."""
        self.logger.info("Monitor started", assets=self.assets)
        try:
            while not self._stop.is_set():
                await self.run_once()
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.interval_ms / 1000)
                except asyncio.TimeoutError:
                    pass
        finally:
            self.state = MonitorState.STOPPED
            self.logger.info("Monitor stopped", **self.get_stats())

    def start(self) -> asyncio.Task:
        """Schedule `run()` on the running loop."""
        if self._task is not None and not self._task.done():
            raise RuntimeError("Monitor already running")
        self._stop.clear()
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self, cancel_in_flight: bool = False) -> None:
        """Stop after the in-flight tick, or abandon it if asked."""
        self._stop.set()
        task = self._task
        if task is None:
            self.state = MonitorState.STOPPED
            return
        if cancel_in_flight:
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _fetch_costs(self) -> CostEstimate:
        costs = self.cost_estimator.get_costs()
        if inspect.isawaitable(costs):
            costs = await asyncio.wait_for(costs, timeout=self.cost_timeout_ms / 1000)
        return costs

    async def _publish(self, result: RoundResult) -> None:
        for handler in self.round_handlers:
            try:
                outcome = handler(result)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception as e:
                self.logger.error("Handler error", asset=result.asset, error=str(e))

    def get_stats(self) -> dict:
        """Get monitor statistics."""
        return {
            "state": self.state.value,
            "rounds_completed": self.rounds_completed,
            "rounds_failed": self.rounds_failed,
            "rounds_triggered": self.rounds_triggered,
        }
