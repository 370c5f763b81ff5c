"""
Run the opportunity monitor from environment configuration.

    python -m oracle
"""

import asyncio
from decimal import Decimal

from sati import LiveGasCostEstimator
from shared import AgentLogger, RoundResult, configure_from_config, get_config

from .gas_source import Web3GasSource
from .monitor import OpportunityMonitor
from .service import OracleService


def log_round(result: RoundResult) -> None:
    logger = AgentLogger("ORACLE-REPORT")
    report = result.deviation_report
    logger.info(
        "Round complete",
        asset=result.asset,
        deviation_percent=str(report.deviation_percent),
        exceeds_threshold=report.exceeds_threshold,
        networks=report.price_set.networks,
        dropped=list(report.dropped),
    )
    for rec in result.recommendations[:3]:
        logger.info(
            "Recommendation",
            asset=result.asset,
            buy=rec.buy_network,
            sell=rec.sell_network,
            potential_profit=str(rec.potential_profit),
            costs_complete=rec.costs_complete,
        )


async def main() -> None:
    config = get_config()
    configure_from_config(config)

    service = OracleService.from_config(config)
    registry = service.registry

    gas_sources = {
        network: Web3GasSource(registry.get(network))
        for network in registry.networks
        if config.gas_tokens.get(network) in registry.get(network).feeds
    }
    uncosted = sorted(set(registry.networks) - set(gas_sources))
    if uncosted:
        AgentLogger("ORACLE-MAIN").warning("No gas token feed, networks uncosted", networks=uncosted)

    async def gas_token_price(network: str) -> Decimal:
        sample = await service.reader.read_price(network, config.gas_tokens[network])
        return sample.price

    estimator = LiveGasCostEstimator(
        gas_sources,
        gas_token_price,
        timeout_ms=config.gas_timeout_ms,
        gas_units=config.gas_units,
    )
    monitor = OpportunityMonitor(
        service,
        estimator,
        assets=config.assets,
        threshold_percent=config.threshold_percent,
        interval_ms=config.poll_interval_ms,
        cost_timeout_ms=config.cost_timeout_ms,
    )
    monitor.on_round(log_round)

    try:
        await monitor.run()
    finally:
        await monitor.stop()
        await service.close()
        for source in gas_sources.values():
            await source.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
