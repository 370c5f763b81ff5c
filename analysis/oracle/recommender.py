"""
ORACLE - Recommendation Engine

Ranks buy-low/sell-high network pairs by profit net of fee costs.
"""

from decimal import Decimal
from itertools import combinations
from typing import Literal

from shared import AgentLogger, CostEstimate, DeviationReport, TradeRecommendation

MissingCostPolicy = Literal["zero", "exclude"]


class RecommendationEngine:
    """
    Enumerates every unordered network pair in a deviation report.

    With the "zero" policy a network missing from the cost estimate is
    priced at zero cost and its recommendations are marked
    `costs_complete=False`; with "exclude" such networks are left out of
    the ranking entirely.
    """

    def __init__(self, missing_cost_policy: MissingCostPolicy = "zero"):
        if missing_cost_policy not in ("zero", "exclude"):
            raise ValueError(f"Unknown missing cost policy: {missing_cost_policy}")
        self.logger = AgentLogger("ORACLE-RECOMMENDER")
        self.missing_cost_policy = missing_cost_policy

    def recommend(
        self,
        report: DeviationReport,
        costs: CostEstimate,
    ) -> list[TradeRecommendation]:
        """Produce recommendations sorted by potential profit, best first."""
        for network, cost in costs.items():
            if cost < 0:
                raise ValueError(f"Negative cost for {network}: {cost}")

        prices = report.price_set.prices()
        networks = sorted(prices)

        missing = [n for n in networks if n not in costs]
        if missing:
            self.logger.warning(
                "Cost estimate missing networks",
                asset=report.asset,
                networks=missing,
                policy=self.missing_cost_policy,
            )
            if self.missing_cost_policy == "exclude":
                networks = [n for n in networks if n in costs]

        recommendations = []
        for first, second in combinations(networks, 2):
            # Equal prices: the lexicographically smaller network buys
            if prices[second] < prices[first]:
                buy, sell = second, first
            else:
                buy, sell = first, second

            difference = prices[sell] - prices[buy]
            buy_cost = Decimal(costs.get(buy, 0))
            sell_cost = Decimal(costs.get(sell, 0))

            recommendations.append(TradeRecommendation(
                buy_network=buy,
                sell_network=sell,
                price_difference=difference,
                estimated_costs={buy: buy_cost, sell: sell_cost},
                potential_profit=difference - (buy_cost + sell_cost),
                costs_complete=buy in costs and sell in costs,
            ))

        recommendations.sort(key=lambda r: (r.buy_network, r.sell_network))
        recommendations.sort(key=lambda r: r.potential_profit, reverse=True)

        if recommendations:
            best = recommendations[0]
            self.logger.debug(
                "Recommendations ranked",
                asset=report.asset,
                count=len(recommendations),
                best_buy=best.buy_network,
                best_sell=best.sell_network,
                best_profit=str(best.potential_profit),
            )

        return recommendations
