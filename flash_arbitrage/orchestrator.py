"""
Analysis pipeline: historical statistics, route evaluation, plans and reports.

Everything is computed off-chain. The settlement backend is called at most
once per execute_best call, and only for a profitable route.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .interfaces import SettlementBackend, SystemTimeProvider, TimeProvider
from .metrics import AnalyzerMetrics
from .route_optimizer import RouteOptimizer
from .route_registry import RouteRegistry
from .statistical_analyzer import StatisticalAnalyzer
from .types import (
    ExecutionPlan,
    OptimalRouteResult,
    ParameterRecommendation,
    SettlementResult,
    TradeData,
)
from .utils import timestamp_to_iso, write_json_report

logger = logging.getLogger(__name__)


class ArbitrageOrchestrator:
    def __init__(
        self,
        registry: RouteRegistry,
        optimizer: RouteOptimizer,
        settlement_backend: SettlementBackend,
        analyzer: Optional[StatisticalAnalyzer] = None,
        metrics: Optional[AnalyzerMetrics] = None,
        time_provider: Optional[TimeProvider] = None,
    ):
        self.registry = registry
        self.optimizer = optimizer
        self.settlement_backend = settlement_backend
        self.analyzer = analyzer or StatisticalAnalyzer()
        self.metrics = metrics
        self.time_provider = time_provider or SystemTimeProvider()

    def recommend(self, trades: Optional[Sequence[TradeData]]) -> Optional[ParameterRecommendation]:
        """Recommendation from the trade history, or None without history."""
        if not trades:
            logger.info("No trade history supplied; plans carry no recommendation")
            return None
        analysis = self.analyzer.analyze_historical_trades(trades)
        return self.analyzer.generate_parameter_recommendations(analysis, trades)

    def analyze_and_plan(
        self, borrow_amount: int, trades: Optional[Sequence[TradeData]] = None
    ) -> List[ExecutionPlan]:
        """
        Full pipeline: analyze history, evaluate every registered route and
        return a plan per profitable route, highest net profit first.
        """
        recommendation = self.recommend(trades)
        routes = self.registry.snapshot()
        if self.metrics:
            self.metrics.update_registered_routes(len(routes))

        plans = [
            ExecutionPlan(
                route=route,
                borrow_amount=borrow_amount,
                breakdown=breakdown,
                recommendation=recommendation,
            )
            for route, breakdown, _ in self.optimizer.evaluate_routes(borrow_amount, routes)
            if breakdown is not None and breakdown.is_profitable
        ]
        plans.sort(key=lambda p: p.net_profit, reverse=True)

        if self.metrics:
            self.metrics.record_analysis_run("plan")
        logger.info(f"Planned {len(plans)} of {len(routes)} routes")
        return plans

    def execute_best(
        self, borrow_amount: int
    ) -> Tuple[OptimalRouteResult, Optional[SettlementResult]]:
        """
        Select the optimal route and settle it if profitable.

        Returns the selection and the settlement result, or None when
        nothing was settled.
        """
        routes = self.registry.snapshot()
        result = self.optimizer.find_optimal_route(borrow_amount, routes)
        if not result.is_profitable:
            logger.info("No profitable route; nothing to execute")
            return result, None

        route = routes[result.best_index]
        settlement = self.settlement_backend.initiate_settlement(
            route.borrow_token, borrow_amount, route.route_id
        )
        if settlement.success:
            logger.info(
                f"Settlement initiated for {route.describe()}: {settlement.tx_reference}"
            )
        else:
            logger.warning(f"Settlement failed for {route.describe()}: {settlement.reason}")
        return result, settlement

    def export_report(self, plans: Sequence[ExecutionPlan], path: Union[str, Path]) -> Path:
        """Write plans and a summary to a JSON file."""
        report = {
            "timestamp": timestamp_to_iso(self.time_provider.current_timestamp()),
            "execution_plans": [plan.to_dict() for plan in plans],
            "summary": {
                "total_opportunities": len(plans),
                "total_potential_profit": str(sum(plan.net_profit for plan in plans)),
            },
        }
        out = write_json_report(report, path)
        logger.info(f"Report exported to {out}")
        return out
