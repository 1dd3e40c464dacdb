"""
Historical trade statistics and parameter recommendations.

All statistics are integer fixed-point. Profits are per 1e18 units of
principal, so profit * 10_000 // PRECISION reads as basis points.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from .exceptions import InsufficientData, InvalidInput
from .fixed_point import (
    BPS_DENOMINATOR,
    PRECISION,
    integer_sqrt,
    median,
    percentile,
    saturating_sub,
)
from .types import GasEfficiency, ParameterRecommendation, StatisticalAnalysis, TradeData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisSettings:
    max_trades: int = 1000
    min_trades_for_confidence: int = 10
    min_profit_floor_bps: int = 50
    slippage_percentile: int = 95
    deadline_percentile: int = 99
    deadline_buffer_seconds: int = 30


class StatisticalAnalyzer:
    """Summarizes historical executions and derives trading parameters."""

    def __init__(self, settings: Optional[AnalysisSettings] = None):
        self.settings = settings or AnalysisSettings()

    def _check_trades(self, trades: Sequence[TradeData]) -> None:
        if not trades:
            raise InsufficientData("No historical trades to analyze")
        if len(trades) > self.settings.max_trades:
            raise InvalidInput(
                f"Too many trades: {len(trades)} (max {self.settings.max_trades})"
            )

    def analyze_historical_trades(self, trades: Sequence[TradeData]) -> StatisticalAnalysis:
        """
        Descriptive statistics over a trade sample.

        The standard deviation is the population one: each squared deviation
        is descaled by PRECISION, averaged over N, then rescaled before the
        integer square root.

        Raises:
            InsufficientData: If trades is empty
            InvalidInput: If trades exceeds max_trades
        """
        self._check_trades(trades)
        n = len(trades)

        total_profit = 0
        total_gas = 0
        successes = 0
        min_profit = trades[0].profit
        max_profit = trades[0].profit
        for trade in trades:
            total_profit += trade.profit
            total_gas += trade.gas_used
            if trade.profit > 0:
                successes += 1
            min_profit = min(min_profit, trade.profit)
            max_profit = max(max_profit, trade.profit)

        mean_profit = total_profit // n

        variance = 0
        for trade in trades:
            diff = abs(trade.profit - mean_profit)
            variance += diff * diff // PRECISION
        variance //= n
        std_deviation = integer_sqrt(variance * PRECISION)

        analysis = StatisticalAnalysis(
            mean_profit=mean_profit,
            median_profit=median(sorted(t.profit for t in trades)),
            std_deviation=std_deviation,
            min_profit=min_profit,
            max_profit=max_profit,
            success_rate_bps=successes * BPS_DENOMINATOR // n,
            average_gas_used=total_gas // n,
            total_trades=n,
        )
        logger.info(
            f"Analyzed {n} trades: mean={mean_profit} std={std_deviation} "
            f"success={analysis.success_rate_bps}bps"
        )
        return analysis

    def generate_parameter_recommendations(
        self, analysis: StatisticalAnalysis, trades: Sequence[TradeData]
    ) -> ParameterRecommendation:
        """Derive trading parameters from an analysis and its trade sample."""
        self._check_trades(trades)
        s = self.settings

        conservative = saturating_sub(analysis.mean_profit, analysis.std_deviation)
        min_profit_bps = max(
            s.min_profit_floor_bps, conservative * BPS_DENOMINATOR // PRECISION
        )

        slippages = sorted(t.slippage_bps for t in trades)
        durations = sorted(t.execution_time_seconds for t in trades)

        recommendation = ParameterRecommendation(
            min_profit_bps=min_profit_bps,
            max_slippage_bps=percentile(slippages, s.slippage_percentile),
            deadline_seconds=percentile(durations, s.deadline_percentile)
            + s.deadline_buffer_seconds,
            gas_units_estimate=analysis.average_gas_used * 3 // 2,
            confidence_bps=self.confidence_bps(analysis),
            reasoning=self.reasoning(analysis),
        )
        logger.debug(f"Recommendation: {recommendation}")
        return recommendation

    @staticmethod
    def confidence_bps(analysis: StatisticalAnalysis) -> int:
        """
        Confidence from the coefficient of variation, in bps.

        Full confidence for a zero spread; zero for a zero mean or a CV of 1
        or more; otherwise PRECISION / (PRECISION + cv).
        """
        if analysis.std_deviation == 0:
            return BPS_DENOMINATOR
        if analysis.mean_profit == 0:
            return 0
        cv = analysis.std_deviation * PRECISION // analysis.mean_profit
        if cv >= PRECISION:
            return 0
        return PRECISION * BPS_DENOMINATOR // (PRECISION + cv)

    def reasoning(self, analysis: StatisticalAnalysis) -> str:
        if analysis.total_trades < self.settings.min_trades_for_confidence:
            return (
                f"Insufficient data: {analysis.total_trades} trades "
                f"(need {self.settings.min_trades_for_confidence}); use conservative defaults"
            )
        rate = analysis.success_rate_bps
        if rate >= 9000:
            return "High success rate: parameters can be applied with confidence"
        if rate >= 7500:
            return "Good success rate: parameters are reasonable, monitor closely"
        if rate >= 5000:
            return "Moderate success rate: consider tightening profit thresholds"
        return "Low success rate: review routes and raise profit thresholds"

    def analyze_gas_efficiency(
        self, trades: Sequence[TradeData], default_gas_price_wei: int = 0
    ) -> GasEfficiency:
        """
        Profit earned per unit of gas spent.

        Trades without a recorded gas price use default_gas_price_wei. Trades
        whose gas cost is zero are left out of the profit-per-gas average.
        """
        self._check_trades(trades)

        total_cost = 0
        ratios = []
        for trade in trades:
            gas_price = trade.gas_price_wei or default_gas_price_wei
            gas_cost = trade.gas_used * gas_price
            total_cost += gas_cost
            if gas_cost > 0:
                ratios.append(trade.profit * PRECISION // gas_cost)

        profit_per_gas = sum(ratios) // len(ratios) if ratios else 0
        if not ratios:
            advice = "No gas cost data: record gas prices to assess efficiency"
        elif profit_per_gas > PRECISION:
            advice = "Profitable after gas: current gas strategy is efficient"
        else:
            advice = "Gas costs exceed profit: raise gas-adjusted profit thresholds"

        return GasEfficiency(
            average_gas_cost=total_cost // len(trades),
            profit_per_gas_unit=profit_per_gas,
            recommendation=advice,
        )
