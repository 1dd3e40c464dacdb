"""
Parameter sweeps: cost sensitivity and historical backtests.

Sensitivity holds the opportunity fixed and varies gas price and flash loan
premium. Backtests replay a trade sample under a grid of profit and slippage
thresholds.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .exceptions import InsufficientData, InvalidInput
from .fixed_point import BPS_DENOMINATOR, PRECISION, bps, saturating_sub, to_bps
from .types import BacktestResult, SensitivityResult, TradeData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SweepSettings:
    """Default grids used when a caller does not pass its own."""

    gas_prices_wei: Tuple[int, ...] = (20 * 10**9, 50 * 10**9, 100 * 10**9)
    premiums_bps: Tuple[int, ...] = (5, 9, 30)
    min_profit_bps_grid: Tuple[int, ...] = (50, 100, 200)
    max_slippage_bps_grid: Tuple[int, ...] = (50, 100, 300)
    borrow_range: Tuple[int, int, int] = field(
        default=(1 * 10**18, 100 * 10**18, 1 * 10**18)
    )


def sensitivity_analysis(
    base_profit: int,
    base_borrow_amount: int,
    gas_prices: Sequence[int],
    premiums_bps: Sequence[int],
    gas_units_estimate: int,
    builder_tip_bps: int,
    safety_buffer_bps: int,
) -> List[SensitivityResult]:
    """
    Net profit of a fixed opportunity across gas price x premium.

    Results are row-major: the outer loop runs over gas_prices.

    Raises:
        InvalidInput: If either grid is empty or base_borrow_amount <= 0
    """
    if not gas_prices or not premiums_bps:
        raise InvalidInput("gas_prices and premiums_bps must be non-empty")
    if base_borrow_amount <= 0:
        raise InvalidInput(f"base_borrow_amount must be positive, got {base_borrow_amount}")

    tip = bps(base_borrow_amount, builder_tip_bps)
    buffer = bps(base_borrow_amount, safety_buffer_bps)

    results = []
    for gas_price in gas_prices:
        gas_cost = gas_price * gas_units_estimate
        for premium in premiums_bps:
            total_costs = bps(base_borrow_amount, premium) + gas_cost + tip + buffer
            net_profit = saturating_sub(base_profit, total_costs)
            results.append(
                SensitivityResult(
                    gas_price_wei=gas_price,
                    flash_loan_premium_bps=premium,
                    total_costs=total_costs,
                    net_profit=net_profit,
                    roi_bps=to_bps(net_profit, base_borrow_amount),
                )
            )

    logger.debug(f"Sensitivity sweep produced {len(results)} cells")
    return results


def backtest_parameters(
    trades: Sequence[TradeData],
    min_profit_bps_grid: Sequence[int],
    max_slippage_bps_grid: Sequence[int],
) -> List[BacktestResult]:
    """
    Replay trades under each (min profit, max slippage) pair.

    ROI divides by the full trade count, so combinations that keep more of
    the sample score higher than ones with a better per-trade average.

    Raises:
        InsufficientData: If trades is empty
        InvalidInput: If either grid is empty
    """
    if not trades:
        raise InsufficientData("No historical trades to backtest")
    if not min_profit_bps_grid or not max_slippage_bps_grid:
        raise InvalidInput("Backtest grids must be non-empty")

    results = []
    for min_profit_bps in min_profit_bps_grid:
        for max_slippage_bps in max_slippage_bps_grid:
            success_count = 0
            total_profit = 0
            for trade in trades:
                profit_bps = trade.profit * BPS_DENOMINATOR // PRECISION
                if profit_bps >= min_profit_bps and trade.slippage_bps <= max_slippage_bps:
                    success_count += 1
                    total_profit += trade.profit
            results.append(
                BacktestResult(
                    min_profit_bps=min_profit_bps,
                    max_slippage_bps=max_slippage_bps,
                    success_count=success_count,
                    total_profit=total_profit,
                    roi=total_profit * BPS_DENOMINATOR // len(trades),
                )
            )

    logger.debug(f"Backtest over {len(trades)} trades produced {len(results)} cells")
    return results


def best_backtest_result(results: Sequence[BacktestResult]) -> Optional[BacktestResult]:
    """First result with the highest ROI, or None when empty."""
    best = None
    for result in results:
        if best is None or result.roi > best.roi:
            best = result
    return best


def best_sensitivity_result(
    results: Sequence[SensitivityResult],
) -> Optional[SensitivityResult]:
    """First result with the highest ROI, or None when empty."""
    best = None
    for result in results:
        if best is None or result.roi_bps > best.roi_bps:
            best = result
    return best
