"""
Borrow amount sweep.

A coarse linear grid search: profit against amount is not guaranteed to be
unimodal, so the caller picks the step to trade resolution for run time.
"""

import logging
from typing import Optional

from .exceptions import InvalidInput
from .fixed_point import PRECISION
from .profitability import calculate_profitability
from .types import BorrowOptimizationResult, CostParameters

logger = logging.getLogger(__name__)


class BorrowAmountOptimizer:
    """Finds the borrow amount with the greatest net profit for a fixed output ratio."""

    def __init__(self, max_iterations: Optional[int] = None):
        # None runs every grid point; hosts that need a bound pass one
        self.max_iterations = max_iterations

    def find_optimal_borrow_amount(
        self,
        min_amount: int,
        max_amount: int,
        step: int,
        expected_output_ratio: int,
        params: Optional[CostParameters] = None,
    ) -> BorrowOptimizationResult:
        """
        Scan min_amount..max_amount (inclusive) in step increments.

        Each point assumes leg1_out == amount and
        leg2_out == amount * expected_output_ratio // PRECISION. Points whose
        output truncates to zero are skipped.

        Raises:
            InvalidInput: On non-positive bounds, step or ratio, inverted
                bounds, more points than an explicit max_iterations, or a ratio too
                small to produce output anywhere in the range
        """
        if min_amount <= 0 or max_amount <= 0 or step <= 0:
            raise InvalidInput(
                "min_amount, max_amount and step must be positive",
                details={"min_amount": min_amount, "max_amount": max_amount, "step": step},
            )
        if min_amount > max_amount:
            raise InvalidInput(f"min_amount {min_amount} exceeds max_amount {max_amount}")
        if expected_output_ratio <= 0:
            raise InvalidInput(
                f"expected_output_ratio must be positive, got {expected_output_ratio}"
            )

        points = (max_amount - min_amount) // step + 1
        if self.max_iterations is not None and points > self.max_iterations:
            raise InvalidInput(
                f"Sweep of {points} points exceeds max_iterations {self.max_iterations}; "
                f"use a larger step"
            )

        params = params or CostParameters()
        best_amount = None
        max_profit = 0

        amount = min_amount
        while amount <= max_amount:
            leg2_out = amount * expected_output_ratio // PRECISION
            if leg2_out > 0:
                profit = calculate_profitability(amount, amount, leg2_out, params).net_profit
                if best_amount is None or profit > max_profit:
                    best_amount = amount
                    max_profit = profit
            amount += step

        if best_amount is None:
            raise InvalidInput(
                f"expected_output_ratio {expected_output_ratio} yields no output "
                f"between {min_amount} and {max_amount}"
            )

        breakdown = calculate_profitability(
            best_amount,
            best_amount,
            best_amount * expected_output_ratio // PRECISION,
            params,
        )
        logger.info(
            f"Borrow sweep over {points} points: optimal={best_amount} profit={max_profit}"
        )
        return BorrowOptimizationResult(
            optimal_amount=best_amount,
            max_profit=max_profit,
            breakdown=breakdown,
            points_evaluated=points,
        )
