import json

import pytest

from flash_arbitrage.borrow_optimizer import BorrowAmountOptimizer
from flash_arbitrage.exceptions import InvalidInput
from flash_arbitrage.fixed_point import PRECISION
from flash_arbitrage.types import CostParameters
from flash_arbitrage.utils import safe_json_dump

E18 = PRECISION

ZERO_COSTS = CostParameters(
    flash_loan_premium_bps=0,
    gas_price_wei=0,
    gas_units_estimate=0,
    builder_tip_bps=0,
    safety_buffer_bps=0,
    min_profit_bps=0,
)


class TestBorrowSweep:
    def test_profit_grows_with_size(self):
        # net = 0.0131 * amount - 0.025 ETH gas, so the top of the range wins
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            E18, 10 * E18, E18, 102 * E18 // 100, CostParameters()
        )
        assert result.optimal_amount == 10 * E18
        assert result.max_profit == 106 * 10**15
        assert result.points_evaluated == 10
        assert result.breakdown.borrow_amount == 10 * E18
        assert result.breakdown.net_profit == result.max_profit
        assert result.breakdown.leg1_out == 10 * E18
        assert result.breakdown.leg2_out == 102 * E18 // 10

    def test_gas_dominates_small_amounts(self):
        # Below ~1.9 ETH the flat gas cost eats the whole spread
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            E18 // 10, E18, E18 // 10, 102 * E18 // 100, CostParameters()
        )
        assert result.max_profit == 0
        assert result.optimal_amount == E18 // 10

    def test_ties_keep_smallest_amount(self):
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            100, 500, 100, E18, ZERO_COSTS
        )
        assert result.optimal_amount == 100
        assert result.max_profit == 0

    def test_range_is_inclusive_when_aligned(self):
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            1000, 3000, 1000, 11 * E18 // 10, ZERO_COSTS
        )
        assert result.points_evaluated == 3
        assert result.optimal_amount == 3000
        assert result.max_profit == 300

    def test_unaligned_range_stops_before_max(self):
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            1000, 3500, 1000, 11 * E18 // 10, ZERO_COSTS
        )
        assert result.points_evaluated == 3
        assert result.optimal_amount == 3000

    def test_zero_output_points_are_skipped(self):
        # ratio 1.5e-16: amounts below ~6.7e15 produce no output
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            10**15, 10**16, 10**15, 150, ZERO_COSTS
        )
        assert result.optimal_amount == 7 * 10**15
        assert result.breakdown.leg2_out == 1

    def test_no_output_anywhere(self):
        with pytest.raises(InvalidInput):
            BorrowAmountOptimizer().find_optimal_borrow_amount(1, 5, 1, 1, ZERO_COSTS)

    @pytest.mark.parametrize(
        "min_amount,max_amount,step,ratio",
        [
            (0, 10, 1, E18),
            (1, 0, 1, E18),
            (1, 10, 0, E18),
            (10, 1, 1, E18),
            (1, 10, 1, 0),
        ],
    )
    def test_invalid_inputs(self, min_amount, max_amount, step, ratio):
        with pytest.raises(InvalidInput):
            BorrowAmountOptimizer().find_optimal_borrow_amount(
                min_amount, max_amount, step, ratio, ZERO_COSTS
            )

    def test_fine_grained_range_runs_every_point(self):
        step = 10**14
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            E18, E18 + 10_000 * step, step, 102 * E18 // 100, ZERO_COSTS
        )
        assert result.points_evaluated == 10_001
        assert result.optimal_amount == E18 + 10_000 * step

    def test_explicit_iteration_cap(self):
        with pytest.raises(InvalidInput):
            BorrowAmountOptimizer(max_iterations=5).find_optimal_borrow_amount(
                1, 10, 1, E18, ZERO_COSTS
            )

    def test_default_cost_parameters(self):
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            10 * E18, 10 * E18, E18, 108 * E18 // 100
        )
        assert result.max_profit == 706 * 10**15

    def test_result_serializes(self):
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            10 * E18, 10 * E18, E18, 108 * E18 // 100
        )
        data = json.loads(safe_json_dump(result))
        assert data["max_profit"] == "706000000000000000"
        assert data["breakdown"]["cost_breakdown_bps"]["gas_cost"] == 2659
