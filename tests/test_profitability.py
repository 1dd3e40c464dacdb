"""
Profitability model tests: the reference mainnet scenario, cost monotonicity,
saturation and the three-part profitable predicate.
"""

import json

import pytest

from flash_arbitrage.exceptions import (
    InvalidInput,
    InvalidOraclePrice,
    PriceDeviationTooHigh,
    QuoteUnavailable,
    SecondaryPriceDeviationTooHigh,
    StalePriceFeed,
)
from flash_arbitrage.fixed_point import PRECISION
from flash_arbitrage.interfaces import (
    DeterministicTimeProvider,
    StaticPriceOracle,
    StaticQuoteSource,
)
from flash_arbitrage.price_validation import OracleSettings, PriceValidator
from flash_arbitrage.profitability import ProfitabilityEngine, calculate_profitability
from flash_arbitrage.types import ArbitrageRoute, CostParameters, Venue
from flash_arbitrage.utils import safe_json_dump

E18 = PRECISION
NOW = 1640995200.0

ZERO_COSTS = CostParameters(
    flash_loan_premium_bps=0,
    gas_price_wei=0,
    gas_units_estimate=0,
    builder_tip_bps=0,
    safety_buffer_bps=0,
    min_profit_bps=0,
    min_profit_absolute=0,
)


class TestReferenceScenario:
    def test_mainnet_example(self):
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, CostParameters())

        assert bd.flash_loan_fee == 9 * 10**15
        assert bd.gas_cost == 25 * 10**15
        assert bd.builder_tip == 10 * 10**15
        assert bd.safety_buffer == 50 * 10**15
        assert bd.total_costs == 94 * 10**15
        assert bd.gross_profit == 800 * 10**15
        assert bd.net_profit == 706 * 10**15
        assert bd.roi_bps == 706
        assert bd.is_profitable is True

    def test_cost_breakdown_shares(self):
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, CostParameters())
        assert bd.cost_breakdown_bps == {
            "flash_loan_fee": 957,
            "gas_cost": 2659,
            "builder_tip": 1063,
            "safety_buffer": 5319,
        }

    def test_breakdown_is_hashable_and_read_only(self):
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, CostParameters())
        again = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, CostParameters())

        assert hash(bd) == hash(again)
        assert len({bd, again}) == 1
        with pytest.raises(TypeError):
            bd.cost_breakdown_bps["gas_cost"] = 0
        assert json.loads(safe_json_dump(bd))["cost_breakdown_bps"]["gas_cost"] == 2659

    def test_to_dict_keeps_precision(self):
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, CostParameters())
        data = bd.to_dict()
        assert data["net_profit"] == "706000000000000000"
        assert data["is_profitable"] is True


class TestCostModel:
    @pytest.mark.parametrize(
        "field,values",
        [
            ("flash_loan_premium_bps", [0, 5, 9, 30, 100]),
            ("gas_price_wei", [0, 10 * 10**9, 50 * 10**9, 500 * 10**9]),
            ("builder_tip_bps", [0, 10, 50, 200]),
            ("safety_buffer_bps", [0, 50, 100, 500]),
        ],
    )
    def test_raising_a_cost_never_raises_net_profit(self, field, values):
        profits = []
        for value in values:
            params = CostParameters(**{field: value})
            profits.append(
                calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, params).net_profit
            )
        assert profits == sorted(profits, reverse=True)

    def test_total_is_sum_of_terms(self):
        params = CostParameters(flash_loan_premium_bps=7, gas_price_wei=3 * 10**9, builder_tip_bps=13)
        bd = calculate_profitability(7 * E18, 7 * E18, 8 * E18, params)
        assert bd.total_costs == bd.flash_loan_fee + bd.gas_cost + bd.builder_tip + bd.safety_buffer

    @pytest.mark.parametrize("leg2_out", [9 * E18, 10 * E18])
    def test_loss_saturates_to_zero(self, leg2_out):
        bd = calculate_profitability(10 * E18, 10 * E18, leg2_out, CostParameters())
        assert bd.gross_profit == 0
        assert bd.net_profit == 0
        assert bd.roi_bps == 0
        assert bd.is_profitable is False

    def test_costs_exceeding_gross_saturate(self):
        bd = calculate_profitability(10 * E18, 10 * E18, 10 * E18 + 10**15, CostParameters())
        assert bd.gross_profit == 10**15
        assert bd.net_profit == 0

    def test_zero_costs_give_zero_shares(self):
        bd = calculate_profitability(1000, 1000, 1040, ZERO_COSTS)
        assert bd.total_costs == 0
        assert set(bd.cost_breakdown_bps.values()) == {0}
        assert bd.net_profit == 40

    @pytest.mark.parametrize(
        "borrow,leg1,leg2",
        [(0, 1, 1), (1, 0, 1), (1, 1, 0), (-5, 10, 10)],
    )
    def test_non_positive_inputs(self, borrow, leg1, leg2):
        with pytest.raises(InvalidInput):
            calculate_profitability(borrow, leg1, leg2, CostParameters())

    def test_repeated_evaluation_is_identical(self):
        args = (10 * E18, 105 * E18 // 10, 108 * E18 // 10, CostParameters())
        assert calculate_profitability(*args) == calculate_profitability(*args)
        assert calculate_profitability(*args).to_dict() == calculate_profitability(*args).to_dict()


class TestProfitablePredicate:
    def test_zero_net_profit_is_not_profitable(self):
        bd = calculate_profitability(1000, 1000, 1000, ZERO_COSTS)
        assert bd.net_profit == 0
        assert bd.is_profitable is False

    def test_below_min_profit_bps(self):
        params = CostParameters(min_profit_bps=800)
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, params)
        assert bd.net_profit > 0
        assert bd.is_profitable is False

    def test_below_min_profit_absolute(self):
        params = CostParameters(min_profit_absolute=E18)
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, params)
        assert bd.roi_bps >= params.min_profit_bps
        assert bd.is_profitable is False

    def test_all_three_conditions_met(self):
        params = CostParameters(min_profit_bps=706, min_profit_absolute=706 * 10**15)
        bd = calculate_profitability(10 * E18, 105 * E18 // 10, 108 * E18 // 10, params)
        assert bd.is_profitable is True

    def test_route_floor_raises_absolute_minimum(self):
        engine = ProfitabilityEngine(ZERO_COSTS)
        route = ArbitrageRoute(0, ("WETH", "DAI", "WETH"), 41, Venue.UNISWAP_V3, Venue.SUSHISWAP)
        assert engine.evaluate(1000, 1000, 1040).is_profitable is True
        assert engine.evaluate(1000, 1000, 1040, route=route).is_profitable is False


# ============================================================================
# End-to-end route evaluation
# ============================================================================


@pytest.fixture
def route():
    return ArbitrageRoute(0, ("WETH", "DAI", "WETH"), 0, Venue.UNISWAP_V3, Venue.SUSHISWAP)


@pytest.fixture
def quotes():
    # 2000 DAI per WETH out, 0.00054 WETH per DAI back: 10 WETH -> 20000 DAI -> 10.8 WETH
    return StaticQuoteSource({
        ("WETH", "DAI", Venue.UNISWAP_V3): 2000 * E18,
        ("DAI", "WETH", Venue.SUSHISWAP): 54 * 10**13,
    })


@pytest.fixture
def clock():
    return DeterministicTimeProvider(NOW)


@pytest.fixture
def oracle():
    return StaticPriceOracle()


def make_validator(oracle, clock, secondary=None, **settings):
    oracle.set_price("WETH", 2000 * E18, NOW)
    oracle.set_price("DAI", E18, NOW)
    return PriceValidator(
        oracle, secondary=secondary, settings=OracleSettings(**settings), time_provider=clock
    )


class TestEvaluateRoute:
    def test_quotes_both_legs_in_sequence(self, route, quotes):
        engine = ProfitabilityEngine(quote_source=quotes)
        bd = engine.evaluate_route(route, 10 * E18)

        assert bd.leg1_out == 20000 * E18
        assert bd.leg2_out == 108 * E18 // 10
        assert bd.net_profit == 706 * 10**15
        assert quotes.calls == 2

    def test_four_token_route_trades_only_closing_pair(self, quotes):
        # USDC sits between WETH and DAI but has no rates at all
        route = ArbitrageRoute(
            1, ("WETH", "USDC", "DAI", "WETH"), 0, Venue.UNISWAP_V3, Venue.SUSHISWAP
        )
        bd = ProfitabilityEngine(quote_source=quotes).evaluate_route(route, 10 * E18)

        assert route.intermediate_token == "DAI"
        assert bd.leg1_out == 20000 * E18
        assert bd.net_profit == 706 * 10**15
        assert quotes.calls == 2

    def test_missing_first_leg(self, route, quotes):
        quotes.remove_rate("WETH", "DAI", Venue.UNISWAP_V3)
        engine = ProfitabilityEngine(quote_source=quotes)
        with pytest.raises(QuoteUnavailable):
            engine.evaluate_route(route, 10 * E18)
        assert quotes.calls == 1

    def test_missing_second_leg(self, route, quotes):
        quotes.remove_rate("DAI", "WETH", Venue.SUSHISWAP)
        engine = ProfitabilityEngine(quote_source=quotes)
        with pytest.raises(QuoteUnavailable) as exc_info:
            engine.evaluate_route(route, 10 * E18)
        assert exc_info.value.source == "sushiswap"

    def test_no_quote_source(self, route):
        with pytest.raises(QuoteUnavailable):
            ProfitabilityEngine().evaluate_route(route, 10 * E18)

    def test_rejects_non_positive_borrow(self, route, quotes):
        with pytest.raises(InvalidInput):
            ProfitabilityEngine(quote_source=quotes).evaluate_route(route, 0)

    def test_within_oracle_tolerance(self, route, quotes, oracle, clock):
        # Leg 2 realizes 0.00054 against an oracle cross rate of 0.0005: 740 bps
        validator = make_validator(oracle, clock)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        assert engine.evaluate_route(route, 10 * E18).net_profit == 706 * 10**15
        assert validator.validate_leg("DAI", "WETH", 20000 * E18, 108 * E18 // 10) == 740

    def test_deviation_too_high(self, route, quotes, oracle, clock):
        validator = make_validator(oracle, clock, deviation_bps=500)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        with pytest.raises(PriceDeviationTooHigh) as exc_info:
            engine.evaluate_route(route, 10 * E18)
        assert exc_info.value.deviation_bps == 740
        assert exc_info.value.limit_bps == 500

    def test_disabled_validator_is_skipped(self, route, quotes, oracle, clock):
        validator = make_validator(oracle, clock, enabled=False, deviation_bps=500)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        assert engine.evaluate_route(route, 10 * E18).is_profitable is True

    def test_secondary_oracle_cross_check(self, route, quotes, oracle, clock):
        secondary = StaticPriceOracle()
        secondary.set_price("WETH", 1500 * E18, NOW)
        secondary.set_price("DAI", E18, NOW)
        validator = make_validator(oracle, clock, secondary=secondary)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        with pytest.raises(SecondaryPriceDeviationTooHigh) as exc_info:
            engine.evaluate_route(route, 10 * E18)
        assert exc_info.value.deviation_bps == 2500
        assert isinstance(exc_info.value, PriceDeviationTooHigh)

    def test_secondary_oracle_within_looser_tolerance(self, route, quotes, oracle, clock):
        secondary = StaticPriceOracle()
        secondary.set_price("WETH", 1800 * E18, NOW)
        secondary.set_price("DAI", E18, NOW)
        validator = make_validator(oracle, clock, secondary=secondary)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        assert engine.evaluate_route(route, 10 * E18).is_profitable is True

    def test_stale_price(self, route, quotes, oracle, clock):
        validator = make_validator(oracle, clock)
        clock.advance_time(301)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        with pytest.raises(StalePriceFeed):
            engine.evaluate_route(route, 10 * E18)

    def test_price_at_max_age_is_fresh(self, route, quotes, oracle, clock):
        validator = make_validator(oracle, clock)
        clock.advance_time(300)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        assert engine.evaluate_route(route, 10 * E18).net_profit > 0

    @pytest.mark.parametrize("bad_price", [None, 0])
    def test_invalid_oracle_price(self, route, quotes, oracle, clock, bad_price):
        validator = make_validator(oracle, clock)
        if bad_price is None:
            oracle._readings.pop("DAI")
        else:
            oracle.set_price("DAI", bad_price, NOW)
        engine = ProfitabilityEngine(quote_source=quotes, price_validator=validator)
        with pytest.raises(InvalidOraclePrice) as exc_info:
            engine.evaluate_route(route, 10 * E18)
        assert exc_info.value.token == "DAI"
