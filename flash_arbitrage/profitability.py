"""
Single source of truth for flash-loan arbitrage profitability.

All cost terms, gross/net profit and the profitable verdict are computed here
and nowhere else. Route optimizers, sweeps and reports call this module.

Cost model (all ints, truncating):
- flash_loan_fee = borrow * premium_bps / 10_000
- gas_cost       = gas_price_wei * gas_units_estimate
- builder_tip    = borrow * tip_bps / 10_000
- safety_buffer  = borrow * buffer_bps / 10_000
- gross_profit   = max(leg2_out - borrow, 0)
- net_profit     = max(gross_profit - total_costs, 0)
"""

import logging
from typing import Optional

from .exceptions import InvalidInput, QuoteUnavailable
from .fixed_point import bps, saturating_sub, to_bps
from .interfaces import QuoteSource
from .price_validation import PriceValidator
from .types import ArbitrageRoute, CostParameters, ProfitabilityBreakdown

logger = logging.getLogger(__name__)


def calculate_profitability(
    borrow_amount: int,
    leg1_out: int,
    leg2_out: int,
    params: CostParameters,
    min_profit_absolute: Optional[int] = None,
) -> ProfitabilityBreakdown:
    """
    Compute the complete cost/profit breakdown for one borrow amount.

    Args:
        borrow_amount: Flash loan principal in base units
        leg1_out: Output of the first swap
        leg2_out: Output of the second swap (same token as the principal)
        params: Cost and policy terms
        min_profit_absolute: Overrides params.min_profit_absolute when given

    Returns:
        ProfitabilityBreakdown

    Raises:
        InvalidInput: If any amount is not positive

    Example:
        >>> bd = calculate_profitability(10 * 10**18, 105 * 10**17, 108 * 10**17, CostParameters())
        >>> bd.net_profit == 706 * 10**15
        True
    """
    if borrow_amount <= 0 or leg1_out <= 0 or leg2_out <= 0:
        raise InvalidInput(
            "borrow_amount, leg1_out and leg2_out must be positive",
            details={
                "borrow_amount": borrow_amount,
                "leg1_out": leg1_out,
                "leg2_out": leg2_out,
            },
        )

    floor = params.min_profit_absolute if min_profit_absolute is None else min_profit_absolute

    flash_loan_fee = bps(borrow_amount, params.flash_loan_premium_bps)
    gas_cost = params.gas_price_wei * params.gas_units_estimate
    builder_tip = bps(borrow_amount, params.builder_tip_bps)
    safety_buffer = bps(borrow_amount, params.safety_buffer_bps)
    total_costs = flash_loan_fee + gas_cost + builder_tip + safety_buffer

    gross_profit = saturating_sub(leg2_out, borrow_amount)
    net_profit = saturating_sub(gross_profit, total_costs)
    roi_bps = to_bps(net_profit, borrow_amount)

    is_profitable = (
        net_profit > 0 and roi_bps >= params.min_profit_bps and net_profit >= floor
    )

    return ProfitabilityBreakdown(
        borrow_amount=borrow_amount,
        leg1_out=leg1_out,
        leg2_out=leg2_out,
        flash_loan_fee=flash_loan_fee,
        gas_cost=gas_cost,
        builder_tip=builder_tip,
        safety_buffer=safety_buffer,
        total_costs=total_costs,
        gross_profit=gross_profit,
        net_profit=net_profit,
        roi_bps=roi_bps,
        is_profitable=is_profitable,
        cost_breakdown_bps={
            "flash_loan_fee": to_bps(flash_loan_fee, total_costs),
            "gas_cost": to_bps(gas_cost, total_costs),
            "builder_tip": to_bps(builder_tip, total_costs),
            "safety_buffer": to_bps(safety_buffer, total_costs),
        },
    )


class ProfitabilityEngine:
    """
    Evaluates routes end to end: quotes both legs, checks them against the
    oracle, then applies the cost model.
    """

    def __init__(
        self,
        params: Optional[CostParameters] = None,
        quote_source: Optional[QuoteSource] = None,
        price_validator: Optional[PriceValidator] = None,
    ):
        self.params = params or CostParameters()
        self.quote_source = quote_source
        self.price_validator = price_validator

    def evaluate(
        self,
        borrow_amount: int,
        leg1_out: int,
        leg2_out: int,
        params: Optional[CostParameters] = None,
        route: Optional[ArbitrageRoute] = None,
    ) -> ProfitabilityBreakdown:
        """
        Pure evaluation from known leg outputs.

        A route's own min_profit raises the absolute floor for that route.
        """
        params = params or self.params
        floor = params.min_profit_absolute
        if route is not None:
            floor = max(floor, route.min_profit)
        return calculate_profitability(
            borrow_amount, leg1_out, leg2_out, params, min_profit_absolute=floor
        )

    def quote_legs(self, route: ArbitrageRoute, borrow_amount: int):
        """
        Quote leg 1 (borrow -> intermediate on venue A) then leg 2
        (intermediate -> borrow on venue B) with leg 1's output.

        Interior tokens other than route.intermediate_token are not quoted.

        Raises:
            QuoteUnavailable: If either leg cannot be quoted
        """
        if self.quote_source is None:
            raise QuoteUnavailable("No quote source configured", source="engine")

        borrow_token = route.borrow_token
        mid_token = route.intermediate_token

        leg1_out = self.quote_source.quote(
            borrow_token, mid_token, borrow_amount, route.venue_a
        )
        if leg1_out is None or leg1_out <= 0:
            raise QuoteUnavailable(
                f"No quote for {borrow_token} -> {mid_token} on {route.venue_a.value}",
                source=route.venue_a.value,
                token=mid_token,
            )

        leg2_out = self.quote_source.quote(
            mid_token, borrow_token, leg1_out, route.venue_b
        )
        if leg2_out is None or leg2_out <= 0:
            raise QuoteUnavailable(
                f"No quote for {mid_token} -> {borrow_token} on {route.venue_b.value}",
                source=route.venue_b.value,
                token=borrow_token,
            )

        return leg1_out, leg2_out

    def evaluate_route(
        self,
        route: ArbitrageRoute,
        borrow_amount: int,
        params: Optional[CostParameters] = None,
    ) -> ProfitabilityBreakdown:
        """
        Quote, validate and evaluate one route. Collaborator failures are
        raised, never retried.
        """
        if borrow_amount <= 0:
            raise InvalidInput(f"borrow_amount must be positive, got {borrow_amount}")

        leg1_out, leg2_out = self.quote_legs(route, borrow_amount)

        if self.price_validator is not None and self.price_validator.settings.enabled:
            self.price_validator.validate_route_legs(
                route.borrow_token,
                route.intermediate_token,
                borrow_amount,
                leg1_out,
                leg2_out,
            )

        breakdown = self.evaluate(borrow_amount, leg1_out, leg2_out, params, route)
        logger.debug(
            f"Route {route.describe()}: gross={breakdown.gross_profit} "
            f"costs={breakdown.total_costs} net={breakdown.net_profit} "
            f"roi={breakdown.roi_bps}bps profitable={breakdown.is_profitable}"
        )
        return breakdown
