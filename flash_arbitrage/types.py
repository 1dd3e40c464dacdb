"""
Core value types for route analysis.

Everything here is immutable. Amounts are ints in 18-decimal base units, rates
are ints in basis points.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class Venue(str, Enum):
    """Swap venues a route leg can execute on."""

    UNISWAP_V2 = "uniswap_v2"
    UNISWAP_V3 = "uniswap_v3"
    SUSHISWAP = "sushiswap"
    CURVE = "curve"
    BALANCER = "balancer"


@dataclass(frozen=True)
class ArbitrageRoute:
    """
    A circular token path plus the venue pair used to trade it.

    Only two legs are traded: path[0] -> path[-2] on venue_a and back on
    venue_b. Other interior tokens of a 4-token path are validated by the
    registry but never quoted.

    Attributes:
        route_id: Registry slot. Reassigned when another route is deleted.
        path: Token identifiers, 2-4 long, first == last
        min_profit: Absolute net profit floor in base units of path[0]
        venue_a: Venue for leg 1 (path[0] -> intermediate_token)
        venue_b: Venue for leg 2 (intermediate_token -> path[0])
    """

    route_id: int
    path: Tuple[str, ...]
    min_profit: int
    venue_a: Venue
    venue_b: Venue

    @property
    def borrow_token(self) -> str:
        return self.path[0]

    @property
    def intermediate_token(self) -> str:
        """Last token before the closing token; the only interior token that is traded."""
        return self.path[-2]

    def describe(self) -> str:
        return (
            f"#{self.route_id} {' -> '.join(self.path)} "
            f"({self.venue_a.value} / {self.venue_b.value})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route_id": self.route_id,
            "path": list(self.path),
            "min_profit": str(self.min_profit),
            "venue_a": self.venue_a.value,
            "venue_b": self.venue_b.value,
        }


@dataclass(frozen=True)
class CostParameters:
    """
    Cost and policy terms applied to every profitability evaluation.

    Defaults match the reference mainnet monitor settings.
    """

    flash_loan_premium_bps: int = 9
    gas_price_wei: int = 50 * 10**9
    gas_units_estimate: int = 500_000
    builder_tip_bps: int = 10
    safety_buffer_bps: int = 50
    min_profit_bps: int = 100
    min_profit_absolute: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProfitabilityBreakdown:
    """Full cost/profit breakdown for one evaluation. Never mutated."""

    borrow_amount: int
    leg1_out: int
    leg2_out: int
    flash_loan_fee: int
    gas_cost: int
    builder_tip: int
    safety_buffer: int
    total_costs: int
    gross_profit: int
    net_profit: int
    roi_bps: int
    is_profitable: bool
    # Each cost term's share of total_costs in bps; read-only
    cost_breakdown_bps: Mapping[str, int] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(
            self, "cost_breakdown_bps", MappingProxyType(dict(self.cost_breakdown_bps))
        )

    def to_dict(self) -> Dict[str, Any]:
        """Amounts as strings so JSON consumers do not lose precision."""
        return {
            "borrow_amount": str(self.borrow_amount),
            "leg1_out": str(self.leg1_out),
            "leg2_out": str(self.leg2_out),
            "flash_loan_fee": str(self.flash_loan_fee),
            "gas_cost": str(self.gas_cost),
            "builder_tip": str(self.builder_tip),
            "safety_buffer": str(self.safety_buffer),
            "total_costs": str(self.total_costs),
            "gross_profit": str(self.gross_profit),
            "net_profit": str(self.net_profit),
            "roi_bps": self.roi_bps,
            "is_profitable": self.is_profitable,
            "cost_breakdown_bps": dict(self.cost_breakdown_bps),
        }


@dataclass(frozen=True)
class TradeData:
    """
    One historical execution.

    profit is realized net profit per 1e18 units of principal, so
    profit * 10_000 // 1e18 is the trade's profit in bps.
    """

    profit: int
    gas_used: int
    slippage_bps: int
    execution_time_seconds: int
    gas_price_wei: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeData":
        return cls(
            profit=int(data["profit"]),
            gas_used=int(data["gas_used"]),
            slippage_bps=int(data["slippage_bps"]),
            execution_time_seconds=int(data["execution_time_seconds"]),
            gas_price_wei=int(data.get("gas_price_wei", 0)),
        )


@dataclass(frozen=True)
class StatisticalAnalysis:
    mean_profit: int
    median_profit: int
    std_deviation: int
    min_profit: int
    max_profit: int
    success_rate_bps: int
    average_gas_used: int
    total_trades: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mean_profit": str(self.mean_profit),
            "median_profit": str(self.median_profit),
            "std_deviation": str(self.std_deviation),
            "min_profit": str(self.min_profit),
            "max_profit": str(self.max_profit),
            "success_rate_bps": self.success_rate_bps,
            "average_gas_used": self.average_gas_used,
            "total_trades": self.total_trades,
        }


@dataclass(frozen=True)
class ParameterRecommendation:
    min_profit_bps: int
    max_slippage_bps: int
    deadline_seconds: int
    gas_units_estimate: int
    confidence_bps: int
    reasoning: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GasEfficiency:
    average_gas_cost: int
    # Profit per unit of gas cost, PRECISION-scaled (1e18 == break-even)
    profit_per_gas_unit: int
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "average_gas_cost": str(self.average_gas_cost),
            "profit_per_gas_unit": str(self.profit_per_gas_unit),
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class OptimalRouteResult:
    best_index: int
    highest_profit: int
    is_profitable: bool


@dataclass(frozen=True)
class RouteAnalysis:
    """Per-route results aligned index-for-index with the candidate routes."""

    profits: List[int]
    profitable: List[bool]
    errors: List[Optional[str]]


@dataclass(frozen=True)
class BorrowOptimizationResult:
    optimal_amount: int
    max_profit: int
    breakdown: ProfitabilityBreakdown
    points_evaluated: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "optimal_amount": str(self.optimal_amount),
            "max_profit": str(self.max_profit),
            "breakdown": self.breakdown.to_dict(),
            "points_evaluated": self.points_evaluated,
        }


@dataclass(frozen=True)
class SensitivityResult:
    gas_price_wei: int
    flash_loan_premium_bps: int
    total_costs: int
    net_profit: int
    roi_bps: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gas_price_wei": str(self.gas_price_wei),
            "flash_loan_premium_bps": self.flash_loan_premium_bps,
            "total_costs": str(self.total_costs),
            "net_profit": str(self.net_profit),
            "roi_bps": self.roi_bps,
        }


@dataclass(frozen=True)
class BacktestResult:
    min_profit_bps: int
    max_slippage_bps: int
    success_count: int
    total_profit: int
    roi: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_profit_bps": self.min_profit_bps,
            "max_slippage_bps": self.max_slippage_bps,
            "success_count": self.success_count,
            "total_profit": str(self.total_profit),
            "roi": str(self.roi),
        }


@dataclass(frozen=True)
class PriceReading:
    """Oracle answer: PRECISION-scaled price and the unix time it was observed."""

    value: int
    observed_at: float


@dataclass(frozen=True)
class SettlementResult:
    success: bool
    reason: Optional[str] = None
    tx_reference: Optional[str] = None


@dataclass(frozen=True)
class Opportunity:
    """
    Cross-venue price gap for one token pair.

    buy_venue returns more token_out per token_in than sell_venue quotes back,
    so the pair is bought on buy_venue and sold on sell_venue.
    """

    token_in: str
    token_out: str
    buy_venue: Venue
    sell_venue: Venue
    buy_amount_out: int
    sell_amount_out: int
    spread_bps: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "token_in": self.token_in,
            "token_out": self.token_out,
            "buy_venue": self.buy_venue.value,
            "sell_venue": self.sell_venue.value,
            "buy_amount_out": str(self.buy_amount_out),
            "sell_amount_out": str(self.sell_amount_out),
            "spread_bps": self.spread_bps,
        }


@dataclass(frozen=True)
class ExecutionPlan:
    route: ArbitrageRoute
    borrow_amount: int
    breakdown: ProfitabilityBreakdown
    recommendation: Optional[ParameterRecommendation] = None

    @property
    def net_profit(self) -> int:
        return self.breakdown.net_profit

    def to_dict(self) -> Dict[str, Any]:
        return {
            "route": self.route.to_dict(),
            "borrow_amount": str(self.borrow_amount),
            "breakdown": self.breakdown.to_dict(),
            "recommendation": (
                self.recommendation.to_dict() if self.recommendation else None
            ),
        }
