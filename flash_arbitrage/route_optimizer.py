"""
Route selection across the registry.

Every candidate is evaluated through ProfitabilityEngine.evaluate_route. A
route whose evaluation fails is logged and skipped; one bad route never
aborts the search.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from .exceptions import FlashArbitrageError, InvalidInput, NoRoutesAvailable
from .metrics import AnalyzerMetrics
from .profitability import ProfitabilityEngine
from .route_registry import RouteRegistry
from .types import ArbitrageRoute, OptimalRouteResult, ProfitabilityBreakdown, RouteAnalysis

logger = logging.getLogger(__name__)


class RouteOptimizer:
    """Picks the most profitable route for a given borrow amount."""

    def __init__(
        self,
        engine: ProfitabilityEngine,
        registry: Optional[RouteRegistry] = None,
        metrics: Optional[AnalyzerMetrics] = None,
    ):
        self.engine = engine
        self.registry = registry
        self.metrics = metrics

    def _candidates(self, routes: Optional[Sequence[ArbitrageRoute]]) -> List[ArbitrageRoute]:
        if routes is not None:
            return list(routes)
        if self.registry is None:
            return []
        return self.registry.snapshot()

    def _evaluate(
        self, route: ArbitrageRoute, borrow_amount: int
    ) -> Tuple[Optional[ProfitabilityBreakdown], Optional[str]]:
        """Evaluate one route, converting a failure into an error string."""
        try:
            breakdown = self.engine.evaluate_route(route, borrow_amount)
        except FlashArbitrageError as e:
            logger.warning(f"Skipping route {route.describe()}: {e}")
            if self.metrics:
                self.metrics.record_failure(type(e).__name__)
            return None, f"{type(e).__name__}: {e}"
        except Exception as e:
            # Injected adapters may raise their own transport errors
            logger.error(f"Adapter error on route {route.describe()}: {e}", exc_info=True)
            if self.metrics:
                self.metrics.record_failure(type(e).__name__)
            return None, f"{type(e).__name__}: {e}"

        if self.metrics:
            self.metrics.record_evaluation(breakdown.is_profitable, breakdown.roi_bps)
        return breakdown, None

    def find_optimal_route(
        self, borrow_amount: int, routes: Optional[Sequence[ArbitrageRoute]] = None
    ) -> OptimalRouteResult:
        """
        Scan candidates in index order and keep the strictly greatest net profit.

        Ties keep the earlier index. With no qualifying route the result is
        (0, 0, False).

        Raises:
            InvalidInput: If borrow_amount is not positive
            NoRoutesAvailable: If there are no candidate routes
        """
        if borrow_amount <= 0:
            raise InvalidInput(f"borrow_amount must be positive, got {borrow_amount}")

        candidates = self._candidates(routes)
        if not candidates:
            raise NoRoutesAvailable("No routes available for optimization")

        best_index = 0
        highest_profit = 0
        is_profitable = False

        for index, route in enumerate(candidates):
            breakdown, _ = self._evaluate(route, borrow_amount)
            if breakdown is None:
                continue
            if breakdown.net_profit > highest_profit:
                best_index = index
                highest_profit = breakdown.net_profit
                is_profitable = breakdown.is_profitable

        logger.info(
            f"Optimal route among {len(candidates)}: index={best_index} "
            f"profit={highest_profit} profitable={is_profitable}"
        )
        return OptimalRouteResult(
            best_index=best_index,
            highest_profit=highest_profit,
            is_profitable=is_profitable,
        )

    def evaluate_routes(
        self, borrow_amount: int, routes: Optional[Sequence[ArbitrageRoute]] = None
    ) -> List[Tuple[ArbitrageRoute, Optional[ProfitabilityBreakdown], Optional[str]]]:
        """(route, breakdown or None, error or None) for every candidate, in order."""
        if borrow_amount <= 0:
            raise InvalidInput(f"borrow_amount must be positive, got {borrow_amount}")

        results = []
        for route in self._candidates(routes):
            breakdown, error = self._evaluate(route, borrow_amount)
            results.append((route, breakdown, error))
        return results

    def analyze_all_routes(
        self, borrow_amount: int, routes: Optional[Sequence[ArbitrageRoute]] = None
    ) -> RouteAnalysis:
        """Per-route profit, verdict and error, aligned with the candidates."""
        profits: List[int] = []
        profitable: List[bool] = []
        errors: List[Optional[str]] = []

        for _, breakdown, error in self.evaluate_routes(borrow_amount, routes):
            if breakdown is None:
                profits.append(0)
                profitable.append(False)
            else:
                profits.append(breakdown.net_profit)
                profitable.append(breakdown.is_profitable)
            errors.append(error)

        return RouteAnalysis(profits=profits, profitable=profitable, errors=errors)
