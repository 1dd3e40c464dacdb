"""
Cross-venue spread scanner.

Quotes a sample amount for each token pair on every venue pair and reports the
pairs whose outputs diverge by at least a threshold.
"""

import logging
from itertools import combinations
from typing import List, Optional, Sequence, Tuple

from .exceptions import InvalidInput
from .fixed_point import deviation_bps
from .interfaces import QuoteSource
from .types import Opportunity, Venue

logger = logging.getLogger(__name__)


class OpportunityScanner:
    """Finds venue pairs quoting the same swap at materially different rates."""

    def __init__(self, quote_source: QuoteSource):
        self.quote_source = quote_source
        self._last_scan: List[Opportunity] = []

    def identify_opportunities(
        self,
        token_pairs: Sequence[Tuple[str, str]],
        venues: Sequence[Venue],
        sample_amount: int,
        min_profit_bps: int = 100,
    ) -> List[Opportunity]:
        """
        Scan every token pair across every pair of venues.

        A pair is skipped on a venue pair when either venue has no quote.
        Results are sorted by spread, widest first.
        """
        if sample_amount <= 0:
            raise InvalidInput(f"sample_amount must be positive, got {sample_amount}")
        if len(venues) < 2:
            raise InvalidInput("At least two venues are needed to compare quotes")

        opportunities = []
        for token_in, token_out in token_pairs:
            for venue_x, venue_y in combinations(venues, 2):
                out_x = self.quote_source.quote(token_in, token_out, sample_amount, venue_x)
                out_y = self.quote_source.quote(token_in, token_out, sample_amount, venue_y)
                if not out_x or not out_y:
                    logger.debug(
                        f"Skipping {token_in}/{token_out} on "
                        f"{venue_x.value}/{venue_y.value}: quote unavailable"
                    )
                    continue

                spread = deviation_bps(out_x, out_y)
                if spread < min_profit_bps:
                    continue

                if out_x >= out_y:
                    buy, sell, buy_out, sell_out = venue_x, venue_y, out_x, out_y
                else:
                    buy, sell, buy_out, sell_out = venue_y, venue_x, out_y, out_x

                opportunities.append(
                    Opportunity(
                        token_in=token_in,
                        token_out=token_out,
                        buy_venue=buy,
                        sell_venue=sell,
                        buy_amount_out=buy_out,
                        sell_amount_out=sell_out,
                        spread_bps=spread,
                    )
                )

        opportunities.sort(key=lambda o: o.spread_bps, reverse=True)
        self._last_scan = opportunities
        logger.info(
            f"Scanned {len(token_pairs)} pairs on {len(venues)} venues: "
            f"{len(opportunities)} opportunities >= {min_profit_bps} bps"
        )
        return opportunities

    def top_opportunities(self, limit: Optional[int] = 10) -> List[Opportunity]:
        """Best entries of the most recent scan."""
        if limit is None:
            return list(self._last_scan)
        return self._last_scan[:limit]
