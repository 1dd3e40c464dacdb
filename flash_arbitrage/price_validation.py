"""
Oracle sanity checks for quoted swap legs.

A quote that strays too far from the oracle cross rate usually means a thin or
manipulated pool. These checks reject such routes before any profit is
trusted.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .exceptions import (
    InvalidOraclePrice,
    InvalidPrice,
    PriceDeviationTooHigh,
    SecondaryPriceDeviationTooHigh,
    StalePriceFeed,
)
from .fixed_point import PRECISION, deviation_bps
from .interfaces import PriceOracle, SystemTimeProvider, TimeProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OracleSettings:
    """Oracle tolerances. Defaults: 5 minute max age, 8% / 12% deviation."""

    enabled: bool = True
    max_price_age_seconds: int = 300
    deviation_bps: int = 800
    secondary_deviation_bps: int = 1200


class PriceValidator:
    """Validates realized leg rates against one or two price oracles."""

    def __init__(
        self,
        primary: PriceOracle,
        secondary: Optional[PriceOracle] = None,
        settings: Optional[OracleSettings] = None,
        time_provider: Optional[TimeProvider] = None,
    ):
        self.primary = primary
        self.secondary = secondary
        self.settings = settings or OracleSettings()
        self.time_provider = time_provider or SystemTimeProvider()

    def fresh_price(self, oracle: PriceOracle, token: str, source: str) -> int:
        """
        Read a price and enforce positivity and freshness.

        Raises:
            InvalidOraclePrice: If the oracle has no usable price
            StalePriceFeed: If the reading is older than max_price_age_seconds
        """
        reading = oracle.latest_price(token)
        if reading is None or reading.value <= 0:
            raise InvalidOraclePrice(
                f"No valid {source} price for {token}", source=source, token=token
            )

        age = self.time_provider.current_timestamp() - reading.observed_at
        if age > self.settings.max_price_age_seconds:
            raise StalePriceFeed(
                f"{source} price for {token} is {age:.0f}s old "
                f"(max {self.settings.max_price_age_seconds}s)",
                source=source,
                token=token,
                details={"age_seconds": age},
            )
        return reading.value

    def cross_rate(self, oracle: PriceOracle, token_in: str, token_out: str, source: str) -> int:
        """Expected token_out per token_in, PRECISION-scaled."""
        price_in = self.fresh_price(oracle, token_in, source)
        price_out = self.fresh_price(oracle, token_out, source)
        return price_in * PRECISION // price_out

    def validate_leg(self, token_in: str, token_out: str, amount_in: int, amount_out: int) -> int:
        """
        Check one leg's realized rate. Returns the deviation from the primary
        oracle in bps.

        Raises:
            PriceDeviationTooHigh, SecondaryPriceDeviationTooHigh,
            StalePriceFeed, InvalidOraclePrice, InvalidPrice
        """
        if amount_in <= 0:
            raise InvalidPrice(
                f"Cannot price a leg with zero input ({token_in} -> {token_out})",
                token=token_in,
            )
        realized = amount_out * PRECISION // amount_in

        expected = self.cross_rate(self.primary, token_in, token_out, "primary")
        deviation = deviation_bps(realized, expected)
        if deviation > self.settings.deviation_bps:
            raise PriceDeviationTooHigh(
                f"{token_in} -> {token_out} deviates {deviation} bps from oracle "
                f"(limit {self.settings.deviation_bps})",
                deviation_bps=deviation,
                limit_bps=self.settings.deviation_bps,
                source="primary",
                token=token_out,
            )

        if self.secondary is not None:
            secondary_expected = self.cross_rate(
                self.secondary, token_in, token_out, "secondary"
            )
            secondary_deviation = deviation_bps(realized, secondary_expected)
            if secondary_deviation > self.settings.secondary_deviation_bps:
                raise SecondaryPriceDeviationTooHigh(
                    f"{token_in} -> {token_out} deviates {secondary_deviation} bps "
                    f"from secondary oracle (limit {self.settings.secondary_deviation_bps})",
                    deviation_bps=secondary_deviation,
                    limit_bps=self.settings.secondary_deviation_bps,
                    source="secondary",
                    token=token_out,
                )

        logger.debug(f"Leg {token_in} -> {token_out} within tolerance ({deviation} bps)")
        return deviation

    def validate_route_legs(
        self,
        borrow_token: str,
        intermediate_token: str,
        borrow_amount: int,
        leg1_out: int,
        leg2_out: int,
    ) -> None:
        """Validate both legs of a two-swap cycle."""
        self.validate_leg(borrow_token, intermediate_token, borrow_amount, leg1_out)
        self.validate_leg(intermediate_token, borrow_token, leg1_out, leg2_out)
