"""
Collaborator interfaces for quoting, pricing, settlement and time.

The analyzer never talks to a chain directly. Hosts inject adapters that
satisfy these protocols; failures come back as typed values (None quotes, None
prices, unsuccessful SettlementResult) rather than exceptions.
"""

import time
from typing import Dict, Iterable, Optional, Protocol, Set, Tuple, runtime_checkable

from .fixed_point import PRECISION
from .types import PriceReading, SettlementResult, Venue


@runtime_checkable
class QuoteSource(Protocol):
    """Protocol for swap output quotes."""

    def quote(
        self, token_in: str, token_out: str, amount_in: int, venue: Venue
    ) -> Optional[int]:
        """Return amount_out, or None when the venue cannot fill the swap."""
        ...


@runtime_checkable
class PriceOracle(Protocol):
    """Protocol for reference price feeds."""

    def latest_price(self, token: str) -> Optional[PriceReading]:
        """Return the latest PRECISION-scaled price, or None if unavailable."""
        ...


@runtime_checkable
class SettlementBackend(Protocol):
    """Protocol for the on-chain execution side (flash loan + swaps)."""

    def initiate_settlement(
        self, asset: str, amount: int, route_id: int
    ) -> SettlementResult:
        ...

    def is_token_supported(self, token: str) -> bool:
        ...

    def venue_router_configured(self, venue: Venue) -> bool:
        ...


@runtime_checkable
class TimeProvider(Protocol):
    """Protocol for time-related operations."""

    def current_timestamp(self) -> float:
        """Get current Unix timestamp."""
        ...


class SystemTimeProvider:
    """Production time provider using system time."""

    def current_timestamp(self) -> float:
        return time.time()


class DeterministicTimeProvider:
    """Deterministic time provider for testing and backtesting."""

    def __init__(self, start_time: float = 1640995200.0):  # 2022-01-01
        self._current_time = start_time

    def current_timestamp(self) -> float:
        return self._current_time

    def advance_time(self, seconds: float) -> None:
        """Manually advance time by specified seconds."""
        self._current_time += seconds

    def set_time(self, timestamp: float) -> None:
        self._current_time = timestamp


# ============================================================================
# In-memory adapters (tests, paper runs, backtests)
# ============================================================================


class StaticQuoteSource:
    """
    Quotes from a fixed table of PRECISION-scaled exchange rates.

    amount_out = amount_in * rate // PRECISION. Missing entries are unavailable.
    """

    def __init__(self, rates: Optional[Dict[Tuple[str, str, Venue], int]] = None):
        self._rates: Dict[Tuple[str, str, Venue], int] = dict(rates or {})
        self.calls = 0

    def set_rate(self, token_in: str, token_out: str, venue: Venue, rate: int) -> None:
        self._rates[(token_in, token_out, venue)] = rate

    def remove_rate(self, token_in: str, token_out: str, venue: Venue) -> None:
        self._rates.pop((token_in, token_out, venue), None)

    def quote(
        self, token_in: str, token_out: str, amount_in: int, venue: Venue
    ) -> Optional[int]:
        self.calls += 1
        rate = self._rates.get((token_in, token_out, venue))
        if rate is None:
            return None
        return amount_in * rate // PRECISION


class StaticPriceOracle:
    """Price feed backed by a dict of {token: PriceReading}."""

    def __init__(self, readings: Optional[Dict[str, PriceReading]] = None):
        self._readings: Dict[str, PriceReading] = dict(readings or {})

    def set_price(self, token: str, value: int, observed_at: float) -> None:
        self._readings[token] = PriceReading(value=value, observed_at=observed_at)

    def latest_price(self, token: str) -> Optional[PriceReading]:
        return self._readings.get(token)


class InMemorySettlementBackend:
    """
    Settlement stand-in that records requests instead of sending transactions.

    Token support and venue configuration come from the constructor, which is
    how a host wires registry validation to its deployment settings.
    """

    def __init__(
        self,
        supported_tokens: Iterable[str] = (),
        configured_venues: Iterable[Venue] = (),
        succeed: bool = True,
    ):
        self.supported_tokens: Set[str] = set(supported_tokens)
        self.configured_venues: Set[Venue] = {Venue(v) for v in configured_venues}
        self.succeed = succeed
        self.settlements = []

    def initiate_settlement(
        self, asset: str, amount: int, route_id: int
    ) -> SettlementResult:
        self.settlements.append((asset, amount, route_id))
        if not self.succeed:
            return SettlementResult(success=False, reason="settlement rejected")
        return SettlementResult(
            success=True, tx_reference=f"paper-{len(self.settlements)}"
        )

    def is_token_supported(self, token: str) -> bool:
        return token in self.supported_tokens

    def venue_router_configured(self, venue: Venue) -> bool:
        return venue in self.configured_venues
