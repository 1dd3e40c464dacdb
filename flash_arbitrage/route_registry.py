"""
Registry of arbitrage route definitions.

Routes are addressed by their slot index. Deletion swaps the last route into
the freed slot and shrinks the registry, so a route_id held across a delete
may afterwards name a different route. Re-read ids after any deletion.

Every token in a path is validated, but evaluation trades only the first
token and path[-2]; see ArbitrageRoute.
"""

import logging
import threading
from typing import Iterator, List, Optional, Sequence

from .exceptions import (
    ArrayLengthMismatch,
    CircularPathRequired,
    DuplicateTokenInPath,
    InvalidInput,
    InvalidPathLength,
    InvalidRouteId,
    InvalidTokenAddress,
    UnsupportedToken,
    VenueNotConfigured,
)
from .fixed_point import ZERO_ADDRESS
from .interfaces import SettlementBackend
from .types import ArbitrageRoute, Venue

logger = logging.getLogger(__name__)

MIN_PATH_LENGTH = 2
MAX_PATH_LENGTH = 4


def coerce_venue(venue) -> Venue:
    """Map a venue name or Venue to the enum; unknown names are unconfigured."""
    try:
        return Venue(venue)
    except ValueError:
        raise VenueNotConfigured(f"Unknown venue: {venue!r}", venue=str(venue))


class RouteRegistry:
    """
    Mutable store of ArbitrageRoute definitions.

    Token support and venue router configuration are looked up on the
    settlement backend at validation time, so a route cannot be registered
    for something the backend could not settle.
    """

    def __init__(self, settlement_backend: SettlementBackend):
        self.settlement_backend = settlement_backend
        self._routes: List[ArbitrageRoute] = []
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_route(
        self, path: Sequence[str], min_profit: int, venue_a: Venue, venue_b: Venue
    ) -> None:
        """
        Check a route definition against every registry rule.

        Raises:
            InvalidPathLength, CircularPathRequired, InvalidTokenAddress,
            UnsupportedToken, DuplicateTokenInPath, VenueNotConfigured,
            InvalidInput
        """
        if not MIN_PATH_LENGTH <= len(path) <= MAX_PATH_LENGTH:
            raise InvalidPathLength(
                f"Path length must be between {MIN_PATH_LENGTH} and "
                f"{MAX_PATH_LENGTH}, got {len(path)}",
                details={"path": list(path)},
            )

        if path[0] != path[-1]:
            raise CircularPathRequired(
                f"Path must start and end with the same token: {path[0]} != {path[-1]}",
                details={"path": list(path)},
            )

        for token in path:
            if not isinstance(token, str) or not token.strip() or token == ZERO_ADDRESS:
                raise InvalidTokenAddress(
                    f"Invalid token identifier in path: {token!r}",
                    details={"path": list(path)},
                )
            if not self.settlement_backend.is_token_supported(token):
                raise UnsupportedToken(f"Token not supported: {token}", token=token)

        # The closing token repeats path[0] by construction and is exempt
        interior = path[:-1]
        if len(set(interior)) != len(interior):
            raise DuplicateTokenInPath(
                f"Token repeats inside path: {' -> '.join(path)}",
                details={"path": list(path)},
            )

        for venue in (venue_a, venue_b):
            if not self.settlement_backend.venue_router_configured(venue):
                raise VenueNotConfigured(
                    f"No router configured for venue {venue.value}",
                    venue=venue.value,
                )

        if min_profit < 0:
            raise InvalidInput(f"min_profit cannot be negative: {min_profit}")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def add_route(
        self, path: Sequence[str], min_profit: int, venue_a: Venue, venue_b: Venue
    ) -> int:
        """Validate and append a route. Returns its route_id."""
        venue_a, venue_b = coerce_venue(venue_a), coerce_venue(venue_b)
        self.validate_route(path, min_profit, venue_a, venue_b)

        with self._lock:
            route_id = len(self._routes)
            route = ArbitrageRoute(
                route_id=route_id,
                path=tuple(path),
                min_profit=min_profit,
                venue_a=venue_a,
                venue_b=venue_b,
            )
            self._routes.append(route)

        logger.debug(f"Added route {route.describe()}")
        return route_id

    def add_routes_batch(
        self,
        paths: Sequence[Sequence[str]],
        min_profits: Sequence[int],
        venues_a: Sequence[Venue],
        venues_b: Sequence[Venue],
    ) -> List[int]:
        """
        Add several routes at once. Every entry is validated before any is
        stored, so a failure leaves the registry unchanged.
        """
        if not (len(paths) == len(min_profits) == len(venues_a) == len(venues_b)):
            raise ArrayLengthMismatch(
                "Batch inputs must have equal lengths",
                details={
                    "paths": len(paths),
                    "min_profits": len(min_profits),
                    "venues_a": len(venues_a),
                    "venues_b": len(venues_b),
                },
            )

        for path, min_profit, venue_a, venue_b in zip(
            paths, min_profits, venues_a, venues_b
        ):
            self.validate_route(
                path, min_profit, coerce_venue(venue_a), coerce_venue(venue_b)
            )

        with self._lock:
            return [
                self.add_route(path, min_profit, venue_a, venue_b)
                for path, min_profit, venue_a, venue_b in zip(
                    paths, min_profits, venues_a, venues_b
                )
            ]

    def update_route(
        self,
        route_id: int,
        path: Sequence[str],
        min_profit: int,
        venue_a: Venue,
        venue_b: Venue,
    ) -> ArbitrageRoute:
        """Replace a route in place after full re-validation."""
        venue_a, venue_b = coerce_venue(venue_a), coerce_venue(venue_b)
        with self._lock:
            self._check_route_id(route_id)
            self.validate_route(path, min_profit, venue_a, venue_b)
            route = ArbitrageRoute(
                route_id=route_id,
                path=tuple(path),
                min_profit=min_profit,
                venue_a=venue_a,
                venue_b=venue_b,
            )
            self._routes[route_id] = route

        logger.debug(f"Updated route {route.describe()}")
        return route

    def delete_route(self, route_id: int) -> None:
        """
        Remove a route by moving the last route into its slot.

        The moved route takes over route_id; the registry shrinks by one.
        """
        with self._lock:
            self._check_route_id(route_id)
            last = self._routes.pop()
            if route_id < len(self._routes):
                self._routes[route_id] = ArbitrageRoute(
                    route_id=route_id,
                    path=last.path,
                    min_profit=last.min_profit,
                    venue_a=last.venue_a,
                    venue_b=last.venue_b,
                )
                logger.debug(
                    f"Deleted route #{route_id}; route #{last.route_id} moved into its slot"
                )
            else:
                logger.debug(f"Deleted route #{route_id}")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_route(self, route_id: int) -> ArbitrageRoute:
        with self._lock:
            self._check_route_id(route_id)
            return self._routes[route_id]

    def get_route_count(self) -> int:
        with self._lock:
            return len(self._routes)

    def get_all_routes(self, offset: int = 0, limit: Optional[int] = None) -> List[ArbitrageRoute]:
        """
        Page through routes. The end index is clamped to the route count.

        Raises:
            InvalidRouteId: If offset is past the last route
        """
        with self._lock:
            if offset < 0 or offset >= len(self._routes):
                raise InvalidRouteId(
                    f"Offset {offset} out of range for {len(self._routes)} routes",
                    route_id=offset,
                )
            end = len(self._routes) if limit is None else min(offset + limit, len(self._routes))
            return list(self._routes[offset:end])

    def snapshot(self) -> List[ArbitrageRoute]:
        """All routes, or an empty list when the registry is empty."""
        with self._lock:
            return list(self._routes)

    def __len__(self) -> int:
        return self.get_route_count()

    def __iter__(self) -> Iterator[ArbitrageRoute]:
        return iter(self.snapshot())

    def _check_route_id(self, route_id: int) -> None:
        if not isinstance(route_id, int) or not 0 <= route_id < len(self._routes):
            raise InvalidRouteId(
                f"Route id {route_id} does not exist ({len(self._routes)} routes)",
                route_id=route_id,
            )
