"""
Exception hierarchy for the flash-loan arbitrage analyzer.

Errors are grouped by kind so callers can decide what is fatal:
- ValidationError: bad input, raised eagerly before anything is applied
- ConfigurationError: registry or settlement backend is missing required setup
- CollaboratorError: a quote source or price oracle failed for one route
"""

from typing import Optional, Dict, Any


class FlashArbitrageError(Exception):
    """Base exception for all flash arbitrage related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


# ============================================================================
# Input validation
# ============================================================================


class ValidationError(FlashArbitrageError):
    """Raised when validation of data or configuration fails."""

    pass


class InvalidInput(ValidationError):
    pass


class InvalidPathLength(ValidationError):
    pass


class CircularPathRequired(ValidationError):
    pass


class InvalidTokenAddress(ValidationError):
    pass


class DuplicateTokenInPath(ValidationError):
    pass


class ArrayLengthMismatch(ValidationError):
    pass


class InsufficientData(ValidationError):
    """Raised when an analysis is requested over an empty sample."""

    pass


# ============================================================================
# Configuration
# ============================================================================


class ConfigurationError(FlashArbitrageError):
    """Raised when there are configuration-related issues."""

    pass


class VenueNotConfigured(ConfigurationError):
    def __init__(
        self,
        message: str,
        venue: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.venue = venue


class UnsupportedToken(ConfigurationError):
    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.token = token


class InvalidRouteId(ConfigurationError):
    def __init__(
        self,
        message: str,
        route_id: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.route_id = route_id


# ============================================================================
# External collaborator failures (recoverable per route)
# ============================================================================


class CollaboratorError(FlashArbitrageError):
    """Raised when a quote source or price oracle cannot serve a request."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.source = source
        self.token = token


class QuoteUnavailable(CollaboratorError):
    pass


class StalePriceFeed(CollaboratorError):
    pass


class InvalidOraclePrice(CollaboratorError):
    pass


class InvalidPrice(CollaboratorError):
    """Raised when a price used in a deviation check is zero."""

    pass


class PriceDeviationTooHigh(CollaboratorError):
    def __init__(
        self,
        message: str,
        deviation_bps: Optional[int] = None,
        limit_bps: Optional[int] = None,
        source: Optional[str] = None,
        token: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, source=source, token=token, details=details)
        self.deviation_bps = deviation_bps
        self.limit_bps = limit_bps


class SecondaryPriceDeviationTooHigh(PriceDeviationTooHigh):
    pass


# ============================================================================
# Selection
# ============================================================================


class NoRoutesAvailable(FlashArbitrageError):
    """Raised when route selection is asked to choose from an empty set."""

    pass
