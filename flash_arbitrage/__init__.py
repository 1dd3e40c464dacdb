"""
Flash-Loan Arbitrage Analyzer.

Off-chain analysis for two-venue flash-loan arbitrage: a validated route
registry, a single profitability model, route and borrow-amount optimization,
historical trade statistics with parameter recommendations, and cost
sensitivity / backtest sweeps.
"""

from flash_arbitrage.version import __version__

PROJECT_NAME = "flash-arbitrage-analyzer"
VERSION = __version__

from flash_arbitrage.borrow_optimizer import BorrowAmountOptimizer
from flash_arbitrage.exceptions import FlashArbitrageError
from flash_arbitrage.orchestrator import ArbitrageOrchestrator
from flash_arbitrage.price_validation import OracleSettings, PriceValidator
from flash_arbitrage.profitability import ProfitabilityEngine, calculate_profitability
from flash_arbitrage.route_optimizer import RouteOptimizer
from flash_arbitrage.route_registry import RouteRegistry
from flash_arbitrage.scanner import OpportunityScanner
from flash_arbitrage.statistical_analyzer import AnalysisSettings, StatisticalAnalyzer
from flash_arbitrage.sweeps import backtest_parameters, sensitivity_analysis
from flash_arbitrage.types import (
    ArbitrageRoute,
    CostParameters,
    ProfitabilityBreakdown,
    TradeData,
    Venue,
)

__all__ = [
    "PROJECT_NAME",
    "VERSION",
    "ArbitrageOrchestrator",
    "ArbitrageRoute",
    "AnalysisSettings",
    "BorrowAmountOptimizer",
    "CostParameters",
    "FlashArbitrageError",
    "OpportunityScanner",
    "OracleSettings",
    "PriceValidator",
    "ProfitabilityBreakdown",
    "ProfitabilityEngine",
    "RouteOptimizer",
    "RouteRegistry",
    "StatisticalAnalyzer",
    "TradeData",
    "Venue",
    "backtest_parameters",
    "calculate_profitability",
    "sensitivity_analysis",
]
