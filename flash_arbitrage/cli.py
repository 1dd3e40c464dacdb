"""
Command-line entry point.

Usage:
    flash-arb validate-config --config config/analyzer.example.yaml
    flash-arb evaluate --borrow 10 --leg1 10.5 --leg2 10.8
    flash-arb analyze --trades trades.json
    flash-arb sweep --base-profit 0.8 --borrow 10 --trades trades.csv --ratio 1.02
"""

import argparse
import csv
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from tabulate import tabulate

from . import logging_config
from .borrow_optimizer import BorrowAmountOptimizer
from .config_loader import (
    CONFIG_ENV_VAR,
    AnalyzerRuntimeConfig,
    build_route_registry,
    get_default_config,
    load_analyzer_config,
)
from .exceptions import FlashArbitrageError, InvalidInput
from .fixed_point import PRECISION, to_wei
from .profitability import calculate_profitability
from .statistical_analyzer import StatisticalAnalyzer
from .sweeps import (
    backtest_parameters,
    best_backtest_result,
    best_sensitivity_result,
    sensitivity_analysis,
)
from .types import TradeData
from .utils import format_amount, format_bps, safe_json_dump
from .version import get_version

logger = logging.getLogger(__name__)


# ============================================================================
# Input helpers
# ============================================================================


def load_trades(path) -> List[TradeData]:
    """Read trades from a JSON list or a CSV file with a header row."""
    path = Path(path)
    if not path.exists():
        raise InvalidInput(f"Trades file not found: {path}")

    try:
        if path.suffix.lower() == ".csv":
            with open(path, newline="") as f:
                rows = list(csv.DictReader(f))
        else:
            with open(path) as f:
                rows = json.load(f)
        return [TradeData.from_dict(row) for row in rows]
    except (ValueError, KeyError, TypeError) as e:
        raise InvalidInput(f"Malformed trades file {path}: {e}")


def token_amount(text: str) -> int:
    """argparse type: whole-token amount to 18-decimal base units."""
    try:
        value = to_wei(text)
    except ArithmeticError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text!r}")
    return value


def load_config(config_path: Optional[str]) -> AnalyzerRuntimeConfig:
    """Configured settings when a file is given or $FLASH_ARB_CONFIG is set, else defaults."""
    if config_path or os.environ.get(CONFIG_ENV_VAR):
        return load_analyzer_config(config_path)
    return get_default_config()


# ============================================================================
# Commands
# ============================================================================


def cmd_validate_config(args) -> int:
    config = load_analyzer_config(args.config)
    registry = build_route_registry(config)

    costs = config.costs
    print(f"Configuration '{config.name}' is valid\n")
    print(tabulate(
        [
            ["Flash loan premium", format_bps(costs.flash_loan_premium_bps)],
            ["Gas price", f"{costs.gas_price_wei // 10**9} gwei"],
            ["Gas units", costs.gas_units_estimate],
            ["Builder tip", format_bps(costs.builder_tip_bps)],
            ["Safety buffer", format_bps(costs.safety_buffer_bps)],
            ["Min profit", format_bps(costs.min_profit_bps)],
            ["Oracle max age", f"{config.oracle.max_price_age_seconds}s"],
        ],
        headers=["Parameter", "Value"],
        tablefmt="grid",
    ))

    routes = registry.snapshot()
    if routes:
        print()
        print(tabulate(
            [
                [r.route_id, " -> ".join(r.path), r.venue_a.value, r.venue_b.value,
                 format_amount(r.min_profit, r.borrow_token,
                               decimals=config.tokens[r.borrow_token].decimals)]
                for r in routes
            ],
            headers=["ID", "Path", "Venue A", "Venue B", "Min Profit"],
            tablefmt="grid",
        ))
    return 0


def cmd_evaluate(args) -> int:
    config = load_config(args.config)
    breakdown = calculate_profitability(
        args.borrow, args.leg1, args.leg2, config.costs
    )

    if args.json:
        print(safe_json_dump(breakdown.to_dict()))
        return 0

    print(tabulate(
        [
            ["Borrow amount", format_amount(breakdown.borrow_amount)],
            ["Leg 1 out", format_amount(breakdown.leg1_out)],
            ["Leg 2 out", format_amount(breakdown.leg2_out)],
            ["Flash loan fee", format_amount(breakdown.flash_loan_fee)],
            ["Gas cost", format_amount(breakdown.gas_cost)],
            ["Builder tip", format_amount(breakdown.builder_tip)],
            ["Safety buffer", format_amount(breakdown.safety_buffer)],
            ["Total costs", format_amount(breakdown.total_costs)],
            ["Gross profit", format_amount(breakdown.gross_profit)],
            ["Net profit", format_amount(breakdown.net_profit)],
            ["ROI", format_bps(breakdown.roi_bps)],
            ["Profitable", "yes" if breakdown.is_profitable else "no"],
        ],
        headers=["Item", "Amount"],
        tablefmt="grid",
    ))
    return 0


def cmd_analyze(args) -> int:
    config = load_config(args.config)
    trades = load_trades(args.trades)
    analyzer = StatisticalAnalyzer(config.analysis)

    analysis = analyzer.analyze_historical_trades(trades)
    recommendation = analyzer.generate_parameter_recommendations(analysis, trades)
    gas = analyzer.analyze_gas_efficiency(trades, config.costs.gas_price_wei)

    if args.json:
        print(safe_json_dump({
            "analysis": analysis.to_dict(),
            "recommendation": recommendation.to_dict(),
            "gas_efficiency": gas.to_dict(),
        }))
        return 0

    print(tabulate(
        [
            ["Trades", analysis.total_trades],
            ["Mean profit", format_amount(analysis.mean_profit)],
            ["Median profit", format_amount(analysis.median_profit)],
            ["Std deviation", format_amount(analysis.std_deviation)],
            ["Min / Max", f"{format_amount(analysis.min_profit)} / {format_amount(analysis.max_profit)}"],
            ["Success rate", format_bps(analysis.success_rate_bps)],
            ["Average gas used", analysis.average_gas_used],
        ],
        headers=["Statistic", "Value"],
        tablefmt="grid",
    ))
    print()
    print(tabulate(
        [
            ["min_profit_bps", recommendation.min_profit_bps],
            ["max_slippage_bps", recommendation.max_slippage_bps],
            ["deadline_seconds", recommendation.deadline_seconds],
            ["gas_units_estimate", recommendation.gas_units_estimate],
            ["confidence", format_bps(recommendation.confidence_bps)],
        ],
        headers=["Recommended", "Value"],
        tablefmt="grid",
    ))
    print(f"\n{recommendation.reasoning}")
    print(f"Gas: {gas.recommendation}")
    return 0


def cmd_sweep(args) -> int:
    config = load_config(args.config)
    sweeps = config.sweeps
    costs = config.costs

    sensitivity = sensitivity_analysis(
        args.base_profit,
        args.borrow,
        sweeps.gas_prices_wei,
        sweeps.premiums_bps,
        costs.gas_units_estimate,
        costs.builder_tip_bps,
        costs.safety_buffer_bps,
    )
    print(tabulate(
        [
            [f"{r.gas_price_wei // 10**9} gwei", r.flash_loan_premium_bps,
             format_amount(r.total_costs), format_amount(r.net_profit), r.roi_bps]
            for r in sensitivity
        ],
        headers=["Gas Price", "Premium bps", "Total Costs", "Net Profit", "ROI bps"],
        tablefmt="grid",
    ))
    best = best_sensitivity_result(sensitivity)
    print(
        f"Best cell: {best.gas_price_wei // 10**9} gwei, "
        f"{best.flash_loan_premium_bps} bps premium ({best.roi_bps} bps ROI)"
    )

    if args.trades:
        trades = load_trades(args.trades)
        results = backtest_parameters(
            trades, sweeps.min_profit_bps_grid, sweeps.max_slippage_bps_grid
        )
        print()
        print(tabulate(
            [
                [r.min_profit_bps, r.max_slippage_bps, r.success_count,
                 format_amount(r.total_profit), format_amount(r.roi)]
                for r in results
            ],
            headers=["Min Profit bps", "Max Slippage bps", "Successes", "Total Profit", "ROI"],
            tablefmt="grid",
        ))
        top = best_backtest_result(results)
        print(
            f"Best parameters: min_profit_bps={top.min_profit_bps} "
            f"max_slippage_bps={top.max_slippage_bps}"
        )

    if args.ratio:
        low, high, step = sweeps.borrow_range
        result = BorrowAmountOptimizer().find_optimal_borrow_amount(
            low, high, step, args.ratio, costs
        )
        print(
            f"\nOptimal borrow: {format_amount(result.optimal_amount)} "
            f"-> net {format_amount(result.max_profit)} "
            f"({result.points_evaluated} points, ratio {args.ratio / PRECISION:.4f})"
        )
    return 0


# ============================================================================
# Entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flash-arb",
        description="Flash-loan arbitrage route analysis",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    parser.add_argument(
        "--config",
        help=f"Path to YAML configuration (default: ${CONFIG_ENV_VAR})",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    parser.add_argument("--quiet", action="store_true", help="Warnings and errors only")

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate-config", help="Validate a configuration file")
    validate.set_defaults(func=cmd_validate_config)

    evaluate = subparsers.add_parser("evaluate", help="Profitability breakdown for known leg outputs")
    evaluate.add_argument("--borrow", type=token_amount, required=True, help="Borrow amount in tokens")
    evaluate.add_argument("--leg1", type=token_amount, required=True, help="Leg 1 output in tokens")
    evaluate.add_argument("--leg2", type=token_amount, required=True, help="Leg 2 output in tokens")
    evaluate.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    evaluate.set_defaults(func=cmd_evaluate)

    analyze = subparsers.add_parser("analyze", help="Statistics and recommendations from trade history")
    analyze.add_argument("--trades", required=True, help="JSON or CSV trades file")
    analyze.add_argument("--json", action="store_true", help="Print JSON instead of tables")
    analyze.set_defaults(func=cmd_analyze)

    sweep = subparsers.add_parser("sweep", help="Cost sensitivity, backtest and borrow sweeps")
    sweep.add_argument("--base-profit", type=token_amount, required=True, help="Gross profit in tokens")
    sweep.add_argument("--borrow", type=token_amount, required=True, help="Borrow amount in tokens")
    sweep.add_argument("--trades", help="JSON or CSV trades file for the backtest")
    sweep.add_argument("--ratio", type=token_amount, help="Expected leg 2 output per token borrowed, e.g. 1.02")
    sweep.set_defaults(func=cmd_sweep)

    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    if args.debug:
        logging_config.setup_debug()
    elif args.quiet:
        logging_config.setup_minimal()
    else:
        logging_config.setup()

    try:
        return args.func(args)
    except FlashArbitrageError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
